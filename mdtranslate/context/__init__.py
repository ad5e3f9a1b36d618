# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.context.md_mask_context import MDMaskCodeContext

__all__ = ["MDMaskCodeContext"]
