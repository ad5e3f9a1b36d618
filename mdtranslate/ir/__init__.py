# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.ir.chunk import Chunk, SectionKind, TranslationOutcome
from mdtranslate.ir.markdown_document import MarkdownDocument, ProtectedRegion, RegionKind, ValidationReport

__all__ = [
    "Chunk",
    "SectionKind",
    "TranslationOutcome",
    "MarkdownDocument",
    "ProtectedRegion",
    "RegionKind",
    "ValidationReport",
]
