# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
default_params = {
    "chunk_size": 20480,
    "concurrent": 10,
    "header_level": 3,
    "temperature": 0.7,
    "timeout": 1200,
    "retry": 2,
    "to_lang": "English",
}
