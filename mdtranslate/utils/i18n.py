# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os

MESSAGES = {
    "en": {
        "generated": "Generated: {path}",
        "file_not_found": "File not found: {path}",
        "not_markdown": "Not a Markdown file: {path}",
        "already_translated": "Skipped, already translated: {path} (use --force to translate again)",
        "nothing_to_do": "No files to translate",
        "env_loaded": "Loaded {count} variable(s) from {path}",
        "missing_api_key": "Missing API key, pass --api-key or set OPENAI_API_KEY (or use --skip-translate)",
        "missing_model": "Missing model, pass --model-id or set OPENAI_MODEL",
        "document_failed": "Failed: {path} ({reason})",
        "summary": "{success} succeeded, {failure} failed in {seconds:.1f}s",
    },
    "zh": {
        "generated": "已生成: {path}",
        "file_not_found": "找不到文件: {path}",
        "not_markdown": "不是 Markdown 文件: {path}",
        "already_translated": "已跳过，文件已翻译: {path}（使用 --force 重新翻译）",
        "nothing_to_do": "没有需要翻译的文件",
        "env_loaded": "已从 {path} 加载 {count} 个变量",
        "missing_api_key": "缺少 API 密钥，请传入 --api-key 或设置 OPENAI_API_KEY（或使用 --skip-translate）",
        "missing_model": "缺少模型，请传入 --model-id 或设置 OPENAI_MODEL",
        "document_failed": "失败: {path}（{reason}）",
        "summary": "成功 {success} 个，失败 {failure} 个，用时 {seconds:.1f} 秒",
    },
}


def t(key: str, *, lang: str | None = None, **kwargs) -> str:
    l = (lang or os.getenv("MDTRANSLATE_LANG") or "en").lower()
    if l not in MESSAGES:
        l = "en"
    msg = MESSAGES[l].get(key) or MESSAGES["en"].get(key) or key
    try:
        return msg.format(**kwargs)
    except (KeyError, IndexError, ValueError):
        return msg
