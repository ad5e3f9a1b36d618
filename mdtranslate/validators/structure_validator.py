# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass
from functools import lru_cache

from markdown_it import MarkdownIt

from mdtranslate.utils.marker import extract_front_matter


@dataclass(frozen=True)
class StructureCounts:
    headers: int = 0
    lists: int = 0
    blockquotes: int = 0
    code_blocks: int = 0


@lru_cache(maxsize=1)
def _parser() -> MarkdownIt:
    return MarkdownIt("commonmark")


def count_structure(markdown_text: str) -> StructureCounts:
    """
    Count block elements of a Markdown document with a CommonMark parser.
    Leading front matter is skipped, its closing '---' would otherwise read as a setext header.
    """
    front_matter = extract_front_matter(markdown_text)
    if front_matter is not None:
        markdown_text = markdown_text[len(front_matter):]

    headers = lists = blockquotes = code_blocks = 0
    for token in _parser().parse(markdown_text):
        if token.type == "heading_open":
            headers += 1
        elif token.type in ("bullet_list_open", "ordered_list_open"):
            lists += 1
        elif token.type == "blockquote_open":
            blockquotes += 1
        elif token.type in ("fence", "code_block"):
            code_blocks += 1
    return StructureCounts(headers=headers, lists=lists, blockquotes=blockquotes, code_blocks=code_blocks)


def validate_structure(original: str, translated: str) -> tuple[bool, list[str], list[str]]:
    """
    Compare the header count of two documents.

    Returns:
        (ok, issues, warnings). A different header count fails,
        differences in lists, quotes and code blocks are only warnings.
    """
    before = count_structure(original)
    after = count_structure(translated)
    issues = []
    warnings = []

    if before.headers != after.headers:
        issues.append(f"Header count mismatch: original {before.headers}, translated {after.headers}")
    if before.lists != after.lists:
        warnings.append(f"List count changed: {before.lists} -> {after.lists}")
    if before.blockquotes != after.blockquotes:
        warnings.append(f"Block quote count changed: {before.blockquotes} -> {after.blockquotes}")
    if before.code_blocks != after.code_blocks:
        warnings.append(f"Code block count changed: {before.code_blocks} -> {after.code_blocks}")
    return not issues, issues, warnings
