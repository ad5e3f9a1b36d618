# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging
import re
from typing import List

from mdtranslate.ir.chunk import Chunk, SectionKind, utf8_size
from mdtranslate.logger import global_logger
from mdtranslate.utils.markdown_utils import split_lines

STRATEGIES: tuple[SectionKind, ...] = ("header", "paragraph", "line")

_LEADING_NEWLINES = re.compile(r"^(?:\r?\n)+")
_TRAILING_NEWLINES = re.compile(r"(?:\r?\n)+$")


class MarkdownBlockSplitter:
    def __init__(self, max_block_size: int = 20480, header_level: int = 3, logger: logging.Logger = global_logger):
        """
        Initialize Markdown block splitter

        Parameters:
            max_block_size: Maximum number of UTF-8 bytes per block
            header_level: Deepest ATX header level that may start a new block
            logger: Logger used for blocks that cannot be divided any further
        """
        if max_block_size <= 0:
            raise ValueError(f"max_block_size must be positive, got {max_block_size}")
        if not 1 <= header_level <= 6:
            raise ValueError(f"header_level must be between 1 and 6, got {header_level}")
        self.max_block_size = max_block_size
        self.header_level = header_level
        self.logger = logger
        self._header_pattern = re.compile(r"^ {0,3}#{1,%d}(?:[ \t]|\r?$)" % header_level)

    def split_markdown(self, markdown_text: str) -> List[Chunk]:
        """
        Split Markdown text into chunks of at most max_block_size bytes.
        Concatenating the chunk contents in order gives back markdown_text exactly.
        Headers are tried first, then paragraphs, then single lines.
        """
        if not markdown_text:
            return []

        if utf8_size(markdown_text) <= self.max_block_size:
            kind: SectionKind = "header" if self._has_header(markdown_text) else "paragraph"
            pieces = [(markdown_text, kind)]
        else:
            pieces = self._split(markdown_text, 0)

        return [Chunk.from_content(content, ordinal_index=i, section_kind=kind)
                for i, (content, kind) in enumerate(pieces)]

    def _has_header(self, text: str) -> bool:
        return any(self._header_pattern.match(line) for line in split_lines(text))

    def _split(self, text: str, first_strategy: int) -> list[tuple[str, SectionKind]]:
        for position in range(first_strategy, len(STRATEGIES)):
            strategy = STRATEGIES[position]
            units = self._split_into_units(text, strategy)
            if len(units) > 1:
                return self._pack(units, position)

        # One line with no break left to use, it goes out alone
        self.logger.warning(f"Block of {utf8_size(text)} bytes cannot be split and exceeds "
                            f"the limit of {self.max_block_size} bytes")
        return [(text, "line")]

    def _split_into_units(self, text: str, strategy: SectionKind) -> list[str]:
        if strategy == "header":
            return self._split_by_headers(text)
        if strategy == "paragraph":
            return self._split_by_paragraphs(text)
        return split_lines(text)

    def _split_by_headers(self, text: str) -> list[str]:
        units = []
        current = []
        for line in split_lines(text):
            if current and self._header_pattern.match(line):
                units.append("".join(current))
                current = []
            current.append(line)
        if current:
            units.append("".join(current))
        return units

    @staticmethod
    def _split_by_paragraphs(text: str) -> list[str]:
        # The blank lines after a paragraph stay with it, leading blank lines go to the first one
        units = []
        current = []
        seen_content = False
        previous_blank = False
        for line in split_lines(text):
            blank = not line.strip()
            if not blank and previous_blank and seen_content:
                units.append("".join(current))
                current = []
            current.append(line)
            seen_content = seen_content or not blank
            previous_blank = blank
        if current:
            units.append("".join(current))
        return units

    def _pack(self, units: list[str], position: int) -> list[tuple[str, SectionKind]]:
        strategy = STRATEGIES[position]
        pieces = []
        current_parts = []
        current_size = 0

        def flush():
            nonlocal current_parts, current_size
            if current_parts:
                pieces.append(("".join(current_parts), strategy))
            current_parts = []
            current_size = 0

        for unit in units:
            unit_size = utf8_size(unit)

            # The unit itself is too large, hand it to the next strategy
            if unit_size > self.max_block_size:
                flush()
                pieces.extend(self._split(unit, position + 1))
                continue

            if current_size + unit_size > self.max_block_size:
                flush()
            current_parts.append(unit)
            current_size += unit_size

        flush()
        return pieces


def split_markdown_text(markdown_text: str, max_bytes: int = 20480, header_level: int = 3,
                        logger: logging.Logger = global_logger) -> List[Chunk]:
    """
    Split Markdown string into chunks not exceeding max_bytes UTF-8 bytes
    """
    splitter = MarkdownBlockSplitter(max_block_size=max_bytes, header_level=header_level, logger=logger)
    return splitter.split_markdown(markdown_text)


def get_statistics(chunks: List[Chunk]) -> dict:
    if not chunks:
        return {"total_chunks": 0, "total_bytes": 0, "average_bytes": 0, "max_bytes": 0, "min_bytes": 0}
    sizes = [chunk.utf8_byte_size for chunk in chunks]
    return {
        "total_chunks": len(chunks),
        "total_bytes": sum(sizes),
        "average_bytes": sum(sizes) // len(sizes),
        "max_bytes": max(sizes),
        "min_bytes": min(sizes),
    }


def _needs_single_newline_join(prev_chunk: str, next_chunk: str) -> bool:
    """
    Determine whether two blocks should be joined with a single newline
    This usually occurs between consecutive lines of lists, tables, and quote blocks
    """
    if not prev_chunk.strip() or not next_chunk.strip():
        return False

    last_line_prev = prev_chunk.rstrip().split('\n')[-1].lstrip()
    first_line_next = next_chunk.lstrip().split('\n')[0].lstrip()

    # Tables
    if last_line_prev.startswith('|') and last_line_prev.endswith('|') and \
            first_line_next.startswith('|') and first_line_next.endswith('|'):
        return True

    # Lists (unordered and ordered)
    list_markers = r'^\s*([-*+]|\d+\.)\s+'
    if re.match(list_markers, last_line_prev) and re.match(list_markers, first_line_next):
        return True

    # Quotes
    if last_line_prev.startswith('>') and first_line_next.startswith('>'):
        return True

    return False


def _newlines(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(0) if match else ""


def _restore_boundaries(translated: str, original: str) -> str:
    # Translators tend to trim the newlines around a chunk, put back exactly what the source had
    if translated == original:
        return translated
    if not original.strip():
        return original
    core = _TRAILING_NEWLINES.sub("", _LEADING_NEWLINES.sub("", translated))
    return _newlines(_LEADING_NEWLINES, original) + core + _newlines(_TRAILING_NEWLINES, original)


def join_markdown_texts(markdown_texts: List[str], originals: List[str] | None = None) -> str:
    """
    Join translated Markdown blocks back into one document.

    Parameters:
        markdown_texts: Blocks in reading order
        originals: Source blocks the translations came from. When given, the newlines around every
            block are taken from its source so headers never end up glued to the previous paragraph.
            Otherwise blocks are joined with a blank line, or a single newline inside tables,
            lists and quotes.
    """
    if not markdown_texts:
        return ""

    if originals is not None:
        if len(originals) != len(markdown_texts):
            raise ValueError(f"Got {len(markdown_texts)} blocks but {len(originals)} originals")
        return "".join(_restore_boundaries(text, original) for text, original in zip(markdown_texts, originals))

    joined_text = markdown_texts[0]
    for i in range(1, len(markdown_texts)):
        prev_chunk = markdown_texts[i - 1]
        current_chunk = markdown_texts[i]

        if _needs_single_newline_join(prev_chunk, current_chunk):
            separator = "\n"
        else:
            # Default to using double newlines to separate different blocks
            separator = "\n\n"

        joined_text += separator + current_chunk

    return joined_text
