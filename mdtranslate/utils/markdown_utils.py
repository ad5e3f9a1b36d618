# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging
import re
from collections import Counter

from mdtranslate.ir.markdown_document import ProtectedRegion, RegionKind, ANCHOR_PREFIX, ANCHOR_SUFFIX
from mdtranslate.logger import global_logger

ANCHOR_PATTERN = re.compile(re.escape(ANCHOR_PREFIX) + r"(\d+)" + re.escape(ANCHOR_SUFFIX))

# Core of an anchor after the translation step touched it (re-cased, underscores turned into spaces or dashes)
_ANCHOR_LIKE_PATTERN = re.compile(r"(?<![a-z])code[\s_\-]*anchor[\s_\-]*\d+", re.IGNORECASE)

_FENCE_OPEN_PATTERN = re.compile(r"^([ \t]*)(`{3,}|~{3,})(.*)$")

# A backtick run of length n closed by a run of exactly n, never across a blank line.
# Literal anchor-like text in the source is protected as well so that it survives restoration.
_INLINE_SCAN_PATTERN = re.compile(
    r"(?P<code>(?<![`\\])(?P<ticks>`+)(?!`)(?:(?!\n[ \t]*\n).)+?(?<!`)(?P=ticks)(?!`))"
    r"|(?P<literal>(?<![a-zA-Z])[cC][oO][dD][eE][\s_\-]*[aA][nN][cC][hH][oO][rR][\s_\-]*\d+)",
    re.DOTALL,
)


class CodeBlockRestorationError(RuntimeError):
    """Anchors were lost, duplicated or mutated by the translation step."""

    def __init__(self, identifier: str, missing: list[str], duplicated: list[str], unexpected: list[str]):
        self.identifier = identifier
        self.missing = missing
        self.duplicated = duplicated
        self.unexpected = unexpected
        details = []
        if missing:
            details.append(f"missing {len(missing)}: {', '.join(missing)}")
        if duplicated:
            details.append(f"duplicated {len(duplicated)}: {', '.join(duplicated)}")
        if unexpected:
            details.append(f"unexpected {len(unexpected)}: {', '.join(unexpected)}")
        super().__init__(
            f"Code block restoration failed for {identifier} ({'; '.join(details)}). "
            f"The translator corrupted or removed code anchors."
        )


def split_lines(text: str) -> list[str]:
    """
    Split text on '\\n' keeping the terminators, so that ''.join(split_lines(text)) == text.
    Unlike str.splitlines this never breaks on other unicode line separators.
    """
    lines = text.split("\n")
    result = [line + "\n" for line in lines[:-1]]
    if lines[-1]:
        result.append(lines[-1])
    return result


def _find_fenced_spans(text: str, logger: logging.Logger) -> list[tuple[int, int, str | None, bool]]:
    """
    Line scanner for fenced code blocks.
    Returns (start, end, language, terminated) tuples, start is the first fence character
    and end the last character of the closing fence.
    """
    spans = []
    opened = None
    pos = 0
    for line in split_lines(text):
        body = line.rstrip("\r\n")
        if opened is None:
            match = _FENCE_OPEN_PATTERN.match(body)
            # ```foo``` on a single line is inline code, not a fence
            if match and not (match.group(2)[0] == "`" and "`" in match.group(3)):
                info = match.group(3).strip()
                language = info.split()[0] if info else None
                opened = (pos + len(match.group(1)), match.group(2), language)
        else:
            start, fence, language = opened
            stripped = body.strip()
            if stripped and set(stripped) == {fence[0]} and len(stripped) >= len(fence):
                spans.append((start, pos + len(body.rstrip()), language, True))
                opened = None
        pos += len(line)

    if opened is not None:
        start, fence, language = opened
        end = max(start, len(text.rstrip("\r\n")))
        logger.warning(f"Unterminated code fence '{fence}' at offset {start}, protecting it up to the end of the document")
        spans.append((start, end, language, False))
    return spans


def extract_code_regions(raw_text: str, logger: logging.Logger = global_logger) -> tuple[str, list[ProtectedRegion]]:
    """
    Replace fenced code blocks, then inline code spans, with anchors.

    Parameters:
        raw_text: Original markdown
        logger: Logger for malformed fences

    Returns:
        (clean_text, regions) with regions numbered in document order
    """
    if not raw_text:
        return "", []

    spans: list[tuple[int, int, RegionKind, str | None, bool]] = []
    cursor = 0
    fenced = _find_fenced_spans(raw_text, logger)
    for start, end, language, terminated in fenced + [(len(raw_text), len(raw_text), None, True)]:
        for match in _INLINE_SCAN_PATTERN.finditer(raw_text, cursor, start):
            spans.append((match.start(), match.end(), "inline", None, True))
        if end > start:
            spans.append((start, end, "fenced", language, terminated))
        cursor = end

    regions: list[ProtectedRegion] = []
    parts: list[str] = []
    cursor = 0
    for anchor_id, (start, end, kind, language, terminated) in enumerate(spans):
        region = ProtectedRegion(
            anchor_id=anchor_id,
            kind=kind,
            original_text=raw_text[start:end],
            language=language,
            terminated=terminated,
        )
        parts.append(raw_text[cursor:start])
        parts.append(region.anchor)
        regions.append(region)
        cursor = end
    parts.append(raw_text[cursor:])
    return "".join(parts), regions


def find_anchor_problems(translated_text: str, regions: list[ProtectedRegion]) -> tuple[list[str], list[str], list[str]]:
    """
    Compare the anchors found in translated text with the extracted regions.

    Returns:
        (missing, duplicated, unexpected) anchor lists, all empty when restoration is safe
    """
    expected = {region.anchor for region in regions}
    exact_matches = list(ANCHOR_PATTERN.finditer(translated_text))
    counts = Counter(match.group(0) for match in exact_matches)

    missing = [region.anchor for region in regions if counts[region.anchor] == 0]
    duplicated = [region.anchor for region in regions if counts[region.anchor] > 1]
    unexpected = [match.group(0) for match in exact_matches if match.group(0) not in expected]

    leading = len(ANCHOR_PREFIX) - len(ANCHOR_PREFIX.lstrip("_"))
    exact_cores = {(m.start() + leading, m.end() - len(ANCHOR_SUFFIX)) for m in exact_matches}
    for match in _ANCHOR_LIKE_PATTERN.finditer(translated_text):
        if (match.start(), match.end()) not in exact_cores:
            unexpected.append(match.group(0))
    return missing, duplicated, unexpected


def restore_code_regions(translated_text: str, regions: list[ProtectedRegion], identifier: str = "<document>") -> str:
    """
    Put the original code back in place of every anchor.
    Raises CodeBlockRestorationError if any anchor is missing, duplicated or mutated.
    """
    missing, duplicated, unexpected = find_anchor_problems(translated_text, regions)
    if missing or duplicated or unexpected:
        raise CodeBlockRestorationError(identifier, missing, duplicated, unexpected)
    if not regions:
        return translated_text

    by_anchor = {region.anchor: region.original_text for region in regions}
    # Single pass, restored code is never scanned again
    return ANCHOR_PATTERN.sub(lambda match: by_anchor[match.group(0)], translated_text)
