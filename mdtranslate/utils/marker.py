# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re

TRANSLATED_SIGNATURE = "ia-translate: true"

_FRONT_MATTER_OPEN = re.compile(r"^---[ \t]*\r?\n")
_FRONT_MATTER_SIGNATURE = re.compile(r"^ia-translate:\s*true\s*$", re.MULTILINE)
_COMMENT_SIGNATURE = re.compile(r"<!--\s*ia-translate:\s*true\s*-->")


def has_translated_marker(text: str) -> bool:
    """True if the document carries the translated signature, in front matter or as an HTML comment."""
    if _COMMENT_SIGNATURE.search(text):
        return True
    front_matter = extract_front_matter(text)
    return bool(front_matter and _FRONT_MATTER_SIGNATURE.search(front_matter))


def extract_front_matter(text: str) -> str | None:
    """Leading YAML front matter including both '---' lines, or None."""
    opening = _FRONT_MATTER_OPEN.match(text)
    if not opening:
        return None
    closing = re.compile(r"^---[ \t]*$", re.MULTILINE).search(text, opening.end())
    if not closing:
        return None
    return text[:closing.end()]


def attach_translated_marker(text: str) -> str:
    """
    Mark a document as translated.
    The signature goes right after the opening '---' of the front matter,
    documents without front matter get it as a leading HTML comment.
    """
    if has_translated_marker(text):
        return text
    opening = _FRONT_MATTER_OPEN.match(text)
    if opening and extract_front_matter(text) is not None:
        newline = "\r\n" if opening.group(0).endswith("\r\n") else "\n"
        return text[:opening.end()] + TRANSLATED_SIGNATURE + newline + text[opening.end():]
    return f"<!-- {TRANSLATED_SIGNATURE} -->\n{text}"
