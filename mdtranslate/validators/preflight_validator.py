# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re
from dataclasses import dataclass, field

MAX_LINE_LENGTH = 5000

_HEADER_WITHOUT_SPACE = re.compile(r"^#{1,6}[^#\s]")
_HEADER_TOO_DEEP = re.compile(r"^#{7,}")
_INLINE_LINK = re.compile(r"(?<!!)\[([^\]]*)\]\(([^)]*)\)")


@dataclass
class PreflightResult:
    identifier: str
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    content_length: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.issues


def validate_markdown(content: str, identifier: str = "<document>") -> PreflightResult:
    """
    Cheap checks run before a document is sent for translation.
    Only an empty document is an issue, everything else is reported as a warning.
    Run it on text whose code was already masked so code lines are not mistaken for headers.
    """
    result = PreflightResult(identifier=identifier, content_length=len(content))
    if not content.strip():
        result.issues.append("File is empty or contains only whitespace")
        return result

    for number, line in enumerate(content.split("\n"), start=1):
        if len(line) > MAX_LINE_LENGTH:
            result.warnings.append(f"Line {number} is extremely long ({len(line)} chars) "
                                   f"and cannot be split")
        if _HEADER_TOO_DEEP.match(line):
            result.warnings.append(f"Line {number}: Invalid header level (more than 6 #): {line[:80]!r}")
        elif _HEADER_WITHOUT_SPACE.match(line):
            result.warnings.append(f"Line {number}: Header missing space after # symbols: {line[:80]!r}")

    for match in _INLINE_LINK.finditer(content):
        if not match.group(1).strip():
            result.warnings.append(f"Empty link text found: {match.group(0)[:80]}")
        if not match.group(2).strip():
            result.warnings.append(f"Empty link URL found: {match.group(0)[:80]}")
    return result
