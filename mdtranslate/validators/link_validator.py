# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re
from dataclasses import dataclass, field

# [text][label] and the collapsed form [text][]
_REFERENCE_LINK_PATTERN = re.compile(r"\[([^\[\]]+)\]\[([^\[\]]*)\]")
# [label]: url, the url may have been lost
_LINK_DEFINITION_PATTERN = re.compile(r"^[ \t]{0,3}\[([^\]]+)\]:[ \t]*(.*)$", re.MULTILINE)

_HTML_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
_PRE_BLOCK_PATTERN = re.compile(r"<pre.*?</pre>", re.DOTALL | re.IGNORECASE)
_FENCED_CODE_PATTERN = re.compile(r"^[ \t]*(`{3,}|~{3,}).*?(?:^[ \t]*\1[`~]*[ \t]*$|\Z)", re.DOTALL | re.MULTILINE)
_INLINE_CODE_PATTERN = re.compile(r"(`+)(?!`).+?(?<!`)\1(?!`)", re.DOTALL)
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_label(label: str) -> str:
    """Case-insensitive label with line breaks and whitespace runs collapsed to one space."""
    return _WHITESPACE_RUN.sub(" ", label).strip().lower()


def strip_ignored_regions(markdown_text: str) -> str:
    """Remove HTML comments, <pre> blocks and code, where bracket pairs are not links."""
    cleaned = _HTML_COMMENT_PATTERN.sub("", markdown_text)
    cleaned = _PRE_BLOCK_PATTERN.sub("", cleaned)
    cleaned = _FENCED_CODE_PATTERN.sub("", cleaned)
    return _INLINE_CODE_PATTERN.sub("", cleaned)


@dataclass
class ReferenceLinkInfo:
    references: set[str] = field(default_factory=set)
    definitions: dict[str, str] = field(default_factory=dict)
    reference_count: int = 0


def extract_reference_links(markdown_text: str) -> ReferenceLinkInfo:
    cleaned = strip_ignored_regions(markdown_text)
    info = ReferenceLinkInfo()
    for match in _REFERENCE_LINK_PATTERN.finditer(cleaned):
        label = normalize_label(match.group(2)) or normalize_label(match.group(1))
        if label:
            info.references.add(label)
            info.reference_count += 1
    for match in _LINK_DEFINITION_PATTERN.finditer(cleaned):
        label = normalize_label(match.group(1))
        if label and label not in info.definitions:
            info.definitions[label] = match.group(2).strip()
    return info


def validate_reference_links(original: str, translated: str) -> tuple[bool, list[str], list[str]]:
    """
    Check that reference-style links still resolve after translation.

    Returns:
        (ok, issues, warnings). Broken references, definitions that lost their URL
        and the loss of every reference are issues. A changed reference count and
        unused definitions are warnings.
    """
    before = extract_reference_links(original)
    after = extract_reference_links(translated)
    issues = []
    warnings = []

    broken = sorted(label for label in after.references if label not in after.definitions)
    if broken:
        issues.append(f"Broken references (no definition found): {', '.join(broken)}")

    lost_urls = sorted(label for label, url in after.definitions.items()
                       if not url and before.definitions.get(label))
    if lost_urls:
        issues.append(f"Link definitions lost their URL: {', '.join(lost_urls)}")

    if before.references and not after.references:
        issues.append("All reference links were lost in translation")
    elif before.reference_count != after.reference_count:
        warnings.append(f"Reference count changed: {before.reference_count} -> {after.reference_count}")

    unused = sorted(set(after.definitions) - after.references)
    if unused:
        warnings.append(f"Unused link definitions: {', '.join(unused)}")
    return not issues, issues, warnings
