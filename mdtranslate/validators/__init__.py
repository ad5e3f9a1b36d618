# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.ir.markdown_document import ValidationReport
from mdtranslate.validators.link_validator import validate_reference_links
from mdtranslate.validators.preflight_validator import validate_markdown, PreflightResult
from mdtranslate.validators.structure_validator import validate_structure


def validate_translation(original: str, translated: str) -> ValidationReport:
    """Accept the translation only if both the header count and the reference links survived."""
    structure_ok, structure_issues, structure_warnings = validate_structure(original, translated)
    link_ok, link_issues, link_warnings = validate_reference_links(original, translated)
    return ValidationReport(
        structure_ok=structure_ok,
        link_ok=link_ok,
        issues=structure_issues + link_issues,
        warnings=structure_warnings + link_warnings,
    )


__all__ = [
    "validate_translation",
    "validate_structure",
    "validate_reference_links",
    "validate_markdown",
    "PreflightResult",
]
