# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import time
from dataclasses import dataclass, field
from typing import Literal, TYPE_CHECKING

from mdtranslate.ir.chunk import Chunk, TranslationOutcome

if TYPE_CHECKING:
    from mdtranslate.ir.statistics import TranslationStatistics

RegionKind = Literal["fenced", "inline"]

ANCHOR_PREFIX = "__CODE_ANCHOR_"
ANCHOR_SUFFIX = "__"


@dataclass(frozen=True)
class ProtectedRegion:
    anchor_id: int
    kind: RegionKind
    original_text: str
    language: str | None = None
    terminated: bool = True

    @property
    def anchor(self) -> str:
        return f"{ANCHOR_PREFIX}{self.anchor_id}{ANCHOR_SUFFIX}"

    def __repr__(self):
        preview = self.original_text if len(self.original_text) <= 50 else self.original_text[:50] + "..."
        return f"ProtectedRegion(anchor={self.anchor}, kind={self.kind}, language={self.language!r}, code={preview!r})"


@dataclass
class ValidationReport:
    structure_ok: bool = True
    link_ok: bool = True
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.structure_ok and self.link_ok

    def summary(self) -> str:
        if not self.issues and not self.warnings:
            return "valid"
        parts = []
        if self.issues:
            parts.append(f"{len(self.issues)} issue{'s' if len(self.issues) > 1 else ''}")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warning{'s' if len(self.warnings) > 1 else ''}")
        return ", ".join(parts)


@dataclass
class MarkdownDocument:
    """
    State of one document during a single pipeline run.
    The identifier is owned by the caller (usually a path), the rest is filled in by the pipeline.
    """
    identifier: str
    raw_text: str
    clean_text: str = ""
    regions: list[ProtectedRegion] = field(default_factory=list)
    chunks: list[Chunk] = field(default_factory=list)
    outcomes: list[TranslationOutcome] = field(default_factory=list)
    translated_text: str | None = None
    report: ValidationReport | None = None
    statistics: 'TranslationStatistics | None' = None
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def estimated_chunks(self) -> int:
        return len(self.chunks)

    @property
    def failed_chunks(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)
