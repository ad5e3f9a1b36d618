# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass
from typing import Literal, Self

SectionKind = Literal["header", "paragraph", "line"]


def utf8_size(text: str) -> int:
    return len(text.encode("utf-8"))


def utf16_size(text: str) -> int:
    # Number of 16-bit code units, characters outside the BMP count twice
    return len(text.encode("utf-16-le")) // 2


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous slice of a document's clean text.

    Attributes:
        ordinal_index: Position of the chunk inside its document, reassembly always follows it.
        content: Text of the chunk, anchors of protected code regions left intact.
        utf8_byte_size: Size actually sent to the translation service.
        code_unit_size: Size in UTF-16 code units, kept for statistics only.
        section_kind: Which splitting strategy produced the chunk.
    """
    ordinal_index: int
    content: str
    utf8_byte_size: int
    code_unit_size: int
    section_kind: SectionKind = "paragraph"

    @classmethod
    def from_content(cls, content: str, ordinal_index: int = 0, section_kind: SectionKind = "paragraph") -> Self:
        return cls(
            ordinal_index=ordinal_index,
            content=content,
            utf8_byte_size=utf8_size(content),
            code_unit_size=utf16_size(content),
            section_kind=section_kind,
        )

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()

    def __repr__(self):
        return (f"Chunk(index={self.ordinal_index}, kind={self.section_kind}, "
                f"utf8_bytes={self.utf8_byte_size}, code_units={self.code_unit_size})")


@dataclass(frozen=True)
class TranslationOutcome:
    ordinal_index: int
    translated_content: str
    succeeded: bool
    used_fallback_model: bool = False
