# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass, asdict
from typing import Self

from mdtranslate.ir.chunk import utf8_size, utf16_size
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.utils.markdown_splitter import get_statistics


@dataclass(frozen=True)
class TranslationStatistics:
    original_content_bytes: int
    original_content_code_units: int
    total_code_blocks_extracted: int
    fenced_code_blocks: int
    inline_code_blocks: int
    clean_content_bytes: int
    total_chunks: int
    average_chunk_bytes: int
    max_chunk_bytes: int
    min_chunk_bytes: int
    failed_chunks: int
    fallback_chunks: int
    translated_content_bytes: int
    final_content_bytes: int
    processing_time_ms: int
    bytes_per_second: float
    restoration_success: bool

    @classmethod
    def from_document(cls, document: MarkdownDocument, processing_seconds: float,
                      restoration_success: bool) -> Self:
        chunk_stats = get_statistics(document.chunks)
        translated_bytes = sum(utf8_size(o.translated_content) for o in document.outcomes)
        original_bytes = utf8_size(document.raw_text)
        return cls(
            original_content_bytes=original_bytes,
            original_content_code_units=utf16_size(document.raw_text),
            total_code_blocks_extracted=len(document.regions),
            fenced_code_blocks=sum(1 for r in document.regions if r.kind == "fenced"),
            inline_code_blocks=sum(1 for r in document.regions if r.kind == "inline"),
            clean_content_bytes=utf8_size(document.clean_text),
            total_chunks=chunk_stats["total_chunks"],
            average_chunk_bytes=chunk_stats["average_bytes"],
            max_chunk_bytes=chunk_stats["max_bytes"],
            min_chunk_bytes=chunk_stats["min_bytes"],
            failed_chunks=document.failed_chunks,
            fallback_chunks=sum(1 for o in document.outcomes if o.used_fallback_model),
            translated_content_bytes=translated_bytes,
            final_content_bytes=utf8_size(document.translated_text or ""),
            processing_time_ms=int(processing_seconds * 1000),
            bytes_per_second=original_bytes / processing_seconds if processing_seconds > 0 else 0.0,
            restoration_success=restoration_success,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self):
        return (f"original: {self.original_content_bytes} bytes, "
                f"code blocks: {self.total_code_blocks_extracted} "
                f"({self.fenced_code_blocks} fenced, {self.inline_code_blocks} inline), "
                f"chunks: {self.total_chunks} (avg: {self.average_chunk_bytes} bytes, failed: {self.failed_chunks}), "
                f"time: {self.processing_time_ms}ms ({self.bytes_per_second:.0f} bytes/sec), "
                f"restoration: {self.restoration_success}")
