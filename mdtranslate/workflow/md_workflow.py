# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import logging
import time
from dataclasses import dataclass, field

from mdtranslate.ir.markdown_document import MarkdownDocument, ValidationReport
from mdtranslate.ir.statistics import TranslationStatistics
from mdtranslate.logger import global_logger
from mdtranslate.scheduler.scheduler import Scheduler
from mdtranslate.translator.base import ChunkTranslator
from mdtranslate.translator.md_translator import MDTranslatorConfig, MDTranslator
from mdtranslate.utils.markdown_utils import CodeBlockRestorationError
from mdtranslate.utils.marker import attach_translated_marker, has_translated_marker
from mdtranslate.workflow.file_store import FileDocumentStore
from mdtranslate.workflow.interfaces import DocumentStore


@dataclass(kw_only=True)
class MarkdownBatchWorkflowConfig:
    logger: logging.Logger = global_logger
    translator_config: MDTranslatorConfig
    skip_translated: bool = True
    attach_marker: bool = True


@dataclass
class DocumentResult:
    identifier: str
    succeeded: bool
    skipped: bool = False
    output: str | None = None
    error: str | None = None
    report: ValidationReport | None = None
    statistics: TranslationStatistics | None = None


@dataclass
class BatchResult:
    results: list[DocumentResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for result in self.results if not result.succeeded)

    @property
    def failed(self) -> list[DocumentResult]:
        return [result for result in self.results if not result.succeeded]


class MarkdownBatchWorkflow:
    """
    Translate a batch of Markdown documents.

    All documents share one scheduler, so the concurrency budget holds for the whole batch.
    A document is written only after its code was restored and both validators accepted it,
    a failing document never stops the others.
    """

    def __init__(self, config: MarkdownBatchWorkflowConfig, store: DocumentStore | None = None,
                 translate_agent: ChunkTranslator | None = None):
        self.config = config
        self.logger = config.logger
        config.translator_config.logger = config.logger
        self.store = store or FileDocumentStore()
        self.translator = MDTranslator(config.translator_config, translate_agent=translate_agent)
        self.scheduler = Scheduler(config.translator_config.concurrent, self.logger)

    async def _read(self, identifier: str) -> tuple[MarkdownDocument | None, DocumentResult | None]:
        try:
            raw_text = await asyncio.to_thread(self.store.read, identifier)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"{identifier}: cannot read document: {e}")
            return None, DocumentResult(identifier, succeeded=False, error=f"read error: {e}")

        if self.config.skip_translated and has_translated_marker(raw_text):
            self.logger.info(f"{identifier}: already translated, skipped")
            return None, DocumentResult(identifier, succeeded=True, skipped=True)

        document = MarkdownDocument(identifier=identifier, raw_text=raw_text)
        report = self.translator.prepare(document)
        if not report.accepted:
            return None, DocumentResult(identifier, succeeded=False, error="; ".join(report.issues), report=report)
        return document, None

    async def _finish(self, document: MarkdownDocument, outcomes) -> DocumentResult:
        try:
            report = self.translator.finalize(document, outcomes)
        except CodeBlockRestorationError as e:
            self.logger.error(str(e))
            return DocumentResult(document.identifier, succeeded=False, error=str(e),
                                  report=document.report, statistics=document.statistics)

        if not report.accepted:
            return DocumentResult(document.identifier, succeeded=False, error="; ".join(report.issues),
                                  report=report, statistics=document.statistics)

        content = document.translated_text
        if self.config.attach_marker:
            content = attach_translated_marker(content)
        try:
            output = await asyncio.to_thread(self.store.write, document.identifier, content)
        except OSError as e:
            self.logger.error(f"{document.identifier}: cannot write translation: {e}")
            return DocumentResult(document.identifier, succeeded=False, error=f"write error: {e}",
                                  report=report, statistics=document.statistics)
        self.logger.info(f"{document.identifier}: written to {output}")
        return DocumentResult(document.identifier, succeeded=True, output=output,
                              report=report, statistics=document.statistics)

    async def translate_async(self, identifiers: list[str]) -> BatchResult:
        started = time.perf_counter()
        results: list[DocumentResult | None] = [None] * len(identifiers)
        documents: list[MarkdownDocument] = []
        positions: list[int] = []

        for position, identifier in enumerate(identifiers):
            document, result = await self._read(identifier)
            if document is None:
                results[position] = result
            else:
                documents.append(document)
                positions.append(position)

        if documents:
            self.logger.info(f"Translating {len(documents)} documents")
            async with self.translator.translate_agent as agent:
                all_outcomes = await self.scheduler.schedule(documents, agent)
            for position, document, outcomes in zip(positions, documents, all_outcomes):
                results[position] = await self._finish(document, outcomes)

        batch = BatchResult(results=results, elapsed_seconds=time.perf_counter() - started)
        self.logger.info(f"Batch done: {batch.success_count} succeeded, {batch.failure_count} failed "
                         f"in {batch.elapsed_seconds:.1f}s (peak concurrency {self.scheduler.peak_in_flight})")
        return batch

    def translate(self, identifiers: list[str]) -> BatchResult:
        return asyncio.run(self.translate_async(identifiers))
