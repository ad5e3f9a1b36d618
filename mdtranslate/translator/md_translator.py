# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from mdtranslate.context.md_mask_context import MDMaskCodeContext
from mdtranslate.ir.chunk import TranslationOutcome
from mdtranslate.ir.markdown_document import MarkdownDocument, ValidationReport
from mdtranslate.ir.statistics import TranslationStatistics
from mdtranslate.logger import global_logger
from mdtranslate.scheduler.scheduler import Scheduler
from mdtranslate.translator import default_params
from mdtranslate.translator.base import ChunkTranslator, IdentityTranslator
from mdtranslate.utils.markdown_splitter import split_markdown_text, join_markdown_texts
from mdtranslate.utils.markdown_utils import extract_code_regions, restore_code_regions, CodeBlockRestorationError
from mdtranslate.validators import validate_translation, validate_markdown


@dataclass(kw_only=True)
class MDTranslatorConfig:
    logger: logging.Logger = global_logger
    base_url: str | None = field(
        default=None,
        metadata={"description": "OpenAI compatible endpoint, required unless skip_translate is set"},
    )
    api_key: str | None = None
    model_id: str | None = field(
        default=None, metadata={"description": "Required unless skip_translate is set"}
    )
    fallback_model_id: str | None = field(
        default=None, metadata={"description": "Model used for a chunk after the primary model failed on it"}
    )
    to_lang: str = default_params["to_lang"]
    custom_prompt: str | None = None
    chunk_size: int = default_params["chunk_size"]
    header_level: int = default_params["header_level"]
    concurrent: int = default_params["concurrent"]
    temperature: float = default_params["temperature"]
    timeout: int = default_params["timeout"]
    retry: int = default_params["retry"]
    system_proxy_enable: bool = False
    skip_translate: bool = False
    save_sent_dir: str | None = field(
        default=None, metadata={"description": "Write every chunk as sent to the translator into this directory"}
    )
    save_received_dir: str | None = field(
        default=None, metadata={"description": "Write every translated chunk, before code restoration, into this directory"}
    )


_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]+")


def dump_chunks(directory: str, identifier: str, prefix: str, texts: list[str]) -> Path:
    """
    Write texts as <directory>/<identifier>/<prefix><index>.md, one file per chunk.
    The identifier is flattened into a single directory name.
    """
    target = Path(directory) / _UNSAFE_NAME_CHARS.sub("_", identifier).strip("_")
    target.mkdir(parents=True, exist_ok=True)
    for index, text in enumerate(texts):
        with open(target / f"{prefix}{index}.md", "w", encoding="utf-8", newline="") as f:
            f.write(text)
    return target


class MDTranslator:
    """
    Runs one or more Markdown documents through mask, split, translate, join, restore and validate.

    prepare() and finalize() are the two halves around the scheduler so that a
    workflow can schedule the chunks of many documents together.
    """

    def __init__(self, config: MDTranslatorConfig, translate_agent: ChunkTranslator | None = None):
        self.config = config
        self.logger = config.logger
        self.chunk_size = config.chunk_size
        self.header_level = config.header_level
        self.translate_agent = translate_agent
        if self.translate_agent is None:
            self.translate_agent = self._create_agent(config)

    def _create_agent(self, config: MDTranslatorConfig) -> ChunkTranslator:
        if config.skip_translate:
            return IdentityTranslator(logger=self.logger)
        if config.base_url is None or config.model_id is None:
            raise ValueError("When skip_translate is False, base_url and model_id are required")
        from mdtranslate.agents.markdown_agent import MDTranslateAgent, MDTranslateAgentConfig
        agent_config = MDTranslateAgentConfig(custom_prompt=config.custom_prompt,
                                              to_lang=config.to_lang,
                                              base_url=config.base_url,
                                              api_key=config.api_key,
                                              model_id=config.model_id,
                                              fallback_model_id=config.fallback_model_id,
                                              temperature=config.temperature,
                                              concurrent=config.concurrent,
                                              timeout=config.timeout,
                                              logger=self.logger,
                                              retry=config.retry,
                                              system_proxy_enable=config.system_proxy_enable)
        return MDTranslateAgent(agent_config)

    def _split(self, document: MarkdownDocument) -> ValidationReport:
        preflight = validate_markdown(document.clean_text, document.identifier)
        for warning in preflight.warnings:
            self.logger.warning(f"{document.identifier}: {warning}")
        document.report = ValidationReport(structure_ok=preflight.is_valid,
                                           issues=list(preflight.issues),
                                           warnings=list(preflight.warnings))
        if not preflight.is_valid:
            self.logger.error(f"{document.identifier}: rejected before translation: {'; '.join(preflight.issues)}")
            document.chunks = []
            return document.report

        document.chunks = split_markdown_text(document.clean_text, self.chunk_size, self.header_level, self.logger)
        if self.config.save_sent_dir:
            target = dump_chunks(self.config.save_sent_dir, document.identifier, "sent",
                                 [chunk.content for chunk in document.chunks])
            self.logger.debug(f"{document.identifier}: sent chunks saved to {target}")
        self.logger.info(f"{document.identifier}: {len(document.regions)} code regions protected, "
                         f"split into {len(document.chunks)} chunks")
        return document.report

    def _join(self, document: MarkdownDocument, outcomes: list[TranslationOutcome]) -> str:
        if len(outcomes) != len(document.chunks):
            raise ValueError(f"{document.identifier}: expected {len(document.chunks)} outcomes, got {len(outcomes)}")
        document.outcomes = sorted(outcomes, key=lambda outcome: outcome.ordinal_index)
        if self.config.save_received_dir:
            target = dump_chunks(self.config.save_received_dir, document.identifier, "received",
                                 [outcome.translated_content for outcome in document.outcomes])
            self.logger.debug(f"{document.identifier}: received chunks saved to {target}")
        if document.failed_chunks:
            self.logger.warning(f"{document.identifier}: {document.failed_chunks} chunks kept untranslated")
        return join_markdown_texts([outcome.translated_content for outcome in document.outcomes],
                                   [chunk.content for chunk in document.chunks])

    def _validate(self, document: MarkdownDocument) -> ValidationReport:
        report = validate_translation(document.raw_text, document.translated_text)
        if document.report is not None:
            report.warnings = document.report.warnings + report.warnings
        document.report = report
        if report.accepted:
            self.logger.info(f"{document.identifier}: validation {report.summary()}")
        else:
            self.logger.error(f"{document.identifier}: validation failed: {'; '.join(report.issues)}")
        for warning in report.warnings:
            self.logger.debug(f"{document.identifier}: {warning}")
        return report

    def _record_statistics(self, document: MarkdownDocument, restoration_success: bool):
        document.statistics = TranslationStatistics.from_document(
            document, time.perf_counter() - document.started_at, restoration_success
        )
        self.logger.info(f"{document.identifier}: {document.statistics}")

    def prepare(self, document: MarkdownDocument) -> ValidationReport:
        """
        Mask the code of a document and split its clean text.
        A document whose returned report is not accepted must not be scheduled.
        """
        document.clean_text, document.regions = extract_code_regions(document.raw_text, self.logger)
        return self._split(document)

    def finalize(self, document: MarkdownDocument, outcomes: list[TranslationOutcome]) -> ValidationReport:
        """
        Join the translated chunks, restore the code and validate the result.
        Raises CodeBlockRestorationError when the anchors did not survive translation.
        """
        translated_clean = self._join(document, outcomes)
        try:
            document.translated_text = restore_code_regions(translated_clean, document.regions, document.identifier)
        except CodeBlockRestorationError:
            document.translated_text = None
            self._record_statistics(document, restoration_success=False)
            raise
        report = self._validate(document)
        self._record_statistics(document, restoration_success=True)
        return report

    async def translate_async(self, document: MarkdownDocument, scheduler: Scheduler | None = None) -> Self:
        self.logger.info("Translating markdown")
        scheduler = scheduler or Scheduler(self.config.concurrent, self.logger)
        document.translated_text = None
        try:
            with MDMaskCodeContext(document, self.logger):
                report = self._split(document)
                if not report.accepted:
                    return self
                async with self.translate_agent:
                    outcomes = (await scheduler.schedule([document], self.translate_agent))[0]
                document.translated_text = self._join(document, outcomes)
        except CodeBlockRestorationError:
            document.translated_text = None
            self._record_statistics(document, restoration_success=False)
            raise
        self._validate(document)
        self._record_statistics(document, restoration_success=True)
        self.logger.info("Translation completed")
        return self

    def translate(self, document: MarkdownDocument) -> Self:
        return asyncio.run(self.translate_async(document))
