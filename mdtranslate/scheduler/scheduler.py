# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import logging
from collections import deque

from mdtranslate.ir.chunk import Chunk, TranslationOutcome
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.logger import global_logger
from mdtranslate.scheduler.admission import plan_admission_batches
from mdtranslate.translator.base import ChunkTranslator, ChunkTranslationError


class Scheduler:
    """
    Translate the chunks of many documents with at most global_chunk_budget
    translator calls in flight at any moment.

    Documents are admitted in batches whose total chunk count fits the budget,
    batches run one after another. Inside a batch a fixed pool of workers
    drains the chunks document by document. The budget is also enforced by a
    semaphore owned by the scheduler, so concurrent schedule() calls on the same
    instance share it.
    """

    def __init__(self, global_chunk_budget: int = 10, logger: logging.Logger = global_logger):
        if global_chunk_budget < 1:
            raise ValueError(f"global_chunk_budget must be at least 1, got {global_chunk_budget}")
        self.global_chunk_budget = global_chunk_budget
        self.logger = logger
        self.in_flight = 0
        self.peak_in_flight = 0
        self._semaphore: asyncio.Semaphore | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _slots(self) -> asyncio.Semaphore:
        # A semaphore is bound to the loop it first waits on, sync callers may run several loops
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self.global_chunk_budget)
            self._loop = loop
        return self._semaphore

    async def schedule(self, documents: list[MarkdownDocument],
                       translator: ChunkTranslator) -> list[list[TranslationOutcome]]:
        """
        Returns one outcome list per document, aligned with documents,
        each list indexed by chunk ordinal_index.
        """
        results: list[list[TranslationOutcome | None]] = [[None] * len(doc.chunks) for doc in documents]
        total = sum(len(doc.chunks) for doc in documents)
        if total == 0:
            return [[] for _ in documents]

        batches = plan_admission_batches(documents, self.global_chunk_budget)
        self.logger.info(f"Scheduling {total} chunks from {len(documents)} documents in {len(batches)} batches; "
                         f"concurrency: {self.global_chunk_budget}")
        count = 0

        for batch_number, batch in enumerate(batches, start=1):
            if batch.oversized:
                self.logger.info(f"Batch {batch_number}/{len(batches)}: {batch.documents[0].identifier} alone "
                                 f"({batch.estimated_chunks} chunks, above the budget)")
            else:
                self.logger.debug(f"Batch {batch_number}/{len(batches)}: {len(batch.documents)} documents, "
                                  f"{batch.estimated_chunks} chunks")

            queue: deque[tuple[int, Chunk]] = deque(
                (index, chunk) for index, document in zip(batch.indices, batch.documents) for chunk in document.chunks
            )

            async def worker():
                nonlocal count
                while queue:
                    index, chunk = queue.popleft()
                    results[index][chunk.ordinal_index] = await self._translate_chunk(chunk, translator)
                    count += 1
                    self.logger.info(f"Coroutine progress: {count}/{total}")

            await asyncio.gather(*(worker() for _ in range(min(self.global_chunk_budget, len(queue)))))

        return results

    async def _attempt(self, chunk: Chunk, translator: ChunkTranslator, use_fallback: bool) -> str:
        async with self._slots():
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                result = await translator.translate_async(chunk.content, use_fallback=use_fallback)
            finally:
                self.in_flight -= 1
        if not isinstance(result, str) or not result.strip():
            raise ChunkTranslationError(f"Empty translation for chunk {chunk.ordinal_index}")
        return result

    async def _translate_chunk(self, chunk: Chunk, translator: ChunkTranslator) -> TranslationOutcome:
        if chunk.is_blank:
            return TranslationOutcome(chunk.ordinal_index, chunk.content, succeeded=True)

        # Any translator failure is contained to this chunk
        try:
            translated = await self._attempt(chunk, translator, use_fallback=False)
            return TranslationOutcome(chunk.ordinal_index, translated, succeeded=True)
        except Exception as first_error:
            try:
                translator.on_first_model_error(first_error)
            except Exception as hook_error:
                self.logger.error(f"Chunk {chunk.ordinal_index}: first model error hook failed: {hook_error!r}")

        try:
            translated = await self._attempt(chunk, translator, use_fallback=True)
            return TranslationOutcome(chunk.ordinal_index, translated, succeeded=True, used_fallback_model=True)
        except Exception as second_error:
            self.logger.error(f"Chunk {chunk.ordinal_index} failed with the fallback model too, "
                              f"keeping the original text: {second_error}")
            return TranslationOutcome(chunk.ordinal_index, chunk.content, succeeded=False, used_fallback_model=True)
