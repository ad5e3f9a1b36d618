# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from mdtranslate.logger import global_logger


class ChunkTranslationError(RuntimeError):
    """A single chunk could not be translated. Recovered per chunk, never fatal for a document."""

    def __init__(self, message: str, *, model_id: str | None = None):
        super().__init__(message)
        self.model_id = model_id


class ChunkTranslator(ABC):
    """
    The translation service as seen by the scheduler.

    translate_async receives one chunk of clean text (code already replaced by anchors)
    and returns its translation. use_fallback=True asks for the secondary model.
    on_first_model_error is called once per chunk whose primary attempt failed,
    before the fallback attempt.
    Implementations may be used as async context managers to hold a connection pool
    for the duration of a run.
    """
    logger: logging.Logger = global_logger

    @abstractmethod
    async def translate_async(self, text: str, *, use_fallback: bool = False) -> str: ...

    def on_first_model_error(self, error: Exception) -> None:
        self.logger.warning(f"Primary translation attempt failed, retrying with fallback: {error}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class IdentityTranslator(ChunkTranslator):
    """Returns every chunk unchanged. Used for dry runs."""

    def __init__(self, logger: logging.Logger = global_logger):
        self.logger = logger

    async def translate_async(self, text: str, *, use_fallback: bool = False) -> str:
        return text


TranslateFunc = Callable[..., str] | Callable[..., Awaitable[str]]


class CallableTranslator(ChunkTranslator):
    """
    Adapt a plain function to the ChunkTranslator interface.
    The function is called as func(text, use_fallback=...); sync functions run in a worker thread.
    Any exception it raises is reported as ChunkTranslationError.
    """

    def __init__(self, func: TranslateFunc, on_error: Callable[[Exception], None] | None = None,
                 logger: logging.Logger = global_logger):
        self.func = func
        self.on_error = on_error
        self.logger = logger

    async def translate_async(self, text: str, *, use_fallback: bool = False) -> str:
        try:
            if inspect.iscoroutinefunction(self.func):
                return await self.func(text, use_fallback=use_fallback)
            return await asyncio.to_thread(self.func, text, use_fallback=use_fallback)
        except ChunkTranslationError:
            raise
        except Exception as e:
            raise ChunkTranslationError(f"{type(e).__name__}: {e}") from e

    def on_first_model_error(self, error: Exception) -> None:
        if self.on_error is not None:
            self.on_error(error)
        else:
            super().on_first_model_error(error)
