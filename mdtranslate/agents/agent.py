# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0

import asyncio
import logging
import os
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable
from urllib.parse import urlparse

import httpx

from mdtranslate.logger import global_logger
from mdtranslate.translator.base import ChunkTranslationError


class AgentResultError(ValueError):
    """AI returned a response but it is invalid. Retried like a transport error."""

    def __init__(self, message):
        super().__init__(message)


@dataclass(kw_only=True)
class AgentConfig:
    logger: logging.Logger = global_logger
    base_url: str
    api_key: str | None = None
    model_id: str
    temperature: float = 0.7
    concurrent: int = 10
    timeout: int = 1200  # seconds (httpx read timeout)
    retry: int = 2
    system_proxy_enable: bool = False


def extract_token_info(response_data: dict) -> tuple[int, int, int, int]:
    """
    Extract token usage info from provider responses.

    Supported shapes:
    1) usage.input_tokens_details.cached_tokens and usage.output_tokens_details.reasoning_tokens
    2) usage.prompt_tokens_details.cached_tokens
    3) usage.prompt_cache_hit_tokens and usage.completion_tokens_details.reasoning_tokens

    Returns:
        tuple: (input_tokens, cached_tokens, output_tokens, reasoning_tokens)
    """
    usage = response_data.get("usage")
    if not isinstance(usage, dict):
        return 0, 0, 0, 0

    input_tokens = usage.get("prompt_tokens", 0) or 0
    output_tokens = usage.get("completion_tokens", 0) or 0

    cached_tokens = 0
    reasoning_tokens = 0
    if isinstance(usage.get("input_tokens_details"), dict) and "cached_tokens" in usage["input_tokens_details"]:
        cached_tokens = usage["input_tokens_details"]["cached_tokens"]
    elif isinstance(usage.get("prompt_tokens_details"), dict) and "cached_tokens" in usage["prompt_tokens_details"]:
        cached_tokens = usage["prompt_tokens_details"]["cached_tokens"]
    elif "prompt_cache_hit_tokens" in usage:
        cached_tokens = usage["prompt_cache_hit_tokens"]

    if isinstance(usage.get("output_tokens_details"), dict) and "reasoning_tokens" in usage["output_tokens_details"]:
        reasoning_tokens = usage["output_tokens_details"]["reasoning_tokens"]
    elif (isinstance(usage.get("completion_tokens_details"), dict)
          and "reasoning_tokens" in usage["completion_tokens_details"]):
        reasoning_tokens = usage["completion_tokens_details"]["reasoning_tokens"]
    return input_tokens, cached_tokens or 0, output_tokens, reasoning_tokens or 0


class TokenCounter:
    def __init__(self, logger: logging.Logger):
        self.lock = Lock()
        self.input_tokens = 0
        self.cached_tokens = 0
        self.output_tokens = 0
        self.reasoning_tokens = 0
        self.total_tokens = 0
        self.logger = logger

    def add(self, input_tokens: int, cached_tokens: int, output_tokens: int, reasoning_tokens: int):
        with self.lock:
            self.input_tokens += input_tokens
            self.cached_tokens += cached_tokens
            self.output_tokens += output_tokens
            self.reasoning_tokens += reasoning_tokens
            self.total_tokens += input_tokens + output_tokens

    def get_stats(self):
        with self.lock:
            return {
                "input_tokens": self.input_tokens,
                "cached_tokens": self.cached_tokens,
                "output_tokens": self.output_tokens,
                "reasoning_tokens": self.reasoning_tokens,
                "total_tokens": self.total_tokens,
            }

    def log_stats(self):
        stats = self.get_stats()
        self.logger.info(
            f"Token usage - input: {stats['input_tokens'] / 1000:.2f}K (cached: {stats['cached_tokens'] / 1000:.2f}K), "
            f"output: {stats['output_tokens'] / 1000:.2f}K (reasoning: {stats['reasoning_tokens'] / 1000:.2f}K), "
            f"total: {stats['total_tokens'] / 1000:.2f}K"
        )

    def reset(self):
        with self.lock:
            self.input_tokens = 0
            self.cached_tokens = 0
            self.output_tokens = 0
            self.reasoning_tokens = 0
            self.total_tokens = 0


ResultHandlerType = Callable[[str, str, logging.Logger], Any]


class Agent:
    """OpenAI-compatible chat completions client."""

    def __init__(self, config: AgentConfig):
        self.baseurl = config.base_url.strip().rstrip("/")
        self.domain = urlparse(self.baseurl).netloc
        self.key = config.api_key.strip() if config.api_key else "xx"
        self.model_id = config.model_id.strip()
        self.system_prompt = ""
        self.temperature = config.temperature
        self.max_concurrent = config.concurrent
        self.timeout = httpx.Timeout(connect=5, read=config.timeout, write=300, pool=10)
        self.logger = config.logger
        self.token_counter = TokenCounter(logger=self.logger)
        self.retry = config.retry
        self.system_proxy_enable = config.system_proxy_enable

    def create_client(self) -> httpx.AsyncClient:
        limits = httpx.Limits(
            max_connections=self.max_concurrent * 2,
            max_keepalive_connections=self.max_concurrent,
        )
        # Proxy settings come from the environment only when explicitly enabled
        return httpx.AsyncClient(trust_env=self.system_proxy_enable, limits=limits)

    def _prepare_request_data(self, prompt: str, system_prompt: str, model_id: str, temperature=None, top_p=0.9):
        if temperature is None:
            temperature = self.temperature
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.key}",
        }
        # Provider-specific header adjustments
        if self.domain == "generativelanguage.googleapis.com":
            headers.pop("Authorization", None)
            headers["x-goog-api-key"] = self.key
        elif self.domain.endswith("openrouter.ai"):
            ref = os.getenv("OPENROUTER_REFERRER") or os.getenv("HTTP_REFERER")
            title = os.getenv("OPENROUTER_TITLE")
            if ref:
                headers["HTTP-Referer"] = ref
            if title:
                headers["X-Title"] = title
        data = {
            "model": model_id,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "top_p": top_p,
        }
        return headers, data

    async def send_async(
            self,
            client: httpx.AsyncClient,
            prompt: str,
            system_prompt: None | str = None,
            model_id: str | None = None,
            result_handler: ResultHandlerType = None,
    ) -> Any:
        """
        Send one prompt, retrying up to self.retry times on transport or result errors.
        Raises ChunkTranslationError once all attempts failed.
        """
        if system_prompt is None:
            system_prompt = self.system_prompt
        model_id = model_id or self.model_id
        headers, data = self._prepare_request_data(prompt, system_prompt, model_id)
        last_error: Exception | None = None

        for retry_count in range(self.retry + 1):
            if retry_count > 0:
                self.logger.info(f"Retrying {retry_count}/{self.retry} ...")
                await asyncio.sleep(0.5)
            try:
                response = await client.post(
                    f"{self.baseurl}/chat/completions",
                    json=data,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                response_data = response.json()
                result = response_data["choices"][0]["message"]["content"]
                self.token_counter.add(*extract_token_info(response_data))

                if retry_count > 0:
                    self.logger.info(f"Retry succeeded ({retry_count}/{self.retry}).")
                return result if result_handler is None else result_handler(result, prompt, self.logger)

            except AgentResultError as e:
                self.logger.error(f"AI returned invalid result: {e}")
                last_error = e
            except httpx.HTTPStatusError as e:
                self.logger.error(f"HTTP status error (async): {e.response.status_code} - {e.response.text}")
                last_error = e
            except httpx.RequestError as e:
                self.logger.error(f"Request error (async): {e!r}")
                last_error = e
            except (KeyError, IndexError, TypeError, ValueError) as e:
                self.logger.error(f"Response format/value error (async), will retry: {e!r}")
                last_error = e

        self.logger.error(f"All retries failed for model {model_id}; reached retry limit.")
        raise ChunkTranslationError(f"{model_id}: {last_error!r}", model_id=model_id) from last_error
