# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re
from dataclasses import dataclass
from logging import Logger

import httpx

from mdtranslate.agents.agent import AgentConfig, Agent, AgentResultError
from mdtranslate.translator.base import ChunkTranslator

_WRAPPING_FENCE = re.compile(r"^\s*```(?:markdown|md)?[ \t]*\n(.*?)\n```\s*$", re.DOTALL)


@dataclass(kw_only=True)
class MDTranslateAgentConfig(AgentConfig):
    to_lang: str
    fallback_model_id: str | None = None
    custom_prompt: str | None = None


class MDTranslateAgent(Agent, ChunkTranslator):
    def __init__(self, config: MDTranslateAgentConfig):
        super().__init__(config)
        self.fallback_model_id = config.fallback_model_id.strip() if config.fallback_model_id else None
        self.system_prompt = f"""
# Role
- You are a professional machine translation engine for technical Markdown documents.
# Task
- Translate the Markdown text given by the user into the target language.
- Target language: {config.to_lang}
# Requirements
- Output only the translated Markdown. Do not add explanations and do not wrap the output in a code block.
- Keep the Markdown structure exactly: the same headers (same number of '#'), lists, tables, block quotes, blank lines and line breaks.
- Tokens of the form __CODE_ANCHOR_<number>__ stand for code. Copy every one of them exactly once, unchanged, in the matching position.
- Do not translate link labels or URLs: in [text][label] and [label]: url only the text part may be translated.
- Keep HTML tags, URLs, file paths and front matter keys as they are.
- If a part is already in the target language ({config.to_lang}), keep it as is.
"""
        self.custom_prompt = config.custom_prompt
        if config.custom_prompt:
            self.system_prompt += "\n# **Important rules or background** \n" + self.custom_prompt + '\nEND\n'
        self._client: httpx.AsyncClient | None = None

    @staticmethod
    def _result_handler(result: str, origin_prompt: str, logger: Logger) -> str:
        if not result.strip():
            if origin_prompt.strip():
                raise AgentResultError("Empty result while original is non-empty")
            return result
        # Some models wrap the whole answer in a markdown code block
        match = _WRAPPING_FENCE.match(result)
        if match and not origin_prompt.lstrip().startswith("```"):
            logger.debug("Removed code block wrapping the translation")
            return match.group(1)
        return result

    async def __aenter__(self):
        self.token_counter.reset()
        self._client = self.create_client()
        self.logger.info(
            f"base-url:{self.baseurl}, model-id:{self.model_id}, fallback-model-id:{self.fallback_model_id}, "
            f"temperature:{self.temperature}, system_proxy:{self.system_proxy_enable}"
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.token_counter.log_stats()
        return False

    async def translate_async(self, text: str, *, use_fallback: bool = False) -> str:
        model_id = self.fallback_model_id if use_fallback and self.fallback_model_id else self.model_id
        if self._client is not None:
            return await self.send_async(self._client, text, model_id=model_id, result_handler=self._result_handler)
        async with self.create_client() as client:
            return await self.send_async(client, text, model_id=model_id, result_handler=self._result_handler)

    def on_first_model_error(self, error: Exception) -> None:
        target = self.fallback_model_id or self.model_id
        self.logger.warning(f"Model {self.model_id} failed ({error}), retrying chunk with {target}")
