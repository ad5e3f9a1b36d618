# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import json
import logging

import httpx
import pytest

from mdtranslate.agents import MDTranslateAgent, MDTranslateAgentConfig
from mdtranslate.agents.agent import extract_token_info
from mdtranslate.translator.base import ChunkTranslationError


def _completion(content: str, usage: dict | None = None) -> dict:
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return body


def _agent(monkeypatch, handler, **kwargs) -> MDTranslateAgent:
    config = MDTranslateAgentConfig(base_url="https://llm.example.com/v1/", api_key="secret",
                                    model_id="primary", to_lang="German", **kwargs)
    agent = MDTranslateAgent(config)
    monkeypatch.setattr(agent, "create_client",
                        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return agent


@pytest.mark.asyncio
async def test_translate_chunk(monkeypatch):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        payload = json.loads(request.content)
        return httpx.Response(200, json=_completion(payload["messages"][1]["content"].replace("Hello", "Hallo"),
                                                    {"prompt_tokens": 10, "completion_tokens": 4}))

    agent = _agent(monkeypatch, handler)
    async with agent:
        assert await agent.translate_async("# Hello __CODE_ANCHOR_0__") == "# Hallo __CODE_ANCHOR_0__"

    request = requests[0]
    assert str(request.url) == "https://llm.example.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    payload = json.loads(request.content)
    assert payload["model"] == "primary"
    assert "German" in payload["messages"][0]["content"]
    assert agent.token_counter.get_stats()["total_tokens"] == 14
    assert agent._client is None


@pytest.mark.asyncio
async def test_fallback_model_is_requested(monkeypatch):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        models.append(json.loads(request.content)["model"])
        return httpx.Response(200, json=_completion("ok"))

    agent = _agent(monkeypatch, handler, fallback_model_id="backup")
    await agent.translate_async("text")
    await agent.translate_async("text", use_fallback=True)
    assert models == ["primary", "backup"]


@pytest.mark.asyncio
async def test_without_fallback_model_the_primary_is_reused(monkeypatch):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        models.append(json.loads(request.content)["model"])
        return httpx.Response(200, json=_completion("ok"))

    await _agent(monkeypatch, handler).translate_async("text", use_fallback=True)
    assert models == ["primary"]


@pytest.mark.asyncio
async def test_server_errors_exhaust_retries(monkeypatch):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(500, text="boom")

    agent = _agent(monkeypatch, handler, retry=1)
    with pytest.raises(ChunkTranslationError) as exc:
        await agent.translate_async("text")
    assert len(attempts) == 2
    assert exc.value.model_id == "primary"


@pytest.mark.asyncio
async def test_retry_recovers(monkeypatch):
    responses = [httpx.Response(503), httpx.Response(200, json=_completion("fine"))]

    agent = _agent(monkeypatch, lambda request: responses.pop(0), retry=2)
    assert await agent.translate_async("text") == "fine"


@pytest.mark.asyncio
async def test_empty_result_is_an_error(monkeypatch):
    agent = _agent(monkeypatch, lambda request: httpx.Response(200, json=_completion("  ")), retry=0)
    with pytest.raises(ChunkTranslationError):
        await agent.translate_async("some text")


def test_wrapping_code_block_is_removed():
    logger = logging.getLogger("test")
    handler = MDTranslateAgent._result_handler
    assert handler("```markdown\n# Titel\n\nText\n```", "# Title\n\nText", logger) == "# Titel\n\nText"
    assert handler("```\nx = 1\n```", "```\nx = 1\n```", logger) == "```\nx = 1\n```"
    assert handler("", "", logger) == ""


def test_custom_prompt_is_appended():
    agent = MDTranslateAgent(MDTranslateAgentConfig(base_url="https://x.io", model_id="m", to_lang="French",
                                                    custom_prompt="Keep 'widget' untranslated."))
    assert agent.system_prompt.endswith("Keep 'widget' untranslated.\nEND\n")
    assert agent.key == "xx"


def test_extract_token_info():
    assert extract_token_info({}) == (0, 0, 0, 0)
    usage = {
        "prompt_tokens": 100,
        "completion_tokens": 50,
        "prompt_tokens_details": {"cached_tokens": 30},
        "completion_tokens_details": {"reasoning_tokens": 20},
    }
    assert extract_token_info({"usage": usage}) == (100, 30, 50, 20)
    assert extract_token_info({"usage": {"prompt_tokens": 5, "prompt_cache_hit_tokens": 2}}) == (5, 2, 0, 0)
