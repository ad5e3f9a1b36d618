# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
from typing import Callable

import pytest

from mdtranslate.ir.chunk import Chunk
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.translator.base import ChunkTranslator, ChunkTranslationError
from mdtranslate.workflow.interfaces import DocumentStore


class FakeTranslator(ChunkTranslator):
    """
    Scriptable translator.
    transform maps chunk text to its translation, delay gives the latency per chunk,
    texts containing a fail_primary marker fail on the primary model, fail_all markers fail on both.
    """

    def __init__(self, transform: Callable[[str], str] = str.upper, delay: Callable[[str], float] | None = None,
                 fail_primary: tuple[str, ...] = (), fail_all: tuple[str, ...] = ()):
        self.transform = transform
        self.delay = delay or (lambda text: 0)
        self.fail_primary = fail_primary
        self.fail_all = fail_all
        self.calls: list[tuple[str, bool]] = []
        self.first_model_errors: list[Exception] = []
        self.active = 0
        self.max_active = 0

    async def translate_async(self, text: str, *, use_fallback: bool = False) -> str:
        self.calls.append((text, use_fallback))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay(text))
            if any(marker in text for marker in self.fail_all):
                raise ChunkTranslationError("service unavailable")
            if not use_fallback and any(marker in text for marker in self.fail_primary):
                raise ChunkTranslationError("primary model refused")
            return self.transform(text)
        finally:
            self.active -= 1

    def on_first_model_error(self, error: Exception) -> None:
        self.first_model_errors.append(error)


class MemoryStore(DocumentStore):
    def __init__(self, documents: dict[str, str] | None = None):
        self.documents = dict(documents or {})
        self.written: dict[str, str] = {}

    def read(self, identifier: str) -> str:
        if identifier not in self.documents:
            raise FileNotFoundError(identifier)
        return self.documents[identifier]

    def write(self, identifier: str, content: str) -> str:
        self.written[identifier] = content
        return f"memory://{identifier}"

    def exists(self, identifier: str) -> bool:
        return identifier in self.documents


def make_document(identifier: str, chunk_count: int) -> MarkdownDocument:
    chunks = [Chunk.from_content(f"{identifier} chunk {i}\n", ordinal_index=i) for i in range(chunk_count)]
    raw_text = "".join(chunk.content for chunk in chunks)
    return MarkdownDocument(identifier=identifier, raw_text=raw_text, clean_text=raw_text, chunks=chunks)


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def sample_markdown():
    return (
        "---\n"
        "title: Guide\n"
        "---\n"
        "# Getting started\n"
        "\n"
        "Install the package with `pip install demo` and read [the docs][docs].\n"
        "\n"
        "## Usage\n"
        "\n"
        "```python\n"
        "import demo\n"
        "# not a header\n"
        "demo.run()\n"
        "```\n"
        "\n"
        "- first item\n"
        "- second item\n"
        "\n"
        "> a quote with ``code ` inside``\n"
        "\n"
        "### Details\n"
        "\n"
        "~~~\n"
        "raw block\n"
        "~~~\n"
        "\n"
        "[docs]: https://example.com/docs\n"
    )
