# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import pytest

from mdtranslate.ir.chunk import TranslationOutcome
from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.translator.base import CallableTranslator, ChunkTranslationError, IdentityTranslator
from mdtranslate.translator.md_translator import MDTranslator, MDTranslatorConfig
from mdtranslate.utils.markdown_utils import CodeBlockRestorationError
from tests.conftest import FakeTranslator


@pytest.mark.asyncio
async def test_translate_document_keeps_code(sample_markdown):
    document = MarkdownDocument(identifier="guide.md", raw_text=sample_markdown)
    translator = MDTranslator(MDTranslatorConfig(chunk_size=120), translate_agent=FakeTranslator())
    await translator.translate_async(document)

    assert document.report.accepted, document.report.issues
    assert "# GETTING STARTED" in document.translated_text
    assert "```python\nimport demo\n# not a header\ndemo.run()\n```" in document.translated_text
    assert "`pip install demo`" in document.translated_text
    assert "~~~\nraw block\n~~~" in document.translated_text
    assert len(document.chunks) > 1
    assert document.statistics.restoration_success
    assert document.statistics.fenced_code_blocks == 2
    assert document.statistics.inline_code_blocks == 2
    assert document.statistics.total_chunks == len(document.chunks)


def test_identity_translation_is_lossless(sample_markdown):
    document = MarkdownDocument(identifier="guide.md", raw_text=sample_markdown)
    MDTranslator(MDTranslatorConfig(skip_translate=True, chunk_size=64)).translate(document)
    assert document.translated_text == sample_markdown
    assert document.report.accepted


@pytest.mark.asyncio
async def test_lost_anchor_is_fatal(sample_markdown):
    document = MarkdownDocument(identifier="guide.md", raw_text=sample_markdown)
    agent = FakeTranslator(transform=lambda text: text.replace("__CODE_ANCHOR_1__", "(code)"))
    with pytest.raises(CodeBlockRestorationError) as exc:
        await MDTranslator(MDTranslatorConfig(), translate_agent=agent).translate_async(document)

    assert exc.value.missing == ["__CODE_ANCHOR_1__"]
    assert document.translated_text is None
    assert document.statistics.restoration_success is False


def test_prepare_and_finalize():
    document = MarkdownDocument(identifier="a.md", raw_text="# Title\n\nRun `make`.\n")
    translator = MDTranslator(MDTranslatorConfig(skip_translate=True))
    assert translator.prepare(document).accepted
    assert document.clean_text == "# Title\n\nRun __CODE_ANCHOR_0__.\n"

    outcomes = [TranslationOutcome(0, "# Titel\n\nFühre __CODE_ANCHOR_0__ aus.", succeeded=True)]
    report = translator.finalize(document, outcomes)
    assert report.accepted
    assert document.translated_text == "# Titel\n\nFühre `make` aus.\n"


def test_finalize_rejects_wrong_outcome_count():
    document = MarkdownDocument(identifier="a.md", raw_text="text\n")
    translator = MDTranslator(MDTranslatorConfig(skip_translate=True))
    translator.prepare(document)
    with pytest.raises(ValueError):
        translator.finalize(document, [])


def test_empty_document_is_rejected_before_translation():
    document = MarkdownDocument(identifier="empty.md", raw_text="\n\n")
    translator = MDTranslator(MDTranslatorConfig(skip_translate=True))
    report = translator.prepare(document)
    assert not report.accepted
    assert document.chunks == []


def test_preflight_warnings_are_kept_in_report():
    document = MarkdownDocument(identifier="a.md", raw_text="#Title\n\ntext\n")
    MDTranslator(MDTranslatorConfig(skip_translate=True)).translate(document)
    assert document.report.accepted
    assert any("missing space" in warning for warning in document.report.warnings)


def test_missing_endpoint_without_skip_translate():
    with pytest.raises(ValueError):
        MDTranslator(MDTranslatorConfig())


def test_skip_translate_uses_identity():
    translator = MDTranslator(MDTranslatorConfig(skip_translate=True))
    assert isinstance(translator.translate_agent, IdentityTranslator)


@pytest.mark.asyncio
async def test_callable_translator_wraps_sync_and_async():
    sync = CallableTranslator(lambda text, use_fallback: text[::-1])
    assert await sync.translate_async("abc") == "cba"

    async def translate(text, use_fallback):
        return f"{text}:{use_fallback}"

    assert await CallableTranslator(translate).translate_async("x", use_fallback=True) == "x:True"

    def broken(text, use_fallback):
        raise RuntimeError("down")

    with pytest.raises(ChunkTranslationError):
        await CallableTranslator(broken).translate_async("x")

    errors = []
    CallableTranslator(broken, on_error=errors.append).on_first_model_error(RuntimeError("first"))
    assert len(errors) == 1


@pytest.mark.asyncio
async def test_sent_and_received_chunks_are_saved(tmp_path, sample_markdown):
    document = MarkdownDocument(identifier="docs/guide.md", raw_text=sample_markdown)
    config = MDTranslatorConfig(chunk_size=120, save_sent_dir=str(tmp_path / "sent"),
                                save_received_dir=str(tmp_path / "received"))
    await MDTranslator(config, translate_agent=FakeTranslator()).translate_async(document)

    sent = sorted((tmp_path / "sent" / "docs_guide.md").iterdir())
    received = sorted((tmp_path / "received" / "docs_guide.md").iterdir())
    assert [p.name for p in sent] == [f"sent{i}.md" for i in range(len(document.chunks))]
    assert [p.name for p in received] == [f"received{i}.md" for i in range(len(document.chunks))]
    assert (tmp_path / "sent" / "docs_guide.md" / "sent0.md").read_text(encoding="utf-8") == document.chunks[0].content
    assert (tmp_path / "received" / "docs_guide.md" / "received0.md").read_text(encoding="utf-8") == (
        document.chunks[0].content.upper()
    )


@pytest.mark.asyncio
async def test_received_chunks_are_saved_when_anchors_break(tmp_path, sample_markdown):
    document = MarkdownDocument(identifier="guide.md", raw_text=sample_markdown)
    agent = FakeTranslator(transform=lambda text: text.replace("__CODE_ANCHOR_1__", ""))
    config = MDTranslatorConfig(save_received_dir=str(tmp_path))
    with pytest.raises(CodeBlockRestorationError):
        await MDTranslator(config, translate_agent=agent).translate_async(document)
    received = (tmp_path / "guide.md" / "received0.md").read_text(encoding="utf-8")
    assert "__CODE_ANCHOR_0__" in received
    assert "__CODE_ANCHOR_1__" not in received
