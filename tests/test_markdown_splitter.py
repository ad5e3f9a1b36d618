# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import pytest

from mdtranslate.utils.markdown_splitter import (
    MarkdownBlockSplitter,
    get_statistics,
    join_markdown_texts,
    split_markdown_text,
)
from mdtranslate.utils.markdown_utils import extract_code_regions, restore_code_regions


def _sections(count: int) -> str:
    return "# Title\n\n" + "".join(f"## Section {i}\n\n" + "para " * 50 + "\n\n" for i in range(count))


def test_empty_input_gives_no_chunks():
    assert split_markdown_text("") == []


def test_small_document_is_one_chunk():
    chunks = split_markdown_text("# Hello\n\nWorld\n")
    assert len(chunks) == 1
    assert chunks[0].section_kind == "header"
    assert chunks[0].content == "# Hello\n\nWorld\n"

    chunks = split_markdown_text("just text\n")
    assert chunks[0].section_kind == "paragraph"


def test_header_strategy_respects_budget_and_boundaries():
    text = _sections(20)
    chunks = split_markdown_text(text, max_bytes=600)

    assert len(chunks) > 1
    assert "".join(c.content for c in chunks) == text
    assert [c.ordinal_index for c in chunks] == list(range(len(chunks)))
    for chunk in chunks:
        assert chunk.utf8_byte_size <= 600
        assert chunk.section_kind == "header"
        assert chunk.content.startswith("#")


def test_deeper_headers_are_not_boundaries():
    text = "# Top\n\n" + "".join(f"#### Deep {i}\n\n" + "x" * 80 + "\n\n" for i in range(10))
    chunks = split_markdown_text(text, max_bytes=300, header_level=3)
    # no usable header boundary after the first line, paragraphs are used instead
    assert all(c.section_kind == "paragraph" for c in chunks)
    assert "".join(c.content for c in chunks) == text


def test_paragraph_strategy():
    text = "\n\n".join(["word " * 40] * 10) + "\n"
    chunks = split_markdown_text(text, max_bytes=500)

    assert len(chunks) > 1
    assert "".join(c.content for c in chunks) == text
    for chunk in chunks:
        assert chunk.utf8_byte_size <= 500
        assert chunk.section_kind == "paragraph"
        assert chunk.content.startswith("word")


def test_leading_blank_lines_stay_with_first_paragraph():
    units = MarkdownBlockSplitter._split_by_paragraphs("\n\nfirst\n\nsecond\n")
    assert units == ["\n\nfirst\n\n", "second\n"]


def test_line_strategy_packs_whole_lines():
    text = "\n".join(f"line {i} " + "x" * 30 for i in range(100)) + "\n"
    chunks = split_markdown_text(text, max_bytes=200)

    assert "".join(c.content for c in chunks) == text
    for chunk in chunks:
        assert chunk.utf8_byte_size <= 200
        assert chunk.section_kind == "line"
        assert chunk.content.endswith("\n")


def test_oversized_line_is_kept_whole():
    text = "a" * 1000
    chunks = split_markdown_text(text, max_bytes=100)
    assert len(chunks) == 1
    assert chunks[0].content == text
    assert chunks[0].section_kind == "line"


def test_oversized_section_falls_back_to_paragraphs():
    big = "# Big\n\n" + "\n\n".join(["text " * 30] * 6) + "\n\n"
    text = big + "# Small\n\nshort\n"
    chunks = split_markdown_text(text, max_bytes=400)

    assert "".join(c.content for c in chunks) == text
    assert {c.section_kind for c in chunks} == {"paragraph", "header"}
    assert all(c.utf8_byte_size <= 400 for c in chunks)


def test_sizes_are_utf8_bytes():
    text = ("é" * 30 + "\n") * 10
    chunks = split_markdown_text(text, max_bytes=130)

    assert "".join(c.content for c in chunks) == text
    for chunk in chunks:
        assert chunk.utf8_byte_size == len(chunk.content.encode("utf-8"))
        assert chunk.utf8_byte_size <= 130
    assert chunks[0].utf8_byte_size == 122
    assert chunks[0].code_unit_size == 62


def test_emoji_counts_two_code_units():
    chunk = split_markdown_text("😀\n")[0]
    assert chunk.utf8_byte_size == 5
    assert chunk.code_unit_size == 3


def test_invalid_budget():
    with pytest.raises(ValueError):
        split_markdown_text("text", max_bytes=0)


def test_statistics():
    chunks = split_markdown_text(_sections(20), max_bytes=600)
    stats = get_statistics(chunks)
    assert stats["total_chunks"] == len(chunks)
    assert stats["total_bytes"] == sum(c.utf8_byte_size for c in chunks)
    assert stats["min_bytes"] <= stats["average_bytes"] <= stats["max_bytes"] <= 600
    assert get_statistics([])["total_chunks"] == 0


def test_join_restores_newlines_dropped_by_translation():
    originals = ["# A\n\ntext\n\n", "## B\n\nmore\n"]
    translated = ["# A'\n\ntext'", "## B'\n\nmore'"]
    assert join_markdown_texts(translated, originals) == "# A'\n\ntext'\n\n## B'\n\nmore'\n"


def test_join_never_glues_header_to_prose():
    originals = ["para\n", "# Header\n"]
    translated = ["absatz", "# Kopf"]
    assert join_markdown_texts(translated, originals) == "absatz\n# Kopf\n"


def test_join_keeps_untouched_chunks_verbatim():
    originals = ["\n\nintro\n\n", "  \n"]
    assert join_markdown_texts(originals, originals) == "\n\nintro\n\n  \n"


def test_join_without_originals():
    assert join_markdown_texts(["- a", "- b"]) == "- a\n- b"
    assert join_markdown_texts(["| a |", "| b |"]) == "| a |\n| b |"
    assert join_markdown_texts(["para", "# H"]) == "para\n\n# H"
    assert join_markdown_texts([]) == ""


def test_join_length_mismatch():
    with pytest.raises(ValueError):
        join_markdown_texts(["a"], ["a", "b"])


@pytest.mark.parametrize("max_bytes", [40, 120, 20480])
def test_round_trip_identity(sample_markdown, max_bytes):
    clean, regions = extract_code_regions(sample_markdown)
    chunks = split_markdown_text(clean, max_bytes=max_bytes)
    contents = [c.content for c in chunks]
    joined = join_markdown_texts(contents, contents)
    assert restore_code_regions(joined, regions) == sample_markdown
