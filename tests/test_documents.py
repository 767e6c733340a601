"""Tests for document unit extraction and rendering."""
import json

import pytest

from conftest import FakeBackend

from polytrans.translation.cache import TranslationCache
from polytrans.translation.documents import (
    HtmlDocument,
    JsonDocument,
    MarkdownDocument,
    TextDocument,
    apply_json_translations,
    collect_json_strings,
    load_document,
    output_path,
    translate_document,
)
from polytrans.translation.scheduler import TranslationScheduler
from polytrans.translation.translator import TranslationInvoker


def upper(units):
    return [unit.upper() for unit in units]


class TestTextDocument:

    def test_one_unit_per_non_blank_line(self):
        document = TextDocument("Hello\n\nWorld\n")
        assert document.units == ["Hello", "World"]

    def test_render_keeps_blank_lines(self):
        document = TextDocument("Hello\n\nWorld\n")
        assert document.render(upper(document.units)) == "HELLO\n\nWORLD\n"

    def test_render_rejects_wrong_count(self):
        document = TextDocument("Hello\nWorld")
        with pytest.raises(ValueError):
            document.render(["Only one"])


class TestMarkdownDocument:

    def test_markers_and_code_blocks(self):
        text = "\n".join([
            "# Title",
            "",
            "- first item",
            "1. numbered",
            "**bold** text",
            "```",
            "code stays",
            "```",
            "Last line",
        ])
        document = MarkdownDocument(text)

        assert document.units == ["Title", "first item", "numbered", "**bold** text", "Last line"]

        rendered = document.render(upper(document.units))
        assert rendered.split("\n") == [
            "# TITLE",
            "",
            "- FIRST ITEM",
            "1. NUMBERED",
            "**BOLD** TEXT",
            "```",
            "code stays",
            "```",
            "LAST LINE",
        ]

    def test_marker_only_line_skipped(self):
        assert MarkdownDocument("#\n- \nText").units == ["Text"]


class TestHtmlDocument:

    def test_tags_hidden_from_units(self):
        document = HtmlDocument("<p>Hello <b>world</b></p>\n<br/>\n")

        assert len(document.units) == 1
        assert "<" not in document.units[0]

        rendered = document.render(upper(document.units))
        assert rendered == "<p>HELLO <b>WORLD</b></p>\n<br/>\n"


class TestJsonDocument:

    def test_string_leaves_collected_in_order(self):
        data = {"menu": {"open": "Open", "count": 3, "flags": [True, None]}, "tags": ["a", ""]}
        assert collect_json_strings(data) == ["Open", "a"]

    def test_apply_translations_keeps_structure(self):
        data = {"menu": {"open": "Open", "count": 3}, "tags": ["a", ""]}
        rebuilt = apply_json_translations(data, ["Öffnen", "b"])

        assert rebuilt == {"menu": {"open": "Öffnen", "count": 3}, "tags": ["b", ""]}
        assert data["menu"]["open"] == "Open"

    def test_render(self):
        document = JsonDocument('{"greeting": "Hello", "n": 1}')
        rendered = document.render(["Olá"])

        assert json.loads(rendered) == {"greeting": "Olá", "n": 1}
        assert "Olá" in rendered
        assert rendered.endswith("\n")

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            JsonDocument("{broken")


class TestFiles:

    @pytest.mark.parametrize("name,document_type", [
        ("notes.txt", TextDocument),
        ("README.md", MarkdownDocument),
        ("index.HTML", HtmlDocument),
        ("en.json", JsonDocument),
        ("LICENSE", TextDocument),
    ])
    def test_load_document_by_extension(self, tmp_path, name, document_type):
        path = tmp_path / name
        path.write_text('{"a": "b"}' if name.endswith(".json") else "Hello", encoding="utf-8")

        assert type(load_document(path)) is document_type

    def test_output_path(self, tmp_path):
        assert output_path("docs/README.md", "pt_BR") == output_path("docs/README.md", "pt_BR")
        assert output_path("docs/README.md", "pt_BR").name == "README-pt_BR.md"
        assert output_path("docs/README.md", "de", tmp_path) == tmp_path / "README-de.md"
        assert output_path("LICENSE", "fr").name == "LICENSE-fr.txt"

    def test_translate_document(self, tmp_path, no_sleep):
        source = tmp_path / "guide.md"
        source.write_text("# Welcome\n\nRun `$CMD` now\n", encoding="utf-8")
        invoker = TranslationInvoker(backend=FakeBackend(), engine="fake", sleep=no_sleep)
        scheduler = TranslationScheduler(TranslationCache(tmp_path / "cache.json"), invoker)

        rendered, result = translate_document(source, ["de", "fr"], scheduler)

        assert rendered["de"] == "# de:Welcome\n\nde:Run `$CMD` now\n"
        assert rendered["fr"].startswith("# fr:Welcome")
        assert result.stats["net_calls"] == 4
