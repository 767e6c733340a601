"""Tests for placeholder protection of variables, specifiers and links."""
import pytest

from polytrans.translation.protector import (
    SubstringProtector,
    protect_substrings,
    restore_substrings,
)


@pytest.fixture
def protector():
    return SubstringProtector()


class TestProtect:

    @pytest.mark.parametrize("span", [
        "$USER",
        "${HOME}",
        "${config.path}",
        "%s",
        "%d",
        "%5.2f",
        "%-10s",
        "%(name)s",
        "[docs](https://example.com/docs)",
        "![logo](img/logo.png)",
        '<a href="/x">here</a>',
        "https://example.com/a?b=c",
    ])
    def test_span_is_hidden_and_restored(self, protector, span):
        text = f"See {span} now"
        protected, placeholders = protector.protect(text)

        assert span not in protected
        assert list(placeholders.values()) == [span]
        assert protector.restore(protected, placeholders) == text

    def test_distinct_token_per_occurrence(self, protector):
        protected, placeholders = protector.protect("$A and $B and $A")

        assert len(placeholders) == 3
        assert len(set(placeholders)) == 3
        assert sorted(placeholders.values()) == ["$A", "$A", "$B"]
        for token in placeholders:
            assert protected.count(token) == 1

    def test_text_without_spans_unchanged(self, protector):
        assert protector.protect("Nothing to hide here") == ("Nothing to hide here", {})

    def test_percentage_in_prose_not_protected(self, protector):
        protected, placeholders = protector.protect("50% of users")
        assert placeholders == {}
        assert protected == "50% of users"

    def test_prefix_collision_extends_marker(self, protector):
        text = "POLYREF is a word, $X is a variable"
        protected, placeholders = protector.protect(text)

        token = next(iter(placeholders))
        assert token.startswith("POLYREFX")
        assert protector.restore(protected, placeholders) == text

    def test_custom_patterns(self):
        protector = SubstringProtector(patterns=[r'\{\{[^}]+\}\}'])
        protected, placeholders = protector.protect("Hi {{name}}, $USER")

        assert list(placeholders.values()) == ["{{name}}"]
        assert "$USER" in protected

    def test_no_patterns(self):
        protector = SubstringProtector(patterns=[])
        assert protector.protect("$USER") == ("$USER", {})


class TestRestore:

    def test_reordered_tokens(self, protector):
        protected, placeholders = protector.protect("$A before $B")
        first, second = list(placeholders)
        engine_output = f"{second} nach {first}"

        assert protector.restore(engine_output, placeholders) == "$B nach $A"

    def test_case_changed_by_engine(self, protector):
        protected, placeholders = protector.protect("Hello $USER")
        engine_output = protected.replace("POLYREF", "Polyref")

        assert protector.restore(engine_output, placeholders) == "Hello $USER"

    def test_many_tokens_not_clipped(self, protector):
        text = " ".join(f"$V{i}" for i in range(12))
        protected, placeholders = protector.protect(text)

        assert len(placeholders) == 12
        assert protector.restore(protected, placeholders) == text

    def test_replacement_with_backslashes(self, protector):
        text = r"Path https://example.com/\1\g<0>"
        protected, placeholders = protector.protect(text)

        assert protector.restore(protected, placeholders) == text

    def test_empty_mapping(self):
        assert SubstringProtector.restore("Olá", {}) == "Olá"


def test_module_level_helpers():
    protected, placeholders = protect_substrings("Hello %s")
    assert "%s" not in protected
    assert restore_substrings(protected, placeholders) == "Hello %s"
