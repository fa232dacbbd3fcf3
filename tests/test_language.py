"""
Unit tests for the EN/ES display heuristic.
"""

import pytest

from language import detect_language, display_pair, looks_spanish, other_language, tag


class TestLooksSpanish:

    def test_spanish_punctuation(self):
        assert looks_spanish("Hola, ¿cómo estás?")

    def test_english(self):
        assert not looks_spanish("Hello, how are you?")

    def test_no_hints_defaults_to_english(self):
        assert detect_language("Buenos dias amigo") == "en"

    @pytest.mark.parametrize("text", ["GRACIAS", "hola amigo", "Usted primero", "el señor", "hablo Español"])
    def test_keywords_case_insensitive(self, text):
        assert looks_spanish(text)

    def test_keyword_must_be_a_word(self):
        assert not looks_spanish("Holanda is a country")

    def test_empty_and_none(self):
        assert not looks_spanish("")
        assert not looks_spanish(None)


class TestDisplay:

    def test_tag(self):
        assert tag("Hello", "en") == "[EN] Hello"
        assert tag(None, "es") == "[ES] "

    def test_other_language(self):
        assert other_language("en") == "es"
        assert other_language("es") == "en"

    def test_english_source(self):
        assert display_pair("Hello", "Hola") == ("[EN] Hello", "[ES] Hola")

    def test_spanish_source(self):
        assert display_pair("¿Algo más?", "Anything else?") == ("[EN] Anything else?", "[ES] ¿Algo más?")
