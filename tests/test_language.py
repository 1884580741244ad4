"""Unit tests for language detection and normalization."""

from unittest.mock import patch

import pytest

from language.detector import detect_language, detect_language_outcome, looks_transliterated
from language.normalizer import (
    SUPPORTED_LANGUAGES,
    language_name,
    normalize_language,
    resolve_language,
)


class TestDetectLanguage:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("नमस्ते, मैं कौन हूँ?", "hi-IN"),
            ("நான் யார்?", "ta-IN"),
            ("నేను ఎవరు?", "te-IN"),
            ("ನಾನು ಯಾರು?", "kn-IN"),
            ("ഞാൻ ആരാണ്?", "ml-IN"),
            ("আমি কে?", "bn-IN"),
            ("હું કોણ છું?", "gu-IN"),
            ("ਮੈਂ ਕੌਣ ਹਾਂ?", "pa-IN"),
            ("ମୁଁ କିଏ?", "or-IN"),
            ("من أنا؟", "ar"),
            ("我是谁", "zh"),
            ("わたしはだれ", "ja"),
            ("나는 누구인가", "ko"),
            ("Кто я?", "ru"),
        ],
    )
    def test_script_blocks(self, text, expected):
        assert detect_language(text) == expected

    def test_plain_english_defaults_to_en_in(self):
        assert detect_language("Who am I?") == "en-IN"

    def test_empty_text_defaults(self):
        assert detect_language("") == "en-IN"

    def test_transliterated_telugu(self):
        assert detect_language("nenu evaru ante emi") == "te-IN"

    def test_transliteration_needs_plain_ascii(self):
        # The Tamil block wins once non-ASCII characters are present
        assert detect_language("emi நான்") == "ta-IN"

    def test_latin_cues(self):
        assert detect_language("hola, quien soy yo") == "es"
        assert detect_language("bonjour mon ami") == "fr"
        assert detect_language("hallo danke") == "de"

    def test_language_name_cue_for_devanagari(self):
        assert detect_language("marathi: मी कोण आहे?") == "mr-IN"
        assert detect_language("sanskrit कोऽहम्") == "sa-IN"

    def test_language_name_cue_for_bengali_script(self):
        assert detect_language("assamese মই কোন?") == "as-IN"

    def test_deterministic(self):
        text = "నేను ఎవరు?"
        assert detect_language(text) == detect_language(text)

    def test_none_input_degrades_without_raising(self):
        outcome = detect_language_outcome(None)
        assert outcome.value == "en-IN"
        assert outcome.degraded
        assert "language detection failed" in outcome.reason

    def test_internal_error_is_contained(self):
        with patch("language.detector._detect", side_effect=RuntimeError("boom")):
            assert detect_language("anything") == "en-IN"


class TestLooksTransliterated:
    def test_detects_keyword(self):
        assert looks_transliterated("meeru ela unnaru")

    def test_plain_question(self):
        assert not looks_transliterated("Who am I?")


class TestNormalizeLanguage:
    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("en-IN", "en"),
            ("te-IN", "te"),
            ("HI", "hi"),
            ("pt_BR", "pt"),
            ("zh", "zh"),
            ("xx-YY", "en"),
            ("", "en"),
            (None, "en"),
        ],
    )
    def test_normalize(self, tag, expected):
        assert normalize_language(tag) == expected

    def test_allow_list_has_23_codes(self):
        assert len(SUPPORTED_LANGUAGES) == 23

    @pytest.mark.parametrize(
        "text", ["Who am I?", "నేను ఎవరు?", "Кто я?", "", "🙏", "emi", "我是谁"]
    )
    def test_normalized_detection_is_supported(self, text):
        assert normalize_language(detect_language(text)) in SUPPORTED_LANGUAGES

    def test_language_name(self):
        assert language_name("te") == "Telugu"
        assert language_name("te-IN") == "Telugu"
        assert language_name("xx") == "English"


class TestResolveLanguage:
    def test_explicit_code_wins(self):
        outcome = resolve_language("te-IN", "Who am I?")
        assert outcome.value == "te"
        assert not outcome.degraded

    def test_auto_detects(self):
        assert resolve_language("auto", "நான் யார்?").value == "ta"

    def test_missing_code_detects(self):
        assert resolve_language(None, "Who am I?").value == "en"
