"""Heuristic language detection from script blocks and lexical cues."""

from __future__ import annotations

import logging
import re

from core.outcome import Outcome

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_TAG = "en-IN"

# Common romanized Telugu words
TELUGU_TRANSLIT = re.compile(r"(ante|emi|emiti|ela|vundali|bagunnara|santosham)", re.IGNORECASE)
_PLAIN_ASCII = re.compile(r"^[a-z0-9\s?,!.:'\"-]+$", re.IGNORECASE)

_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_BENGALI = re.compile(r"[\u0980-\u09FF]")

# Script blocks with a language-name cue; checked before the generic block.
_CUED_SCRIPTS: list[tuple[re.Pattern, tuple[str, ...], str]] = [
    (_DEVANAGARI, ("मराठी", "marathi"), "mr-IN"),
    (_DEVANAGARI, ("संस्कृत", "sanskrit"), "sa-IN"),
    (_BENGALI, ("অসমীয়া", "assamese"), "as-IN"),
]

_SCRIPTS: list[tuple[re.Pattern, str]] = [
    (_DEVANAGARI, "hi-IN"),
    (re.compile(r"[\u0B80-\u0BFF]"), "ta-IN"),
    (re.compile(r"[\u0C00-\u0C7F]"), "te-IN"),
    (re.compile(r"[\u0C80-\u0CFF]"), "kn-IN"),
    (re.compile(r"[\u0D00-\u0D7F]"), "ml-IN"),
    (_BENGALI, "bn-IN"),
    (re.compile(r"[\u0A80-\u0AFF]"), "gu-IN"),
    (re.compile(r"[\u0A00-\u0A7F]"), "pa-IN"),
    (re.compile(r"[\u0B00-\u0B7F]"), "or-IN"),
    (re.compile(r"[\u0600-\u06FF]"), "ar"),
    (re.compile(r"[\u4E00-\u9FFF]"), "zh"),
    (re.compile(r"[\u3040-\u309F\u30A0-\u30FF]"), "ja"),
    (re.compile(r"[\uAC00-\uD7AF]"), "ko"),
]

# Latin-script languages: (diacritics, lexical cues, tag)
_LATIN: list[tuple[re.Pattern, tuple[str, ...], str]] = [
    (re.compile(r"[áéíóúñü]", re.IGNORECASE), ("hola", "gracias", "por favor"), "es"),
    (re.compile(r"[àâäéèêëïîôöùûüÿç]", re.IGNORECASE), ("bonjour", "merci"), "fr"),
    (re.compile(r"[äöüß]", re.IGNORECASE), ("hallo", "danke"), "de"),
    (re.compile(r"[àèéìíîòóù]", re.IGNORECASE), ("ciao", "grazie"), "it"),
    (re.compile(r"[ãâáàçéêíóôõú]", re.IGNORECASE), ("olá", "obrigado"), "pt"),
]

_CYRILLIC = re.compile(r"[\u0400-\u04FF]")


def looks_transliterated(text: str) -> bool:
    """True when the text contains romanized Telugu keywords."""
    return bool(TELUGU_TRANSLIT.search(text or ""))


def _detect(text: str) -> str:
    lower = text.lower()

    if looks_transliterated(lower) and _PLAIN_ASCII.match(text):
        return "te-IN"

    for pattern, cues, tag in _CUED_SCRIPTS:
        if pattern.search(text) and any(cue in lower for cue in cues):
            return tag

    for pattern, tag in _SCRIPTS:
        if pattern.search(text):
            return tag

    for pattern, cues, tag in _LATIN:
        if pattern.search(text) or any(cue in lower for cue in cues):
            return tag

    if _CYRILLIC.search(text):
        return "ru"

    return DEFAULT_LANGUAGE_TAG


def detect_language_outcome(text: str) -> Outcome[str]:
    """Detect the language tag of ``text``; degraded when detection errored."""
    try:
        return Outcome.ok(_detect(text))
    except Exception as e:
        logger.warning("Language detection failed, using %s: %s", DEFAULT_LANGUAGE_TAG, e)
        return Outcome.degrade(DEFAULT_LANGUAGE_TAG, f"language detection failed: {e}")


def detect_language(text: str) -> str:
    """Classify raw input text into a region-qualified language tag.

    Never raises; text without any signal falls back to ``en-IN``.
    """
    return detect_language_outcome(text).value
