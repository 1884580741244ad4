"""Language tag normalization."""

from __future__ import annotations

from core.outcome import Outcome
from language.detector import detect_language_outcome

DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "ml": "Malayalam",
    "bn": "Bengali",
    "gu": "Gujarati",
    "mr": "Marathi",
    "pa": "Punjabi",
    "or": "Odia",
    "as": "Assamese",
    "sa": "Sanskrit",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
}

SUPPORTED_LANGUAGES = frozenset(LANGUAGE_NAMES)


def normalize_language(tag: str | None) -> str:
    """Map a tag like ``en-IN`` to a supported short code, else ``en``."""
    if not tag:
        return DEFAULT_LANGUAGE
    base = str(tag).strip().lower().replace("_", "-").split("-")[0]
    return base if base in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def resolve_language(language_code: str | None, message: str) -> Outcome[str]:
    """Normalized language of a request: explicit code, or detected when "auto"."""
    if language_code and language_code.strip().lower() != "auto":
        return Outcome.ok(normalize_language(language_code))
    detected = detect_language_outcome(message)
    return Outcome(normalize_language(detected.value), detected.degraded, detected.reason)


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(normalize_language(code), "English")
