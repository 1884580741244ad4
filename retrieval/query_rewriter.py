"""Query rewriting, translation and keyword expansion for improved retrieval."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.config import settings
from core.outcome import Outcome
from language.detector import looks_transliterated
from language.normalizer import normalize_language

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from core.models import HistoryMessage

logger = logging.getLogger(__name__)

# Sanskrit/English duals and title synonyms
EXPANSION_GROUPS: list[tuple[str, ...]] = [
    ("who am i", "nan yar", "self inquiry", "atma vichara"),
    ("arunachala", "mount arunachala", "tiruvannamalai"),
    ("surrender", "prapatti", "bhakti"),
    ("grace", "kripa"),
    ("meditation", "dhyana"),
]


def _default_client() -> AsyncOpenAI | None:
    if not settings.openai_api_key:
        return None
    from openai import AsyncOpenAI

    return AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)


async def _complete(openai_client: AsyncOpenAI, prompt: str) -> str:
    response = await openai_client.chat.completions.create(
        model=settings.llm_model,
        messages=[{"role": "user", "content": prompt}],
        temperature=0.0,
        timeout=settings.rewrite_timeout,
    )
    return (response.choices[0].message.content or "").strip()


async def rewrite_with_history(
    message: str,
    history: list[HistoryMessage],
    openai_client: AsyncOpenAI | None = None,
) -> Outcome[str]:
    """Restate the latest question so it is self-contained.

    Only the last two turns are used. The rewrite feeds retrieval and is never
    shown to the user; any failure returns the original message.

    Args:
        message: Latest user question
        history: Prior conversation turns
        openai_client: Optional AsyncOpenAI client instance

    Returns:
        Outcome holding the rewritten (or original) question
    """
    if not history:
        return Outcome.ok(message)

    if openai_client is None:
        openai_client = _default_client()
        if openai_client is None:
            return Outcome.degrade(message, "rewrite skipped: no API key")

    recent = "\n".join(f"{m.role}: {m.content}" for m in history[-2:])
    prompt = (
        "Rewrite the user's latest question so it is fully self-contained, "
        "preserving meaning, and concise.\n"
        f"Recent context:\n{recent}\n"
        f"Question: {message}\n"
        "Rewritten:"
    )

    try:
        rewritten = await _complete(openai_client, prompt)
    except Exception as e:
        logger.warning("History-aware rewrite failed, using original query: %s", e)
        return Outcome.degrade(message, f"rewrite failed: {e}")

    if not rewritten:
        return Outcome.degrade(message, "rewrite returned empty output")

    logger.debug("Rewrote query: %s -> %s", message, rewritten)
    return Outcome.ok(rewritten)


async def translate_to_english(
    text: str, language: str, openai_client: AsyncOpenAI | None = None
) -> Outcome[str]:
    """Translate a question into the indexing language (English).

    English text passes through untouched unless it looks like romanized
    Telugu. Any failure returns the untranslated text.
    """
    if normalize_language(language) == "en" and not looks_transliterated(text):
        return Outcome.ok(text)

    if openai_client is None:
        openai_client = _default_client()
        if openai_client is None:
            return Outcome.degrade(text, "translation skipped: no API key")

    prompt = (
        "Translate the following user question into English in one line, "
        "preserving the exact meaning, without any extra commentary or quotes.\n"
        f"Text: {text}"
    )

    try:
        translated = await _complete(openai_client, prompt)
    except Exception as e:
        logger.warning("Translation to English failed, using original text: %s", e)
        return Outcome.degrade(text, f"translation failed: {e}")

    if not translated:
        return Outcome.degrade(text, "translation returned empty output")

    logger.debug("Translated query (%s): %s -> %s", language, text, translated)
    return Outcome.ok(translated)


def expand_query_terms(query: str) -> list[str]:
    """Return the synonym groups touched by the query, flattened and de-duplicated."""
    lower = (query or "").lower()
    expansions: list[str] = []
    for group in EXPANSION_GROUPS:
        if any(term in lower for term in group):
            for term in group:
                if term not in expansions:
                    expansions.append(term)
    return expansions
