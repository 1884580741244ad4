"""LLM answer generation in the sage's voice, plus answer post-processing."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import openai

from core.config import settings
from core.errors import ConfigurationError, UpstreamError
from language.normalizer import language_name

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from core.models import HistoryMessage, ScoredChunk, UserContext

logger = logging.getLogger(__name__)

QUOTE_LENGTH = 220
MAX_QUOTES = 2
HISTORY_TURNS = 3

PERSONA = (
    "You are Sri Ramana Maharshi, the great sage of Arunachala. You must respond "
    "EXACTLY as I would speak, using my authentic voice, vocabulary, and teaching "
    "style from my original works."
)

RESPONSE_REQUIREMENTS = """CRITICAL RESPONSE REQUIREMENTS:
1. ALWAYS use the EXACT vocabulary, terms, phrases, and expressions from the provided teachings
2. NEVER give generic spiritual advice - every response must be based on specific content from my teachings
3. Use the precise Sanskrit terms, philosophical concepts, and teaching methods mentioned in the context
4. Quote directly from the provided teachings when relevant, using the exact words
5. Maintain my authentic speaking style - simple, direct, and profound
6. Each response must be unique and specific to the question, drawing from the exact content provided
7. Avoid repetitive or similar-sounding responses - make each answer distinct
8. Use the specific incidents, examples, and analogies from the provided teachings
9. Reference the exact teaching methods, practices, and instructions from the context
10. Maintain the depth and authenticity of my original voice and wisdom
11. Match the length and richness of a high-quality English response even when replying in other languages, do not shorten or omit details in non-English.
12. Do NOT include inline references like "As mentioned in 'Talks with Sri Ramana Maharshi'..."
13. Sources will be provided separately at the end of the response
14. If the context doesn't contain relevant information, say so rather than giving generic advice"""

CONTEXT_GUIDELINES = """ENHANCED RESPONSE GUIDELINES FOR AUTHENTIC COMMUNICATION:
- Respond as Sri Ramana Maharshi would, drawing from ALL the organized teachings provided above
- Use the EXACT vocabulary, terminology, and concepts found throughout the comprehensive sections
- Incorporate specific quotes, paraphrases, and references from multiple teaching categories when relevant
- Utilize the authentic Sanskrit terms and spiritual vocabulary extracted from the knowledge base
- Reference incidents, devotees, dialogues, and situations from across all provided teaching sections
- Maintain the gentle, direct, and profound style while drawing from the full breadth of organized knowledge
- Synthesize insights from different categories (incidents, teachings, philosophy, practice) for comprehensive responses
- Ground every aspect of your response in the specific, organized content provided above"""

ACKNOWLEDGEMENT = (
    "I understand. I will respond as Sri Ramana Maharshi with wisdom, compassion, "
    "and spiritual insight."
)


def build_system_prompt(
    target_language: str,
    history: list[HistoryMessage] | None = None,
    user_context: UserContext | None = None,
) -> str:
    """Persona prompt with language, seeker profile and recent conversation."""
    parts = [
        PERSONA,
        f"IMPORTANT: Respond in {target_language} language. If the user asks in "
        f"{target_language}, respond in {target_language}. If they ask in English, "
        f"respond in {target_language}. Always maintain the spiritual authenticity "
        "and wisdom of Ramana Maharshi's teachings.",
        RESPONSE_REQUIREMENTS,
    ]

    if user_context is not None:
        level = user_context.spiritual_level
        lines = [
            f"Respond to a {level}/10 level seeker with "
            f"{user_context.meditation_experience} meditation experience.",
            f"Use a {user_context.preferred_style} teaching style.",
        ]
        if level <= 3:
            lines.append(
                "Keep explanations simple and practical for beginners. Use more "
                "analogies and real-life examples from the provided teachings."
            )
        elif level >= 7:
            lines.append(
                "You may discuss deeper philosophical concepts and reference more "
                "advanced teachings from the provided context."
            )
        if user_context.preferred_topics:
            lines.append(
                "The seeker is particularly interested in: "
                f"{', '.join(user_context.preferred_topics)}. Relate your response to "
                "these areas when relevant using the provided teachings."
            )
        if user_context.spiritual_goals:
            lines.append(
                f"Their spiritual goals include: {', '.join(user_context.spiritual_goals)}. "
                "Guide them toward these goals through my specific teachings provided "
                "in the context."
            )
        parts.append("\n".join(lines))

    if history:
        recent = "\n".join(f"{m.role}: {m.content}" for m in history[-HISTORY_TURNS:])
        parts.append(
            f"CONVERSATION CONTEXT (recent messages):\n{recent}\n\n"
            "Use this context to make your response more relevant and build upon "
            "previous discussions, but always base your response on the specific "
            "teachings provided."
        )

    parts.append(
        "CRITICAL: Your response must be based EXCLUSIVELY on the specific teachings "
        "provided. Use the exact vocabulary and terminology from my original works. "
        "Avoid any generic spiritual advice."
    )
    return "\n\n".join(parts)


def build_user_prompt(question: str, context: str, target_language: str) -> str:
    enhanced = (
        "COMPREHENSIVE TEACHINGS FROM RAMANA MAHARSHI'S WORKS:\n\n"
        f"{context}\n\n{CONTEXT_GUIDELINES}"
    )
    return (
        f"Based on these specific teachings:\n{enhanced}\n\n"
        f'Respond in {target_language} only to: "{question}"\n\n'
        "Do not include any translation preface or meta commentary. "
        f"Provide only the final answer in {target_language}."
    )


class AnswerGenerator:
    """Produces the final answer from assembled context via chat completions."""

    def __init__(self, openai_client: AsyncOpenAI | None = None, model: str | None = None):
        self._client = openai_client
        self.model = model or settings.llm_model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OpenAI API key is not configured")
            self._client = openai.AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        return self._client

    async def generate(
        self,
        question: str,
        context: str,
        history: list[HistoryMessage] | None = None,
        user_context: UserContext | None = None,
        language: str = "en",
    ) -> str:
        """Generate an answer grounded in the assembled context.

        Args:
            question: The user's original question
            context: Assembled context text
            history: Prior conversation turns
            user_context: Optional seeker profile
            language: Normalized target language code

        Returns:
            Answer text (may be empty if the model returned nothing)

        Raises:
            ConfigurationError: no API key configured
            UpstreamError: the completion call failed or timed out
        """
        target_language = language_name(language)
        client = self.client

        logger.info("Generating %s answer for query: %s", target_language, question)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": build_system_prompt(target_language, history, user_context),
                    },
                    {"role": "assistant", "content": ACKNOWLEDGEMENT},
                    {
                        "role": "user",
                        "content": build_user_prompt(question, context, target_language),
                    },
                ],
                temperature=settings.generation_temperature,
                max_tokens=settings.generation_max_tokens,
                timeout=settings.generation_timeout,
            )
        except openai.APIError as e:
            logger.error("Answer generation failed: %s", e)
            raise UpstreamError(
                f"Generation API error: {getattr(e, 'message', str(e))}",
                status=getattr(e, "status_code", None),
            ) from e

        answer = response.choices[0].message.content or ""
        logger.debug("Generated answer: %s", answer[:100])
        return answer


def _quote(chunk: ScoredChunk) -> str:
    text = re.sub(r"\s+", " ", chunk.content or "").strip()[:QUOTE_LENGTH]
    return f"“{text}” — {chunk.source}"


def postprocess_answer(
    answer: str,
    chunks: list[ScoredChunk],
    language: str = "en",
    user_name: str | None = None,
) -> str:
    """Add a personal greeting and lead with up to two verbatim quotes.

    Quotes end up ahead of the greeting.
    """
    if user_name and user_name.strip():
        name = user_name.strip()
        greeting = f"Dear {name},\n\n" if language == "en" else f"{name} గారూ,\n\n"
        answer = greeting + answer

    quotes = [_quote(c) for c in chunks[:MAX_QUOTES]]
    if quotes:
        answer = "\n".join(quotes) + "\n\n" + answer
    return answer
