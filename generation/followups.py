"""Follow-up question suggestions and topic extraction."""

from __future__ import annotations

from core.models import ScoredChunk

BASE_QUESTIONS = [
    "What is self-inquiry?",
    "How do I practice meditation?",
    "Can you explain the teaching of 'Who am I?'",
]

TAG_QUESTIONS: dict[str, tuple[str, ...]] = {
    "self-inquiry": (
        "How do I practice self-inquiry in daily life?",
        "What are the obstacles to self-inquiry?",
    ),
    "meditation": (
        "What is the difference between meditation and self-inquiry?",
        "How should I sit for meditation?",
    ),
    "arunachala": (
        "What is the significance of Arunachala?",
        "How does Arunachala help in spiritual practice?",
    ),
}

SOURCE_QUESTIONS: dict[str, str] = {
    "Talks with Sri Ramana Maharshi": "Can you share more from 'Talks with Sri Ramana Maharshi'?",
    "Who am I?": "What are the key points from 'Who am I?'?",
}

# topic -> phrases that signal it in a question
TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "self-inquiry": ("self-inquiry", "atma vichara"),
    "meditation": ("meditation", "dhyana"),
    "arunachala": ("arunachala", "mountain"),
    "who-am-i": ("who am i", "nan yar"),
    "grace": ("grace", "kripa"),
    "surrender": ("surrender", "prapatti"),
}

MAX_FOLLOW_UPS = 3


def generate_follow_up_questions(question: str, chunks: list[ScoredChunk]) -> list[str]:
    """Suggest up to three follow-ups driven by the tags and sources retrieved.

    Two topical suggestions at most, then one general question.
    """
    if not chunks:
        return BASE_QUESTIONS[:MAX_FOLLOW_UPS]

    tags = {t for c in chunks for t in c.tags}
    sources = {c.source for c in chunks}

    suggestions: list[str] = []
    for tag, questions in TAG_QUESTIONS.items():
        if tag in tags:
            suggestions.extend(questions)
    for source, question_text in SOURCE_QUESTIONS.items():
        if source in sources:
            suggestions.append(question_text)

    return (suggestions[:2] + BASE_QUESTIONS[:1])[:MAX_FOLLOW_UPS]


def extract_topics(question: str, chunks: list[ScoredChunk]) -> list[str]:
    """Topics named in the question, followed by every retrieved chunk tag."""
    lower = (question or "").lower()
    topics = [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(k in lower for k in keywords)
    ]
    for chunk in chunks:
        for tag in chunk.tags:
            if tag not in topics:
                topics.append(tag)
    return topics
