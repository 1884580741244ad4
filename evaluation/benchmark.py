"""Phrase-hit retrieval benchmark for the chat pipeline."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Awaitable, Callable

from core.models import ChatResponse

logger = logging.getLogger(__name__)

CASES_FILE = Path(__file__).parent / "cases.json"

AskFn = Callable[[str, str], Awaitable["ChatResponse | str"]]


def load_cases(file_path: str | Path | None = None) -> list[dict]:
    """Load benchmark cases: ``[{question, expectedPhrases, lang?}]``."""
    path = Path(file_path) if file_path else CASES_FILE
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def count_hits(response: str, expected_phrases: list[str]) -> int:
    """Number of expected phrases found in the response (case-insensitive)."""
    lower = (response or "").lower()
    return sum(1 for p in expected_phrases if p.lower() in lower)


async def run_benchmark(ask_fn: AskFn, cases: list[dict] | None = None) -> dict:
    """Run every case through ``ask_fn`` and score it.

    A case passes when at least one expected phrase appears in the answer.

    Args:
        ask_fn: Coroutine taking (question, language) and returning a
            ChatResponse or the answer text
        cases: Optional custom cases (defaults to cases.json)

    Returns:
        Dict with: results (list), accuracy, total, passed
    """
    if cases is None:
        cases = load_cases()

    results = []
    passed = 0

    for i, case in enumerate(cases, start=1):
        question = case["question"]
        phrases = case.get("expectedPhrases", [])
        lang = case.get("lang") or "en"

        logger.info("Q%d: %s", i, question)
        answer = await ask_fn(question, lang)
        text = answer.response if isinstance(answer, ChatResponse) else str(answer)

        hits = count_hits(text, phrases)
        ok = hits > 0
        if ok:
            passed += 1

        results.append(
            {
                "id": i,
                "question": question,
                "lang": lang,
                "hits": hits,
                "pass": ok,
                "actual": text[:200],
            }
        )
        logger.info("  %s (hits=%d/%d)", "PASS" if ok else "FAIL", hits, len(phrases))

    return {
        "results": results,
        "accuracy": passed / len(cases) if cases else 0.0,
        "total": len(cases),
        "passed": passed,
    }


def print_benchmark_results(benchmark: dict) -> None:
    """Print formatted benchmark results."""
    print("\n" + "=" * 70)
    print("  Teachings RAG Retrieval Benchmark")
    print("=" * 70)

    for r in benchmark["results"]:
        status = "PASS" if r["pass"] else "FAIL"
        print(f"  Q{r['id']:2d}  [{status}]  hits={r['hits']}  [{r['lang']}] {r['question'][:50]}")

    print("-" * 70)
    print(f"  Passed: {benchmark['passed']}/{benchmark['total']} ({benchmark['accuracy']:.0%})")
    print("=" * 70)
