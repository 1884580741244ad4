#!/usr/bin/env python3
"""CLI for the teachings RAG pipeline: ingest a corpus, ask questions, serve the API."""

import argparse
import asyncio
import logging
import sys

from core.config import settings


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def _require_store():
    from storage.vector_store import VectorStore

    store = VectorStore.from_settings()
    if store is None:
        print("Neo4j is not configured (set NEO4J_URI and NEO4J_PASSWORD)")
        sys.exit(1)
    return store


async def cmd_ingest(args: argparse.Namespace) -> None:
    """Load a knowledge base export, embed it and store it."""
    from ingestion.enricher import embed_chunks
    from ingestion.loader import load_knowledge_base

    store = _require_store()
    try:
        print("Initializing indexes...")
        await store.init_index()

        print(f"Loading: {args.file}")
        chunks = load_knowledge_base(args.file)
        print(f"  Loaded {len(chunks)} chunks")

        print(f"Generating embeddings ({settings.embedding_model})...")
        chunks = await embed_chunks(chunks)

        print("Storing in Neo4j...")
        count = await store.add_chunks(chunks)
        print(f"  Stored {count} chunks")

        total = await store.count()
        print(f"\nDone! Total chunks in store: {total}")
    finally:
        await store.close()


async def cmd_ask(args: argparse.Namespace) -> None:
    """Ask a question through the full chat pipeline."""
    from core.models import ChatRequest
    from service.chat_service import ChatService

    store = _require_store()
    service = ChatService(store)
    try:
        print(f"Query: {args.question}")
        response = await service.handle(
            ChatRequest(message=args.question, language_code=args.lang, user_name=args.name),
            client_id="cli",
        )
    finally:
        await store.close()

    print(f"\n{response.response}")

    stats = response.search_stats
    print(
        f"\nLanguage: {response.detected_language}  method: {stats.search_method}  "
        f"candidates: {stats.candidates_retrieved}  selected: {stats.chunks_selected}"
    )
    for reason in stats.degradations:
        print(f"  degraded: {reason}")

    if response.source_attribution:
        print(f"\nSources ({len(response.source_attribution)}):")
        for i, src in enumerate(response.source_attribution[:5], 1):
            print(f"  {i}. [{src.type}] {src.source} ({src.category})")

    if response.follow_up_questions:
        print("\nFollow-up questions:")
        for q in response.follow_up_questions:
            print(f"  - {q}")


async def cmd_clear(args: argparse.Namespace) -> None:
    """Clear all chunks from the store."""
    store = _require_store()
    try:
        count = await store.delete_all()
        print(f"Deleted {count} chunks from vector store")
    finally:
        await store.close()


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show store statistics."""
    store = _require_store()
    try:
        total = await store.count()
        print(f"Total chunks in store: {total}")
    finally:
        await store.close()


def cmd_serve(args: argparse.Namespace) -> None:
    """Serve the chat API with uvicorn."""
    import uvicorn

    from api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)


def main() -> None:
    parser = argparse.ArgumentParser(description="Teachings RAG CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ingest
    p_ingest = subparsers.add_parser("ingest", help="Ingest a knowledge base export")
    p_ingest.add_argument("file", help="Path to .json or .jsonl knowledge base")

    # ask
    p_ask = subparsers.add_parser("ask", help="Ask a question")
    p_ask.add_argument("question", help="Question to ask")
    p_ask.add_argument("--lang", default="en", help="Language code, or 'auto' to detect")
    p_ask.add_argument("--name", default=None, help="Seeker name for the greeting")

    # clear
    subparsers.add_parser("clear", help="Clear all chunks")

    # stats
    subparsers.add_parser("stats", help="Show store statistics")

    # serve
    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        cmd_serve(args)
        return

    commands = {
        "ingest": cmd_ingest,
        "ask": cmd_ask,
        "clear": cmd_clear,
        "stats": cmd_stats,
    }
    asyncio.run(commands[args.command](args))


if __name__ == "__main__":
    main()
