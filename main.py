"""HaloAI - retrieval-augmented answer engine

Simple CLI for asking questions, optionally against a loaded document.
"""

import argparse
import asyncio
import json
from pathlib import Path

from haloai.agents.orchestrator import AnswerOrchestrator
from haloai.config import parse_mode, parse_strategy, settings
from haloai.services import search_executor
from haloai.services.session import session


async def run_answer(args: argparse.Namespace) -> None:
    """Answer one query and print the result."""
    if args.mode:
        settings.ai_mode = parse_mode(args.mode)
    if args.strategy:
        settings.search_mode = parse_strategy(args.strategy)

    if args.doc:
        path = Path(args.doc)
        session.set_doc_context(path.name, path.read_text(encoding="utf-8", errors="ignore"))
        print(f"[*] Loaded document: {path.name}")
    session.set_use_doc(args.use_doc)
    session.set_web_plus(args.web_plus)

    if args.provider:
        result = await search_executor.query_provider(args.provider, args.query)
        print(f"[{result.provider}] {result.answer or '(no answer)'}")
    else:
        print(f"Query: {args.query}")
        print("-" * 50)
        orchestrator = AnswerOrchestrator()
        print(await orchestrator.answer(args.query))

    if args.stats:
        print(f"\n{'='*50}")
        print("PROVIDER STATS:")
        print(json.dumps(search_executor.get_provider_stats(), indent=2))


def main():
    parser = argparse.ArgumentParser(description="HaloAI answer engine")
    parser.add_argument("--query", "-q", required=True, help="Question to answer")
    parser.add_argument("--doc", help="Path to a text document to answer from")
    parser.add_argument("--use-doc", action="store_true", help="Always ground answers on the document")
    parser.add_argument("--web-plus", action="store_true", help="Enrich document answers with web results")
    parser.add_argument("--mode", help="local | web | cloud (default: AI_MODE)")
    parser.add_argument("--strategy", help="fastest | cheapest | accurate (default: SEARCH_MODE)")
    parser.add_argument("--provider", help="Query a single search provider by name")
    parser.add_argument("--stats", action="store_true", help="Print provider usage stats")

    args = parser.parse_args()

    asyncio.run(run_answer(args))


if __name__ == "__main__":
    main()
