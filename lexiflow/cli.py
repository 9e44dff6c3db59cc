#!/usr/bin/env python3
"""
lexiflow admin command line.

Usage:
    python -m lexiflow.cli translate "hello world" --to es
    python -m lexiflow.cli etymology hello --lang en
    python -m lexiflow.cli define aquarium
    python -m lexiflow.cli languages
    python -m lexiflow.cli stats
    python -m lexiflow.cli bulk-upload words.json --tier medium
    python -m lexiflow.cli contribute
    python -m lexiflow.cli clear-cache
    python -m lexiflow.cli config --set prThreshold=25

Every command prints one JSON document on stdout. Domain errors print
{"error", "message"} and exit with status 1.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import aiofiles

from lexiflow.core.domain.exceptions import DomainError, InvalidRequestError
from lexiflow.core.text.languages import SUPPORTED_LANGUAGES
from lexiflow.shared.container import container
from lexiflow.shared.logging_config import configure_logging
from lexiflow.shared.observability import setup_observability


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def _read_bulk_file(path: str) -> List[Dict[str, Any]]:
    async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
        content = await f.read()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidRequestError(f"{path} is not valid JSON ({e.msg})") from e

    # Accepts a bare list or {"words": [...]}
    if isinstance(data, dict):
        data = data.get("words")
    if not isinstance(data, list):
        raise InvalidRequestError("bulk file must hold a list of words")
    return data


def _parse_assignments(pairs: List[str]) -> Dict[str, Any]:
    updates: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise InvalidRequestError(f"expected KEY=VALUE, got '{pair}'")
        try:
            updates[key] = json.loads(raw)
        except json.JSONDecodeError:
            updates[key] = raw
    return updates


async def _dispatch(args: argparse.Namespace) -> Any:
    if args.command == "translate":
        use_case = container.translate_use_case()
        result = await use_case.translate(
            args.text, to=args.to, from_lang=args.from_lang, context=args.context, bypass_cache=args.no_cache
        )
        # Let a contribution fired by this request finish before exiting.
        await container.contribution_trigger().drain()
        return result.to_payload()

    if args.command == "etymology":
        use_case = container.etymology_use_case()
        result = await use_case.get_full_etymology(args.word, args.lang, bypass_cache=args.no_cache)
        return result.to_payload()

    if args.command == "define":
        use_case = container.etymology_use_case()
        definitions = await use_case.get_definitions(args.word, args.lang)
        related = await use_case.get_related_words(args.word, args.lang)
        return {
            "word": args.word,
            "definitions": [d.to_payload() for d in definitions],
            "related": related.to_payload(),
        }

    if args.command == "languages":
        lexicon = container.lexicon()
        return {
            "languages": SUPPORTED_LANGUAGES,
            "dictionaryTargets": lexicon.supported_target_languages(),
        }

    if args.command == "stats":
        ledger = container.learned_word_ledger()
        stats = await ledger.get_stats()
        return {
            "lexicon": container.lexicon().stats().to_payload(),
            "learning": stats.to_payload(),
            "config": (await ledger.get_config()).to_payload(),
        }

    if args.command == "bulk-upload":
        ledger = container.learned_word_ledger()
        words = await _read_bulk_file(args.file)
        result = await ledger.bulk_upload_words(
            words,
            tier=args.tier,
            source_language=args.source_language,
            skip_duplicates=args.skip_duplicates,
        )
        return result.to_payload()

    if args.command == "contribute":
        result = await container.contribution_trigger().run()
        return result.to_payload()

    if args.command == "clear-cache":
        version = await container.translate_use_case().clear_translation_cache()
        return {"success": True, "version": version}

    if args.command == "config":
        ledger = container.learned_word_ledger()
        if args.set:
            updated = await ledger.set_config(_parse_assignments(args.set))
            return updated.to_payload()
        return (await ledger.get_config()).to_payload()

    raise InvalidRequestError(f"unknown command '{args.command}'")


async def _run(args: argparse.Namespace) -> Any:
    try:
        return await _dispatch(args)
    finally:
        # Redis clients are bound to this event loop.
        for store in (container.cache(), container.ledger_store()):
            close = getattr(store, "close", None)
            if close is not None:
                await close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lexiflow", description="lexiflow translation and ledger admin")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    translate = subparsers.add_parser("translate", help="Translate text through the tier chain")
    translate.add_argument("text")
    translate.add_argument("--to", required=True, help="Target language code")
    translate.add_argument("--from", dest="from_lang", default="auto", help="Source language code (default: auto)")
    translate.add_argument("--context", help="Free-text hint passed to the model")
    translate.add_argument("--no-cache", action="store_true", help="Skip the cache read")

    etymology = subparsers.add_parser("etymology", help="Resolve the etymology of a word")
    etymology.add_argument("word")
    etymology.add_argument("--lang", default="en")
    etymology.add_argument("--no-cache", action="store_true")

    define = subparsers.add_parser("define", help="Definitions and related words from the external lexicon")
    define.add_argument("word")
    define.add_argument("--lang", default="en")

    subparsers.add_parser("languages", help="Supported language codes")
    subparsers.add_parser("stats", help="Lexicon and learned word statistics")

    bulk = subparsers.add_parser("bulk-upload", help="Load learned words from a JSON file")
    bulk.add_argument("file")
    bulk.add_argument("--tier", choices=["small", "medium", "large", "xlarge", "unlimited"])
    bulk.add_argument("--source-language", default="en")
    bulk.add_argument("--skip-duplicates", action="store_true")

    subparsers.add_parser("contribute", help="Open a dictionary pull request from the pending queue")
    subparsers.add_parser("clear-cache", help="Invalidate every cached translation")

    config = subparsers.add_parser("config", help="Show or update the learning config")
    config.add_argument("--set", nargs="+", metavar="KEY=VALUE")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging()
    setup_observability()

    try:
        payload = asyncio.run(_run(args))
    except DomainError as e:
        _emit(e.as_payload())
        return 1

    _emit(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
