#!/usr/bin/env python3

import argparse
import getpass
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from splitsmart.domain.errors import SecretStoreError
from splitsmart.runtime.settings import PRESET_ENV, EngineConfig, load_engine_config


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line, file=sys.stderr)


def _load_config(args: argparse.Namespace) -> EngineConfig:
    from splitsmart.application.classification import with_engine

    environ = dict(os.environ)
    if getattr(args, "preset", None):
        environ[PRESET_ENV] = args.preset
    return with_engine(load_engine_config(environ=environ), getattr(args, "engine", None))


def _cmd_classify(args: argparse.Namespace) -> int:
    from splitsmart.application.classification import ClassificationRequest, classify_receipt, parse_receipt_payload
    from splitsmart.receipt.formatter import classified_receipt_to_dict, format_classified_receipt

    path = Path(args.receipt_json)
    if not path.exists():
        _print_error(f"Receipt file not found: {path}")
        return 1

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Receipt JSON must be an object with an 'items' list")
        items, context = parse_receipt_payload(payload)
        config = _load_config(args)
    except ValueError as exc:
        _print_error(f"Invalid input: {exc}")
        return 1

    outcome = classify_receipt(
        ClassificationRequest(items=items, context=context, config=config, max_workers=args.workers)
    )
    if args.json:
        print(json.dumps(classified_receipt_to_dict(outcome.receipt), indent=2))
    else:
        print(f"Engine: {outcome.engine.value}  Type: {outcome.context.receipt_type.value.lower()}")
        print(format_classified_receipt(outcome.receipt))
    return 0 if not outcome.receipt.requires_user_review else 2


def _cmd_key(args: argparse.Namespace) -> int:
    from splitsmart.runtime.secrets import EnvSecretProvider, FileSecretProvider

    env_provider = EnvSecretProvider()
    file_provider = FileSecretProvider()

    try:
        if args.key_action == "status":
            if env_provider.has_key():
                print(f"API key: configured (from ${env_provider.variable})")
            elif file_provider.has_key():
                print(f"API key: configured (stored in {file_provider.path})")
            else:
                print("API key: not configured")
            return 0

        if args.key_action == "set":
            value = args.value if args.value is not None else getpass.getpass("LLM API key: ")
            file_provider.set_key(value)
            print(f"API key stored in {file_provider.path}")
            return 0

        if args.key_action == "delete":
            file_provider.delete_key()
            print("Stored API key deleted")
            return 0
    except SecretStoreError as exc:
        _print_error(str(exc))
        return 1

    print("Usage: splitsmart key {status,set,delete}")
    return 1


def _cmd_engine(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except ValueError as exc:
        _print_error(f"Invalid configuration: {exc}")
        return 1

    classification = config.classification
    print(f"Engine: {config.engine.value}")
    print(f"Preset: {config.preset}")
    print(f"LLM model: {config.llm.model} (timeout {config.llm.timeout_seconds:.0f}s)")
    print(f"LLM per-item classification: {'on' if classification.enable_llm_classification else 'off'}")
    print(f"Thresholds: high {classification.high_confidence_threshold:.2f}, "
          f"medium {classification.medium_confidence_threshold:.2f}")
    print(f"LLM calls per receipt: {classification.max_llm_calls_per_receipt}")
    print(f"Sum tolerance: {classification.sum_validation_tolerance:.0%}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from splitsmart.application.server import app

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt line classification for bill splitting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  classify <receipt.json>    Classify receipt lines (items + optional context)
  key status|set|delete      Manage the stored LLM API key
  engine                     Show the effective engine configuration
  serve [--host --port]      Start the classification server

Exit codes for classify:
  0 = classified, no review needed
  2 = classified, some lines need review
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    classify_parser = subparsers.add_parser("classify", help="Classify receipt lines from a JSON file")
    classify_parser.add_argument("receipt_json", help="Path to receipt JSON file")
    classify_parser.add_argument("--engine", choices=["strategy_chain", "batch_llm"], help="Override the engine")
    classify_parser.add_argument(
        "--preset", choices=["default", "conservative", "aggressive", "llm_first"], help="Override the preset"
    )
    classify_parser.add_argument("--json", action="store_true", help="Print the classified receipt as JSON")
    classify_parser.add_argument("--workers", type=int, default=None, help="Classify lines on N threads")

    key_parser = subparsers.add_parser("key", help="Manage the stored LLM API key")
    key_subparsers = key_parser.add_subparsers(dest="key_action", help="Key action")
    key_subparsers.add_parser("status", help="Show whether a key is configured")
    set_parser = key_subparsers.add_parser("set", help="Store a key (prompted if --value is omitted)")
    set_parser.add_argument("--value", default=None, help="Key value")
    key_subparsers.add_parser("delete", help="Delete the stored key")

    engine_parser = subparsers.add_parser("engine", help="Show the effective engine configuration")
    engine_parser.add_argument("--engine", choices=["strategy_chain", "batch_llm"], help="Override the engine")
    engine_parser.add_argument(
        "--preset", choices=["default", "conservative", "aggressive", "llm_first"], help="Override the preset"
    )

    serve_parser = subparsers.add_parser("serve", help="Start the classification server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")

    args = parser.parse_args(argv)

    if args.verbose:
        from splitsmart.runtime.logging import configure_logging, set_log_level

        configure_logging(logging.DEBUG)
        set_log_level(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "classify":
        return _cmd_classify(args)
    elif args.command == "key":
        return _cmd_key(args)
    elif args.command == "engine":
        return _cmd_engine(args)
    elif args.command == "serve":
        return _cmd_serve(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
