"""CLI interface for pii-anonymizer.

Usage:
    # Anonymize text (stdin: plain text, stdout: JSON result)
    echo 'Mi email es juan@ejemplo.com' | pii-anonymizer anonymize

    # Deanonymize text (stdin: text with tokens, stdout: restored text)
    echo 'Escríbale a <PII_EMAIL_1a2b3c4d>' | pii-anonymizer deanonymize

    # Anonymize chat messages (stdin: JSON array of OpenAI messages)
    echo '[{"role":"user","content":"Soy la Sra. Gómez"}]' | pii-anonymizer messages

    # Dump / clear the durable store, run the HTTP sidecar
    pii-anonymizer dump
    pii-anonymizer clear
    pii-anonymizer serve --port 18792

Signing key and store credentials come from --config or the environment
($PII_HMAC_SECRET, $PII_ANONYMIZER_DB, $SUPABASE_URL, ...).
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from collections import Counter

from .config import create_middleware, create_service, create_store, load_config, load_from_yaml
from .errors import PIIError
from .server import DEFAULT_HOST, DEFAULT_PORT, serve
from .types import format_category


def _load(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_config()
    logging.basicConfig(
        level=(args.log_level or cfg["log_level"]).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.mode:
        cfg["mode"] = args.mode
        if args.mode == "demo" and not args.config:
            cfg["store_backend"] = "memory"
    if args.db:
        cfg["store_backend"] = "sqlite"
        cfg["store_path"] = args.db
    return cfg


def cmd_anonymize(args: argparse.Namespace) -> int:
    """Anonymize plain text on stdin."""
    service = create_service(_load(args))
    response = service.anonymize(sys.stdin.read().rstrip("\n"))
    output = dict(response.body)
    if response.success and args.summary:
        counts = Counter(item["category"] for item in output["items"])
        output["summary"] = {
            format_category(category): count for category, count in counts.items()
        }
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if response.success else 1


def cmd_deanonymize(args: argparse.Namespace) -> int:
    """Restore tokens in text from stdin."""
    service = create_service(_load(args))
    response = service.deanonymize(sys.stdin.read())
    if not response.success:
        sys.stderr.write(f"{response.body['error']}\n")
        return 1
    sys.stdout.write(response.body["text"])
    return 0


def cmd_messages(args: argparse.Namespace) -> int:
    """Anonymize OpenAI-format messages on stdin."""
    mw = create_middleware(_load(args))
    messages = json.loads(sys.stdin.read())
    json.dump(mw.pre_send(messages), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_dump(args: argparse.Namespace) -> int:
    """Dump store mappings as JSON."""
    store = create_store(_load(args))
    if not hasattr(store, "dump"):
        sys.stderr.write(f"{store.backend} store cannot be dumped\n")
        return 1
    json.dump(store.dump(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Delete every mapping in the store."""
    store = create_store(_load(args))
    if not hasattr(store, "clear"):
        sys.stderr.write(f"{store.backend} store cannot be cleared\n")
        return 1
    store.clear()
    sys.stderr.write("Cleared mapping store\n")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP sidecar."""
    serve(create_service(_load(args)), host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-anonymizer",
        description="Reversible PII tokenization for chat pipelines",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--mode", choices=["production", "demo"], default=None,
                        help="Override the configured mode")
    parser.add_argument("--db", default=None, help="SQLite mapping store path")
    parser.add_argument("--log-level", default=None, help="Logging level (default: config log_level)")

    sub = parser.add_subparsers(dest="command", required=True)
    p_anon = sub.add_parser("anonymize", help="Anonymize plain text (stdin)")
    p_anon.add_argument("--summary", action="store_true", help="Add per-category counts")
    sub.add_parser("deanonymize", help="Restore tokens (stdin)")
    sub.add_parser("messages", help="Anonymize OpenAI messages (JSON stdin)")
    sub.add_parser("dump", help="Dump store mappings")
    sub.add_parser("clear", help="Clear the store")
    p_serve = sub.add_parser("serve", help="Run the HTTP sidecar")
    p_serve.add_argument("--host", default=DEFAULT_HOST)
    p_serve.add_argument("--port", type=int, default=DEFAULT_PORT)

    args = parser.parse_args(argv)

    cmds = {
        "anonymize": cmd_anonymize,
        "deanonymize": cmd_deanonymize,
        "messages": cmd_messages,
        "dump": cmd_dump,
        "clear": cmd_clear,
        "serve": cmd_serve,
    }
    try:
        return cmds[args.command](args)
    except PIIError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
