"""CLI entrypoint for crpt-api."""

from __future__ import annotations

import argparse
import json
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

from crpt_api.api import CrptApi
from crpt_api.errors import CrptApiError, SubmissionFailed
from crpt_api.logging_config import configure_logging
from crpt_api.models import Document
from crpt_api.settings import Settings


class CLIError(RuntimeError):
    """User-facing CLI error."""


def _load_document(path: Path) -> Document:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CLIError(f"invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise CLIError(f"document file must contain a JSON object: {path}")
    return Document.model_validate(payload)


def _load_signature(path: Path) -> str:
    signature = path.read_text(encoding="utf-8").strip()
    if not signature:
        raise CLIError(f"signature file is empty: {path}")
    return signature


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.time_unit:
        overrides["time_unit"] = args.time_unit
    if args.limit is not None:
        overrides["request_limit"] = args.limit
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.product_group:
        overrides["product_group"] = args.product_group
    return Settings(**overrides)


def _cmd_submit(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    configure_logging(settings.log_level)
    signature = _load_signature(Path(args.signature_file))
    documents = [(path, _load_document(Path(path))) for path in args.documents]
    workers = max(1, int(args.workers))

    failures = 0
    with (
        CrptApi.from_settings(settings) as api,
        ThreadPoolExecutor(max_workers=workers) as executor,
    ):
        futures = {
            executor.submit(api.submit_document, document, signature): path
            for path, document in documents
        }
        for future in as_completed(futures):
            path = futures[future]
            try:
                result = future.result()
            except SubmissionFailed as exc:
                failures += 1
                print(f"failed {path} {exc}")
                continue
            print(f"ok {path} {result.status_code}")
    return 1 if failures else 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crpt-api")
    subparsers = parser.add_subparsers(dest="command")

    submit = subparsers.add_parser("submit", help="Submit documents through the rate limiter.")
    submit.add_argument("documents", nargs="+", help="Document JSON files.")
    submit.add_argument("--signature-file", required=True, help="File holding the signature.")
    submit.add_argument(
        "--time-unit",
        default="",
        help="Rate window unit, e.g. seconds or minutes (default: settings).",
    )
    submit.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Requests allowed per window (default: settings).",
    )
    submit.add_argument("--workers", type=int, default=4, help="Concurrent submitters.")
    submit.add_argument("--base-url", default="", help="Override the endpoint URL.")
    submit.add_argument("--product-group", default="", help="Override the product group.")
    submit.add_argument("--log-level", default="", help="Log level (default: settings).")
    submit.set_defaults(func=_cmd_submit)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        return int(func(args))
    except (CLIError, CrptApiError, FileNotFoundError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
