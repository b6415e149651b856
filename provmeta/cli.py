"""CLI entrypoint for provmeta."""

from __future__ import annotations

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from .collect import collect_sources
from .config import (
    ensure_config_exists,
    load_config,
    save_default_config,
    save_default_secrets,
    validate_config,
)
from .document import MetadataDocument, artwork_ids, artwork_view, embedded_tags, preview_for, preview_view
from .errors import ConfigurationError, ProvmetaError
from .linkcheck import check_document
from .report import render_report, write_report
from .schema import validate_config_schema
from .session import Session
from .util import write_json


def _error_payload(exc: Exception) -> dict[str, Any]:
    code = exc.code if isinstance(exc, ProvmetaError) else "INTERNAL_ERROR"
    hint = exc.hint if isinstance(exc, ProvmetaError) else ""
    return {"type": exc.__class__.__name__, "code": code, "message": str(exc), "hint": hint}


def _print_error(exc: ProvmetaError) -> None:
    sys.stderr.write(f"error: [{exc.code}] {exc}\n")
    if exc.hint:
        sys.stderr.write(f"hint: {exc.hint}\n")


def _session(args: argparse.Namespace) -> tuple[Session, dict[str, Any]]:
    config = load_config(ensure_config_exists(args.config))
    return Session(config), config


def _sources(paths: list[str]) -> list[str]:
    sources = collect_sources(paths)
    if not sources:
        raise ConfigurationError(
            "no metadata sources found",
            code="PARSE_ERROR",
            hint="Pass .toml, .yaml or .yml files, or directories containing them.",
        )
    return sources


def _load(session: Session, paths: list[str]) -> MetadataDocument:
    return session.load(_sources(paths))


def _print_warnings(document: MetadataDocument, args: argparse.Namespace) -> None:
    if getattr(args, "quiet", False):
        return
    for warn in document.warnings:
        sys.stderr.write(f"warning: [{warn.get('code')}] {warn.get('message')}\n")


def cmd_init(args: argparse.Namespace) -> int:
    cfg_path = save_default_config(path=Path(args.config).expanduser() if args.config else None, overwrite=args.force)
    save_default_secrets(overwrite=False)
    sys.stdout.write(f"Initialized config at {cfg_path}\n")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    session, config = _session(args)
    if not args.separate:
        document = _load(session, args.paths)
        _print_warnings(document, args)
        write_json(document.to_dict())
        return 0

    results: list[Any] = [None] * len(args.paths)

    def resolve_item(idx: int, path: str) -> None:
        try:
            document = _load(session, [path])
        except ProvmetaError as exc:
            results[idx] = {"path": path, "error": _error_payload(exc)}
            return
        _print_warnings(document, args)
        results[idx] = {"path": path, "document": document.to_dict()}

    if args.jobs is None:
        jobs = int((config.get("concurrency", {}) or {}).get("default") or 1)
    else:
        jobs = int(args.jobs or 1)
    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [executor.submit(resolve_item, idx, path) for idx, path in enumerate(args.paths)]
            for fut in futures:
                fut.result()
    else:
        for idx, path in enumerate(args.paths):
            resolve_item(idx, path)

    errors = sum(1 for result in results if result.get("error"))
    write_json({"summary": {"total": len(results), "error": errors}, "results": results})
    return 1 if errors else 0


def cmd_tags(args: argparse.Namespace) -> int:
    session, config = _session(args)
    document = _load(session, args.paths)
    _print_warnings(document, args)
    working_name = session.context.settings.working_name
    output: dict[str, Any] = {}
    for identifier in artwork_ids(document):
        entry: dict[str, Any] = {"tags": embedded_tags(artwork_view(document, identifier))}
        preview = preview_for(document, identifier, working_name)
        if preview is not None:
            entry["preview"] = {
                "id": preview,
                "tags": embedded_tags(preview_view(document, identifier, working_name) or {}),
            }
        output[identifier] = entry
    write_json(output)
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    session, config = _session(args)
    document = _load(session, args.paths)
    _print_warnings(document, args)
    path = write_report(document, config, args.output)
    if path:
        sys.stdout.write(f"Report written to {path}\n")
    else:
        sys.stdout.write(render_report(document) + "\n")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    config = load_config(ensure_config_exists(args.config))
    errors = validate_config_schema(config)
    more_errors, warnings = validate_config(config)
    errors.extend(more_errors)
    for warning in warnings:
        sys.stderr.write(f"warning: {warning}\n")
    for error in errors:
        sys.stderr.write(f"error: {error}\n")
    return 1 if errors else 0


def cmd_doctor(args: argparse.Namespace) -> int:
    session, config = _session(args)
    errors = validate_config_schema(config)
    more_errors, warnings = validate_config(config)
    errors.extend(more_errors)
    failed = bool(errors)
    for warning in warnings:
        sys.stderr.write(f"warning: {warning}\n")
    for error in errors:
        sys.stderr.write(f"error: {error}\n")
    if not args.paths:
        return 1 if failed else 0

    document = _load(session, args.paths)
    _print_warnings(document, args)
    results = check_document(document, config)
    for result in results:
        if result.get("ok"):
            msg = f"{result['field']} ok ({result['status']}): {result['url']}"
        else:
            reason = result.get("error") or f"status {result.get('status')}"
            msg = f"{result['field']} unreachable ({reason}): {result['url']}"
            failed = True
        sys.stderr.write(msg + "\n")
    if not results:
        sys.stderr.write("no remote references to check\n")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    epilog = (
        "Examples:\n"
        "  provmeta init\n"
        "  provmeta resolve artworks/metadata.toml\n"
        "  provmeta resolve collection-a/ collection-b/ --separate --jobs 4\n"
        "  provmeta tags artworks/\n"
        "  provmeta report artworks/ --output report.md\n"
        "  provmeta doctor artworks/\n"
    )
    parser = argparse.ArgumentParser(
        prog="provmeta",
        description="Resolve provenance metadata for digital artworks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to config file (or set PROVMETA_CONFIG)")
    common.add_argument("--quiet", action="store_true", help="Suppress warnings on stderr")

    sources = argparse.ArgumentParser(add_help=False)
    sources.add_argument("paths", nargs="+", help="Metadata source files or directories containing them")

    init_cmd = sub.add_parser("init", parents=[common], help="Initialize default config")
    init_cmd.add_argument("--force", action="store_true", help="Overwrite config if it exists")
    init_cmd.set_defaults(func=cmd_init)

    resolve_cmd = sub.add_parser("resolve", parents=[common, sources], help="Print the resolved metadata document")
    resolve_cmd.add_argument(
        "--separate",
        action="store_true",
        help="Resolve each path as its own source set instead of one combined document",
    )
    resolve_cmd.add_argument("--jobs", type=int, help="Parallelism for --separate (default: config.concurrency.default)")
    resolve_cmd.set_defaults(func=cmd_resolve)

    tags_cmd = sub.add_parser("tags", parents=[common, sources], help="Print embedded tags per artwork")
    tags_cmd.set_defaults(func=cmd_tags)

    report_cmd = sub.add_parser("report", parents=[common, sources], help="Render a markdown report")
    report_cmd.add_argument("--output", help="Write the report to this path")
    report_cmd.set_defaults(func=cmd_report)

    validate_cmd = sub.add_parser("validate", parents=[common], help="Validate config")
    validate_cmd.set_defaults(func=cmd_validate)

    doctor_cmd = sub.add_parser("doctor", parents=[common], help="Check configuration and remote references")
    doctor_cmd.add_argument("paths", nargs="*", help="Metadata sources whose remote references are checked")
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        code = args.func(args)
    except ProvmetaError as exc:
        _print_error(exc)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
