from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..config.loader import load_config
from ..contracts.schema import validate as validate_schema
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL, ERR_USAGE, OK
from ..core.runtime.logging import log_event
from ..docs.snippets import DEFAULT_TAG, read_snippets
from ..validate.lifecycle import ValidatorOptions, validate_directory
from ..validate.outcome import DocumentReport, SnippetResult
from .output import emit, render_error, render_failure, render_progress, render_summary, resolve_output_format


def _version_string() -> str:
    return f"corecheck {__version__}"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="corecheck", description="Start the server once per documented corefile example.")
    p.add_argument("--version", action="version", version=_version_string())
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for log lines and reports")
    p.add_argument("--log-json", action="store_true", help="emit diagnostics on stderr as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit results")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="validate every corefile snippet in a directory of markdown files")
    check_p.add_argument("--dir", dest="scan_dir", help="directory to scan for .md files (default: .)")
    check_p.add_argument("--exe", dest="executable", help="path to the server executable (default: ./coredns)")
    check_p.add_argument("--grace-ms", type=int, help="how long each server must survive, in milliseconds")
    check_p.add_argument("--config", help="YAML file with harness settings and extra benign rules")

    extract_p = sub.add_parser("extract", help="print the corefile snippets found in one markdown file")
    extract_p.add_argument("document")
    extract_p.add_argument("--tag", default=DEFAULT_TAG, help="fence language tag to extract")

    sub.add_parser("version", help="print version")
    return p


def _cmd_check(ctx: RunContext, ns: argparse.Namespace) -> int:
    cfg = load_config(ns.config, ns.scan_dir, ns.executable, ns.grace_ms)
    options = ValidatorOptions.from_config(cfg)
    log_event(
        ctx,
        "info",
        "cli",
        "check-start",
        dir=str(cfg.scan_dir),
        exe=cfg.executable,
        grace_ms=cfg.grace_ms,
        rules=len(cfg.benign_rules),
    )

    def on_document(document: str, count: int) -> None:
        if not ctx.as_json:
            print(render_progress(document, count), flush=True)

    def on_result(document: str, result: SnippetResult) -> None:
        if result.failed and not ctx.as_json:
            print(render_failure(document, result), flush=True)

    def on_report(doc: DocumentReport) -> None:
        if (doc.total or doc.error is not None) and not ctx.as_json:
            print(render_summary(doc), flush=True)

    report = validate_directory(ctx, cfg.scan_dir, options, on_document, on_result, on_report)
    if ctx.as_json:
        payload = report.to_payload()
        validate_schema("corecheck.report.v1", payload)
        emit(payload, as_json=True)
    log_event(ctx, "info", "cli", "check-finish", status=report.status, failed_documents=len(report.failed_documents))
    return report.exit_code


def _cmd_extract(ctx: RunContext, ns: argparse.Namespace) -> int:
    path = Path(ns.document)
    snippets = read_snippets(path, ns.tag)
    if ctx.as_json:
        payload = {
            "schema_name": "corecheck.snippets.v1",
            "schema_version": 1,
            "tool": "corecheck",
            "document": str(path),
            "tag": ns.tag,
            "snippets": [{"index": s.index, "line": s.line, "text": s.text} for s in snippets],
        }
        validate_schema("corecheck.snippets.v1", payload)
        emit(payload, as_json=True)
        return OK
    for s in snippets:
        print(f"# {path}:{s.line} (snippet {s.index})")
        print(s.text, end="")
    return OK


def _cmd_version(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ctx.as_json:
        emit({"schema_version": 1, "tool": "corecheck", "status": "ok", "version": __version__}, as_json=True)
    else:
        print(_version_string())
    return OK


COMMANDS = {
    "check": _cmd_check,
    "extract": _cmd_extract,
    "version": _cmd_version,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    raw_argv = argv if argv is not None else sys.argv[1:]
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.format)
    if ns.format and ns.json and ns.format != "json":
        print("conflicting output flags: use either --format json or --json", file=sys.stderr)
        return ERR_USAGE
    ctx = RunContext.from_args(ns.run_id, fmt, ns.verbose, ns.quiet, ns.log_json)  # type: ignore[arg-type]
    try:
        log_event(ctx, "info", "cli", "start", cmd=ns.cmd, argv=" ".join(raw_argv), fmt=ctx.output_format)
        return COMMANDS[ns.cmd](ctx, ns)
    except ScriptError as exc:
        print(
            render_error(as_json=ctx.as_json, message=str(exc), code=exc.code, kind=exc.kind, run_id=ctx.run_id),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=ctx.as_json, message=f"internal error: {exc}", code=ERR_INTERNAL, kind="internal", run_id=ctx.run_id),
            file=sys.stderr,
        )
        return ERR_INTERNAL
