"""CLI payload output helpers."""

from __future__ import annotations

from ..core.runtime.serialize import dumps_json
from ..validate.outcome import DocumentReport, SnippetResult


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def resolve_output_format(*, cli_json: bool, cli_format: str | None) -> str:
    if cli_json:
        return "json"
    return cli_format or "text"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", run_id: str = "") -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "corecheck.error.v1",
                "schema_version": 1,
                "tool": "corecheck",
                "status": "error",
                "run_id": run_id,
                "errors": [{"code": code, "kind": kind, "message": message}],
            },
            pretty=False,
        )
    return message


def render_progress(document: str, count: int) -> str:
    return f"Checking {count} snippets in {document}"


def render_failure(document: str, result: SnippetResult) -> str:
    head = f"Failed to start server with {document}, for input at line {result.snippet.line}: {result.reason}"
    if result.stderr:
        head += f": standard error {result.stderr!r}"
    return f"{head}\n{result.snippet.text}"


def render_summary(report: DocumentReport) -> str:
    if report.error is not None:
        return f"\tFAIL: {report.document}: {report.error}"
    if report.failed:
        return f"\tFAIL: {report.total} snippets in {report.document}: {report.failed} failed"
    return f"\tPASS: {report.total} snippets in {report.document}"
