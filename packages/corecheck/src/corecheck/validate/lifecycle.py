"""Spawn, observe and kill cycle for each extracted configuration snippet.

Snippets are processed one at a time. Every cycle rewrites the same scratch
config file, so two cycles must never overlap. A cycle always ends with the
server killed and reaped before the next snippet is written.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from ..core.context import RunContext
from ..core.errors import DocumentReadError, ScriptError
from ..core.process import DEFAULT_STDERR_LIMIT, LaunchSpec, ServerProcess, write_scratch_config
from ..core.runtime.clock import elapsed_ms
from ..core.runtime.logging import log_event
from ..docs.discover import discover_documents
from ..docs.snippets import DEFAULT_TAG, ConfigSnippet, read_snippets
from .observer import ExitObserver, ObservedExit, OneShot
from .outcome import DocumentReport, RunReport, SnippetResult, ValidationOutcome
from .rules import DEFAULT_BENIGN_RULES, TERMINATED_BY_HARNESS, BenignRule, Classification, classify_exit

if TYPE_CHECKING:
    from ..config.loader import HarnessConfig

DocumentCallback = Callable[[str, int], None]
ResultCallback = Callable[[str, SnippetResult], None]
ReportCallback = Callable[[DocumentReport], None]


@dataclass(frozen=True)
class ValidatorOptions:
    executable: str
    scratch_path: Path
    port: str = "0"
    quiet: bool = False
    grace_ms: int = 500
    stderr_limit: int = DEFAULT_STDERR_LIMIT
    reap_timeout_seconds: float = 5.0
    tag: str = DEFAULT_TAG
    rules: tuple[BenignRule, ...] = DEFAULT_BENIGN_RULES

    @classmethod
    def from_config(cls, cfg: HarnessConfig) -> "ValidatorOptions":
        return cls(
            executable=cfg.executable,
            scratch_path=cfg.scratch_path,
            port=cfg.port,
            quiet=cfg.quiet,
            grace_ms=cfg.grace_ms,
            stderr_limit=cfg.stderr_limit,
            reap_timeout_seconds=cfg.reap_timeout_seconds,
            tag=cfg.tag,
            rules=cfg.benign_rules,
        )

    def launch_spec(self) -> LaunchSpec:
        return LaunchSpec(self.executable, self.scratch_path, port=self.port, quiet=self.quiet)


def validate_snippet(ctx: RunContext, snippet: ConfigSnippet, options: ValidatorOptions) -> SnippetResult:
    started = time.monotonic()
    try:
        write_scratch_config(options.scratch_path, snippet.text)
        server = ServerProcess.start(options.launch_spec())
    except ScriptError as exc:
        log_event(ctx, "warn", "lifecycle", "spawn", snippet=snippet.index, error=str(exc))
        return SnippetResult(
            snippet=snippet,
            outcome=ValidationOutcome.FAILED_TO_START,
            reason=str(exc),
            elapsed_ms=elapsed_ms(started),
        )

    log_event(ctx, "info", "lifecycle", "spawn", snippet=snippet.index, pid=server.pid)
    cell: OneShot[ObservedExit] = OneShot()
    observer = ExitObserver(server, cell, options.rules, options.stderr_limit)
    observer.start()

    time.sleep(options.grace_ms / 1000.0)
    server.terminate()
    killed_after_ms = elapsed_ms(started)
    log_event(ctx, "info", "lifecycle", "terminate", snippet=snippet.index, pid=server.pid, elapsed_ms=killed_after_ms)

    published = cell.wait(options.reap_timeout_seconds)
    if not server.reap(options.reap_timeout_seconds):
        log_event(ctx, "warn", "lifecycle", "reap-timeout", snippet=snippet.index, pid=server.pid)
    if not published:
        # Observer is stuck on a silent stderr pipe held open by a detached
        # descendant. Its late result is dropped by the cell.
        code = server.returncode
        log_event(ctx, "warn", "lifecycle", "observer-timeout", snippet=snippet.index, pid=server.pid, returncode=code)
        if code is None:
            fallback = Classification(ValidationOutcome.STARTED, None, TERMINATED_BY_HARNESS)
        else:
            fallback = classify_exit(code, "", server.killed_by_harness, options.rules)
        cell.publish(ObservedExit(fallback, code, ""))

    observed = cell.get()
    verdict = observed.classification
    log_event(
        ctx,
        "info",
        "lifecycle",
        "classify",
        snippet=snippet.index,
        outcome=verdict.outcome.value,
        rule=verdict.rule_id or "-",
        returncode=observed.returncode,
    )
    return SnippetResult(
        snippet=snippet,
        outcome=verdict.outcome,
        reason=verdict.reason,
        returncode=observed.returncode,
        stderr=observed.stderr,
        rule_id=verdict.rule_id,
        elapsed_ms=killed_after_ms,
    )


def validate_document(
    ctx: RunContext,
    path: Path,
    options: ValidatorOptions,
    on_document: DocumentCallback | None = None,
    on_result: ResultCallback | None = None,
) -> DocumentReport:
    document = str(path)
    try:
        snippets = read_snippets(path, options.tag)
    except DocumentReadError as exc:
        log_event(ctx, "error", "lifecycle", "document-skip", document=document, error=str(exc))
        return DocumentReport(document=document, error=str(exc))

    if snippets and on_document is not None:
        on_document(document, len(snippets))
    results: list[SnippetResult] = []
    for snippet in snippets:
        result = validate_snippet(ctx, snippet, options)
        results.append(result)
        if on_result is not None:
            on_result(document, result)
    return DocumentReport(document=document, results=results)


def validate_directory(
    ctx: RunContext,
    scan_dir: Path,
    options: ValidatorOptions,
    on_document: DocumentCallback | None = None,
    on_result: ResultCallback | None = None,
    on_report: ReportCallback | None = None,
) -> RunReport:
    reports: list[DocumentReport] = []
    for doc in discover_documents(scan_dir):
        report = validate_document(ctx, doc, options, on_document, on_result)
        reports.append(report)
        if on_report is not None:
            on_report(report)
    return RunReport(run_id=ctx.run_id, documents=reports)
