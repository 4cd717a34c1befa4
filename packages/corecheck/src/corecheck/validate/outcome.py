from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..core.exit_codes import ERR_CHECK_FAILED, OK
from ..docs.snippets import ConfigSnippet


class ValidationOutcome(str, Enum):
    STARTED = "started-and-survived"
    FAILED_TO_START = "failed-to-start"
    CRASHED = "crashed-with-unexpected-error"
    BENIGN_EXIT = "crashed-with-known-benign-error"

    @property
    def is_failure(self) -> bool:
        return self in (ValidationOutcome.FAILED_TO_START, ValidationOutcome.CRASHED)


@dataclass(frozen=True)
class SnippetResult:
    snippet: ConfigSnippet
    outcome: ValidationOutcome
    reason: str
    returncode: int | None = None
    stderr: str = ""
    rule_id: str | None = None
    elapsed_ms: int = 0

    @property
    def failed(self) -> bool:
        return self.outcome.is_failure

    def to_payload(self) -> dict[str, object]:
        return {
            "index": self.snippet.index,
            "line": self.snippet.line,
            "outcome": self.outcome.value,
            "status": "fail" if self.failed else "pass",
            "reason": self.reason,
            "returncode": self.returncode,
            "rule_id": self.rule_id,
            "stderr": self.stderr,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class DocumentReport:
    document: str
    results: list[SnippetResult] = field(default_factory=list)
    error: str | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def status(self) -> str:
        return "pass" if self.failed == 0 and self.error is None else "fail"

    def to_payload(self) -> dict[str, object]:
        return {
            "document": self.document,
            "status": self.status,
            "total_count": self.total,
            "failed_count": self.failed,
            "error": self.error,
            "snippets": [r.to_payload() for r in self.results],
        }


@dataclass(frozen=True)
class RunReport:
    run_id: str
    documents: list[DocumentReport] = field(default_factory=list)

    @property
    def failed_documents(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.status == "fail"]

    @property
    def status(self) -> str:
        return "fail" if self.failed_documents else "pass"

    @property
    def exit_code(self) -> int:
        return OK if self.status == "pass" else ERR_CHECK_FAILED

    def to_payload(self) -> dict[str, object]:
        return {
            "schema_name": "corecheck.report.v1",
            "schema_version": 1,
            "tool": "corecheck",
            "kind": "corefile-check",
            "run_id": self.run_id,
            "status": self.status,
            "document_count": len(self.documents),
            "failed_document_count": len(self.failed_documents),
            "snippet_count": sum(d.total for d in self.documents),
            "failed_snippet_count": sum(d.failed for d in self.documents),
            "documents": [d.to_payload() for d in self.documents],
        }
