from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..core.process import HARNESS_KILL_RETURNCODE
from .outcome import ValidationOutcome

TERMINATED_BY_HARNESS = "terminated-by-harness"
CLEAN_EXIT = "clean-exit"
UNEXPECTED_EXIT = "unexpected-exit"


@dataclass(frozen=True)
class BenignRule:
    """Diagnostic text that marks a crash as an environment problem, not a defect."""

    rule_id: str
    pattern: str
    description: str = ""

    def matches(self, stderr: str) -> bool:
        return self.pattern in stderr


@dataclass(frozen=True)
class Classification:
    outcome: ValidationOutcome
    rule_id: str | None
    reason: str


DEFAULT_BENIGN_RULES: tuple[BenignRule, ...] = (
    BenignRule(
        "kubernetes-env",
        "KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined",
        "server expects to run inside a kubernetes cluster",
    ),
)


def classify_exit(
    returncode: int,
    stderr: str,
    killed_by_harness: bool,
    rules: Iterable[BenignRule] = DEFAULT_BENIGN_RULES,
) -> Classification:
    if killed_by_harness and returncode == HARNESS_KILL_RETURNCODE:
        return Classification(ValidationOutcome.STARTED, None, TERMINATED_BY_HARNESS)
    for rule in rules:
        if rule.matches(stderr):
            return Classification(ValidationOutcome.BENIGN_EXIT, rule.rule_id, rule.description or rule.rule_id)
    if returncode == 0:
        return Classification(ValidationOutcome.BENIGN_EXIT, CLEAN_EXIT, "exited with status 0 during the grace window")
    return Classification(ValidationOutcome.CRASHED, None, f"{UNEXPECTED_EXIT}: status {returncode}")
