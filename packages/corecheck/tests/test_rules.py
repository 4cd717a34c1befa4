from __future__ import annotations

import pytest

from corecheck.core.process import HARNESS_KILL_RETURNCODE
from corecheck.validate.outcome import ValidationOutcome
from corecheck.validate.rules import (
    CLEAN_EXIT,
    DEFAULT_BENIGN_RULES,
    TERMINATED_BY_HARNESS,
    BenignRule,
    classify_exit,
)

K8S_STDERR = "plugin/kubernetes: KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined\n"


def test_harness_kill_is_not_a_failure() -> None:
    verdict = classify_exit(HARNESS_KILL_RETURNCODE, "", killed_by_harness=True)
    assert verdict.outcome is ValidationOutcome.STARTED
    assert verdict.reason == TERMINATED_BY_HARNESS
    assert not verdict.outcome.is_failure


def test_external_kill_without_harness_is_a_crash() -> None:
    verdict = classify_exit(HARNESS_KILL_RETURNCODE, "", killed_by_harness=False)
    assert verdict.outcome is ValidationOutcome.CRASHED


@pytest.mark.skipif(HARNESS_KILL_RETURNCODE > 0, reason="signal exit codes are posix only")
def test_other_signal_after_harness_kill_is_still_a_crash() -> None:
    verdict = classify_exit(-11, "", killed_by_harness=True)
    assert verdict.outcome is ValidationOutcome.CRASHED


@pytest.mark.parametrize("returncode", [1, 2, 255, 0])
def test_kubernetes_marker_is_benign_regardless_of_status(returncode: int) -> None:
    verdict = classify_exit(returncode, K8S_STDERR, killed_by_harness=False)
    assert verdict.outcome is ValidationOutcome.BENIGN_EXIT
    assert verdict.rule_id == "kubernetes-env"


def test_clean_exit_is_benign() -> None:
    verdict = classify_exit(0, "", killed_by_harness=False)
    assert verdict.outcome is ValidationOutcome.BENIGN_EXIT
    assert verdict.rule_id == CLEAN_EXIT


def test_unknown_error_is_a_real_failure() -> None:
    verdict = classify_exit(1, "plugin/bogus: Unknown directive 'bogus'\n", killed_by_harness=False)
    assert verdict.outcome is ValidationOutcome.CRASHED
    assert verdict.rule_id is None
    assert "status 1" in verdict.reason


def test_extra_rules_extend_the_table() -> None:
    rules = DEFAULT_BENIGN_RULES + (BenignRule("etcd-env", "etcd endpoints unreachable", "no etcd in CI"),)
    verdict = classify_exit(1, "plugin/etcd: etcd endpoints unreachable", killed_by_harness=False, rules=rules)
    assert verdict.outcome is ValidationOutcome.BENIGN_EXIT
    assert verdict.rule_id == "etcd-env"
    assert verdict.reason == "no etcd in CI"


def test_failure_outcomes() -> None:
    assert {o for o in ValidationOutcome if o.is_failure} == {
        ValidationOutcome.FAILED_TO_START,
        ValidationOutcome.CRASHED,
    }
