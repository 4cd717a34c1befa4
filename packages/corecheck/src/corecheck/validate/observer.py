from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from ..core.process import DEFAULT_STDERR_LIMIT, ServerProcess
from .rules import DEFAULT_BENIGN_RULES, BenignRule, Classification, classify_exit

T = TypeVar("T")


class OneShot(Generic[T]):
    """Cell that accepts its first published value and ignores the rest."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._set = threading.Event()
        self._value: T | None = None

    def publish(self, value: T) -> bool:
        with self._lock:
            if self._set.is_set():
                return False
            self._value = value
            self._set.set()
            return True

    def wait(self, timeout: float | None = None) -> bool:
        return self._set.wait(timeout)

    @property
    def is_set(self) -> bool:
        return self._set.is_set()

    def get(self) -> T:
        with self._lock:
            if not self._set.is_set():
                raise LookupError("one-shot cell has not been published")
            return self._value  # type: ignore[return-value]


@dataclass(frozen=True)
class ObservedExit:
    classification: Classification
    returncode: int | None
    stderr: str


class ExitObserver(threading.Thread):
    def __init__(
        self,
        server: ServerProcess,
        cell: OneShot[ObservedExit],
        rules: Sequence[BenignRule] = DEFAULT_BENIGN_RULES,
        stderr_limit: int = DEFAULT_STDERR_LIMIT,
    ) -> None:
        super().__init__(name=f"exit-observer-{server.pid}", daemon=True)
        self._server = server
        self._cell = cell
        self._rules = tuple(rules)
        self._stderr_limit = stderr_limit

    def run(self) -> None:
        returncode = self._server.wait()
        stderr = self._server.read_stderr(self._stderr_limit)
        classification = classify_exit(returncode, stderr, self._server.killed_by_harness, self._rules)
        self._cell.publish(ObservedExit(classification, returncode, stderr))
