from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_DOCS


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class DocumentReadError(ScriptError):
    def __init__(self, document: str, reason: str) -> None:
        super().__init__(f"could not read {document}: {reason}", ERR_DOCS, "document_read")
        self.document = document


class SpawnError(ScriptError):
    def __init__(self, executable: str, reason: str, code: int) -> None:
        super().__init__(f"failed to start {executable}: {reason}", code, "spawn")
        self.executable = executable
