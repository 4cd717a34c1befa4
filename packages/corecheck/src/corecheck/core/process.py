from __future__ import annotations

import errno
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import ScriptError, SpawnError
from .exit_codes import ERR_CONFIG, ERR_SPAWN

DEFAULT_STDERR_LIMIT = 2048
# Popen.kill() is SIGKILL on posix and TerminateProcess with exit code 1 on windows.
HARNESS_KILL_RETURNCODE = -signal.SIGKILL if hasattr(signal, "SIGKILL") else 1
# Each server leads its own process group so a kill reaches whatever it forked.
_KILL_GROUP = hasattr(os, "killpg")


@dataclass(frozen=True)
class LaunchSpec:
    """How one server instance is started.

    Every option is passed explicitly per launch. Nothing here reads or writes
    process-wide state, so two specs never interfere with each other.
    """

    executable: str
    config_path: Path
    port: str = "0"
    quiet: bool = False

    def argv(self) -> list[str]:
        cmd = [self.executable, "-conf", str(self.config_path), "-dns.port", self.port]
        if self.quiet:
            cmd.append("-quiet")
        return cmd


def write_scratch_config(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        os.chmod(path, 0o640)
    except OSError as exc:
        raise ScriptError(f"could not write scratch config {path}: {exc.strerror or exc}", ERR_CONFIG, "scratch") from exc
    return path


class ServerProcess:
    """One spawned server instance: handle, diagnostic stream, exit status."""

    def __init__(self, spec: LaunchSpec, proc: subprocess.Popen[bytes]) -> None:
        self.spec = spec
        self._proc = proc
        self._killed_by_harness = False

    @classmethod
    def start(cls, spec: LaunchSpec) -> "ServerProcess":
        try:
            proc = subprocess.Popen(
                spec.argv(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                start_new_session=_KILL_GROUP,
            )
        except OSError as exc:
            reason = exc.strerror or errno.errorcode.get(exc.errno or 0, str(exc))
            raise SpawnError(spec.executable, reason, ERR_SPAWN) from exc
        except ValueError as exc:
            raise SpawnError(spec.executable, str(exc), ERR_SPAWN) from exc
        return cls(spec, proc)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> int | None:
        return self._proc.returncode

    @property
    def killed_by_harness(self) -> bool:
        return self._killed_by_harness

    def wait(self) -> int:
        return self._proc.wait()

    def read_stderr(self, limit: int = DEFAULT_STDERR_LIMIT) -> str:
        """Return what the server already wrote, up to `limit` bytes.

        This is a single read. It does not wait for EOF, which never comes
        while a descendant of the server still holds the pipe open. It only
        blocks when nothing was written at all.
        """
        stream = self._proc.stderr
        if stream is None or stream.closed:
            return ""
        try:
            data = stream.read1(limit)
        except (OSError, ValueError):
            return ""
        finally:
            stream.close()
        return data.decode("utf-8", errors="replace")

    def terminate(self) -> None:
        self._killed_by_harness = True
        if _KILL_GROUP:
            try:
                os.killpg(self._proc.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                # group already empty; macOS reports EPERM when only a zombie leader is left
                pass
        try:
            self._proc.kill()
        except ProcessLookupError:
            pass

    def reap(self, timeout: float) -> bool:
        try:
            self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        return True
