from __future__ import annotations

import contextlib
import os
import signal
import socket
import stat
import sys
from pathlib import Path
from typing import Iterator

import pytest
from hypothesis import settings

from corecheck.core.context import RunContext
from corecheck.validate.lifecycle import ValidatorOptions

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("corecheck", deadline=None)
settings.load_profile("corecheck")

FIXTURES = Path(__file__).resolve().parent / "fixtures"

# Stands in for the real server. It validates its argv the way the server's
# flag parser would, then reacts to markers in the config it was given.
FAKE_SERVER = '''#!{python}
import os
import signal
import sys
import time

here = os.path.dirname(os.path.abspath(__file__))
argv = sys.argv[1:]
with open(os.path.join(here, "argv.log"), "a") as log:
    log.write(" ".join(argv) + "\\n")
if len(argv) < 4 or argv[0] != "-conf" or argv[2] != "-dns.port":
    sys.stderr.write("flag provided but not defined\\n")
    sys.exit(2)
with open(argv[1]) as f:
    conf = f.read()
if "spawn_child" in conf or "detach_child" in conf:
    # the child inherits the stderr pipe and keeps it open
    child = os.fork()
    if child == 0:
        if "detach_child" in conf:
            os.setsid()
        time.sleep(30)
        os._exit(0)
    with open(os.path.join(here, "child.pid"), "w") as f:
        f.write(str(child))
if "silent_exit" in conf:
    sys.exit(4)
if "bogus_directive" in conf:
    sys.stderr.write("plugin/bogus_directive: Unknown directive 'bogus_directive'\\n")
    sys.exit(1)
if "kubernetes" in conf:
    sys.stderr.write("plugin/kubernetes: KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined\\n")
    sys.exit(1)
if "segfault" in conf:
    sys.stderr.flush()
    os.kill(os.getpid(), signal.SIGSEGV)
if "clean_exit" in conf:
    sys.exit(0)
if "sidecar" in conf:
    sys.stderr.write("flaky sidecar failure\\n")
    sys.exit(3)
time.sleep(30)
'''


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_corecheck_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CORECHECK_CONFIG", "CORECHECK_DIR", "CORECHECK_EXE", "CORECHECK_GRACE_MS", "RUN_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def ctx() -> RunContext:
    return RunContext.from_args("pytest-run", "text", verbose=False, quiet=True)


@pytest.fixture
def fake_server(tmp_path: Path) -> Iterator[Path]:
    if os.name == "nt":
        pytest.skip("fake server relies on a posix shebang")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    exe = bin_dir / "fake-coredns"
    exe.write_text(FAKE_SERVER.format(python=sys.executable), encoding="utf-8")
    exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    yield exe
    pid_file = bin_dir / "child.pid"
    if pid_file.exists():
        with contextlib.suppress(ProcessLookupError):
            os.kill(int(pid_file.read_text(encoding="utf-8")), signal.SIGKILL)


@pytest.fixture
def make_options(tmp_path: Path):
    def _make(executable: Path | str, **overrides: object) -> ValidatorOptions:
        values: dict[str, object] = {
            "executable": str(executable),
            "scratch_path": tmp_path / "scratch" / "corefile-readme",
            "grace_ms": 300,
            "reap_timeout_seconds": 5.0,
        }
        values.update(overrides)
        return ValidatorOptions(**values)  # type: ignore[arg-type]

    return _make
