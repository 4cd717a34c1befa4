from __future__ import annotations

from pathlib import Path

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG


def discover_documents(scan_dir: Path, suffix: str = ".md") -> list[Path]:
    """Top-level files of `scan_dir` with the given suffix, sorted by name."""
    try:
        entries = list(scan_dir.iterdir())
    except OSError as exc:
        raise ScriptError(f"could not read {scan_dir}: {exc.strerror or exc}", ERR_CONFIG, "scan_dir") from exc
    return sorted((p for p in entries if p.suffix == suffix and not p.is_dir()), key=lambda p: p.name)
