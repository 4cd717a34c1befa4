from __future__ import annotations

import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.runtime.env import getenv, getenv_int
from ..docs.snippets import DEFAULT_TAG
from ..validate.rules import DEFAULT_BENIGN_RULES, BenignRule

DEFAULT_SCRATCH_PATH = Path(tempfile.gettempdir()) / "corefile-readme"

_INT_KEYS = {"grace_ms", "stderr_limit"}
_STR_KEYS = {"dir", "exe", "scratch_path", "port", "tag"}
_KNOWN_KEYS = _INT_KEYS | _STR_KEYS | {"quiet", "reap_timeout_seconds", "benign_rules"}


@dataclass(frozen=True)
class HarnessConfig:
    scan_dir: Path = Path(".")
    executable: str = "./coredns"
    grace_ms: int = 500
    stderr_limit: int = 2048
    scratch_path: Path = DEFAULT_SCRATCH_PATH
    port: str = "0"
    quiet: bool = False
    tag: str = DEFAULT_TAG
    reap_timeout_seconds: float = 5.0
    benign_rules: tuple[BenignRule, ...] = field(default=DEFAULT_BENIGN_RULES)


def _load_yaml(path: Path) -> Any:
    import yaml

    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise ScriptError(f"could not read config {path}: {exc.strerror or exc}", ERR_CONFIG, "config") from exc
    except yaml.YAMLError as exc:
        raise ScriptError(f"invalid YAML in {path}: {exc}", ERR_CONFIG, "config") from exc


def _parse_rules(path: Path, raw: object) -> tuple[BenignRule, ...]:
    if not isinstance(raw, list):
        raise ScriptError(f"{path}: `benign_rules` must be a list", ERR_CONFIG, "config")
    rules: list[BenignRule] = []
    for i, row in enumerate(raw):
        if not isinstance(row, dict) or not isinstance(row.get("id"), str) or not isinstance(row.get("pattern"), str):
            raise ScriptError(f"{path}: benign_rules[{i}] needs string `id` and `pattern`", ERR_CONFIG, "config")
        if not row["pattern"]:
            raise ScriptError(f"{path}: benign_rules[{i}] has an empty pattern", ERR_CONFIG, "config")
        rules.append(BenignRule(row["id"], row["pattern"], str(row.get("description", ""))))
    return tuple(rules)


def apply_file(cfg: HarnessConfig, path: Path) -> HarnessConfig:
    data = _load_yaml(path)
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ScriptError(f"{path}: root must be mapping", ERR_CONFIG, "config")
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ScriptError(f"{path}: unknown key(s) {', '.join(unknown)}", ERR_CONFIG, "config")
    for key in _INT_KEYS:
        if key in data and (not isinstance(data[key], int) or isinstance(data[key], bool) or data[key] <= 0):
            raise ScriptError(f"{path}: `{key}` must be a positive integer", ERR_CONFIG, "config")
    for key in _STR_KEYS:
        if key in data and not isinstance(data[key], (str, int)):
            raise ScriptError(f"{path}: `{key}` must be a string", ERR_CONFIG, "config")
    if "quiet" in data and not isinstance(data["quiet"], bool):
        raise ScriptError(f"{path}: `quiet` must be a boolean", ERR_CONFIG, "config")
    reap = data.get("reap_timeout_seconds", cfg.reap_timeout_seconds)
    if isinstance(reap, bool) or not isinstance(reap, (int, float)) or reap <= 0:
        raise ScriptError(f"{path}: `reap_timeout_seconds` must be a positive number", ERR_CONFIG, "config")

    return replace(
        cfg,
        scan_dir=Path(str(data.get("dir", cfg.scan_dir))),
        executable=str(data.get("exe", cfg.executable)),
        grace_ms=data.get("grace_ms", cfg.grace_ms),
        stderr_limit=data.get("stderr_limit", cfg.stderr_limit),
        scratch_path=Path(str(data.get("scratch_path", cfg.scratch_path))),
        port=str(data.get("port", cfg.port)),
        quiet=data.get("quiet", cfg.quiet),
        tag=str(data.get("tag", cfg.tag)),
        reap_timeout_seconds=float(reap),
        benign_rules=(cfg.benign_rules + _parse_rules(path, data["benign_rules"])) if "benign_rules" in data else cfg.benign_rules,
    )


def apply_env(cfg: HarnessConfig) -> HarnessConfig:
    try:
        grace_ms = getenv_int("CORECHECK_GRACE_MS", cfg.grace_ms)
    except ValueError as exc:
        raise ScriptError(f"CORECHECK_GRACE_MS must be an integer: {exc}", ERR_CONFIG, "config") from exc
    scan_dir = getenv("CORECHECK_DIR")
    exe = getenv("CORECHECK_EXE")
    return replace(
        cfg,
        scan_dir=Path(scan_dir) if scan_dir else cfg.scan_dir,
        executable=exe or cfg.executable,
        grace_ms=grace_ms,
    )


def load_config(
    config_file: str | None = None,
    scan_dir: str | None = None,
    executable: str | None = None,
    grace_ms: int | None = None,
) -> HarnessConfig:
    cfg = HarnessConfig()
    path = config_file or getenv("CORECHECK_CONFIG")
    if path:
        cfg = apply_file(cfg, Path(path))
    cfg = apply_env(cfg)
    if scan_dir is not None:
        cfg = replace(cfg, scan_dir=Path(scan_dir))
    if executable is not None:
        cfg = replace(cfg, executable=executable)
    if grace_ms is not None:
        cfg = replace(cfg, grace_ms=grace_ms)
    if cfg.grace_ms <= 0:
        raise ScriptError(f"grace window must be positive, got {cfg.grace_ms}ms", ERR_CONFIG, "config")
    return cfg
