from __future__ import annotations

import re
from pathlib import Path

from ...core.errors import ScriptError
from ...core.exit_codes import ERR_VALIDATION
from .schemas import schemas_root

_SCHEMA_ID_RE = re.compile(r"^corecheck\.[a-z0-9][a-z0-9._-]*\.v[1-9][0-9]*$")


def list_schema_names() -> list[str]:
    suffix = ".schema.json"
    return sorted(p.name[: -len(suffix)] for p in schemas_root().glob(f"*{suffix}") if p.is_file())


def schema_path_for(schema_name: str) -> Path:
    if not _SCHEMA_ID_RE.match(schema_name):
        raise ScriptError(f"invalid schema name: {schema_name}", ERR_VALIDATION)
    path = schemas_root() / f"{schema_name}.schema.json"
    if not path.exists():
        known = ", ".join(list_schema_names()) or "none"
        raise ScriptError(f"unknown schema: {schema_name} (known: {known})", ERR_VALIDATION)
    return path
