from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from ...core.errors import ScriptError
from ...core.exit_codes import ERR_VALIDATION
from .catalog import schema_path_for


@lru_cache(maxsize=None)
def _validator(schema_name: str) -> Any:
    import jsonschema

    schema = json.loads(schema_path_for(schema_name).read_text(encoding="utf-8"))
    cls = jsonschema.validators.validator_for(schema)
    cls.check_schema(schema)
    return cls(schema)


def validate(schema_name: str, payload: Any) -> None:
    """Raise `ScriptError(ERR_VALIDATION)` naming the first violation and how many there are."""
    errors = sorted(_validator(schema_name).iter_errors(payload), key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return
    first = errors[0]
    loc = "/".join(str(p) for p in first.absolute_path) or "<root>"
    more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    raise ScriptError(f"{schema_name} payload invalid at {loc}: {first.message}{more}", ERR_VALIDATION, "contract")
