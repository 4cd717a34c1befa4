"""JSON rendering shared by reports, error payloads and log lines."""

from __future__ import annotations

import json
from typing import Any


def dumps_json(payload: Any, pretty: bool = False) -> str:
    # Paths and enum members in log fields render as their string form.
    return json.dumps(payload, indent=2 if pretty else None, sort_keys=True, default=str)
