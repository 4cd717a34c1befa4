"""Harness configuration: defaults, YAML file, environment, then CLI flags."""

from __future__ import annotations

from .loader import DEFAULT_SCRATCH_PATH, HarnessConfig, load_config

__all__ = ["DEFAULT_SCRATCH_PATH", "HarnessConfig", "load_config"]
