"""Process lifecycle validation of extracted snippets."""

from __future__ import annotations

from .lifecycle import ValidatorOptions, validate_directory, validate_document, validate_snippet
from .outcome import DocumentReport, RunReport, SnippetResult, ValidationOutcome
from .rules import DEFAULT_BENIGN_RULES, BenignRule, Classification, classify_exit

__all__ = [
    "DEFAULT_BENIGN_RULES",
    "BenignRule",
    "Classification",
    "DocumentReport",
    "RunReport",
    "SnippetResult",
    "ValidationOutcome",
    "ValidatorOptions",
    "classify_exit",
    "validate_directory",
    "validate_document",
    "validate_snippet",
]
