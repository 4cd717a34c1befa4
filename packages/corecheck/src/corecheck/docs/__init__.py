"""Markdown document discovery and snippet extraction."""

from __future__ import annotations

from .discover import discover_documents
from .snippets import DEFAULT_TAG, ConfigSnippet, Fence, extract_snippets, read_snippets

__all__ = ["DEFAULT_TAG", "ConfigSnippet", "Fence", "discover_documents", "extract_snippets", "read_snippets"]
