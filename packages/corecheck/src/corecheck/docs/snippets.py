"""Extraction of fenced configuration examples from markdown documents.

A block opens on a line that is exactly ``~~~ <tag>`` or ```` ``` <tag> ````
once surrounding whitespace is removed, and closes on the bare marker of the
same family. Block bodies are kept verbatim: only line terminators are
normalized to ``\\n``. A block left open at the end of the document is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..core.errors import DocumentReadError

DEFAULT_TAG = "corefile"


class Fence(str, Enum):
    BACKTICK = "```"
    TILDE = "~~~"


@dataclass(frozen=True)
class ConfigSnippet:
    text: str
    index: int
    line: int


def fence_open_markers(tag: str = DEFAULT_TAG) -> dict[str, Fence]:
    return {f"{fence.value} {tag}": fence for fence in Fence}


def extract_snippets(text: str, tag: str = DEFAULT_TAG) -> list[ConfigSnippet]:
    openers = fence_open_markers(tag)
    snippets: list[ConfigSnippet] = []
    current: Fence | None = None
    opened_at = 0
    body: list[str] = []

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    for lineno, raw in enumerate(lines, start=1):
        marker = raw.strip()
        if current is None:
            if marker in openers:
                current = openers[marker]
                opened_at = lineno
                body = []
            continue
        if marker == current.value:
            snippets.append(ConfigSnippet(text="".join(body), index=len(snippets), line=opened_at))
            current = None
            continue
        body.append(raw + "\n")

    return snippets


def read_snippets(path: Path, tag: str = DEFAULT_TAG) -> list[ConfigSnippet]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentReadError(str(path), f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise DocumentReadError(str(path), exc.strerror or str(exc)) from exc
    return extract_snippets(text, tag)
