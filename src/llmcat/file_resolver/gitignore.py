"""Gitignore and `.llmcatignore` file handling using pathspec."""

from __future__ import annotations

from pathlib import Path

import pathspec


def _read_ignore_file(path: Path) -> pathspec.GitIgnoreSpec | None:
    """
    Read a gitignore-syntax file and return a compiled spec, or `None` if the
    file is missing, unreadable, not UTF-8, or has no patterns.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    lines = [line for line in text.splitlines() if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def load_gitignore(directory: Path) -> pathspec.GitIgnoreSpec | None:
    """
    Read `.gitignore` in the given directory and return a compiled spec,
    or `None` if the file doesn't exist or is empty.
    """
    gitignore = directory / ".gitignore"
    if not gitignore.is_file():
        return None
    return _read_ignore_file(gitignore)


def load_tool_ignore(tool_name: str, start_dir: Path) -> pathspec.GitIgnoreSpec | None:
    """
    Walk up from `start_dir` looking for `.{tool_name}ignore` (e.g., `.llmcatignore`).
    Returns the compiled spec from the first one found, or `None`.
    """
    ignore_name = f".{tool_name}ignore"
    current = start_dir.resolve()
    while True:
        candidate = current / ignore_name
        if candidate.is_file():
            return _read_ignore_file(candidate)
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None
