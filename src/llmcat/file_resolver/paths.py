"""Home directory and environment variable expansion for paths and patterns."""

from __future__ import annotations

import os
import re
from pathlib import Path

from llmcat.errors import PathExpansionError

# `$NAME` or `${NAME}`. Unset variables expand to the empty string.
_ENV_VAR_RE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")


def expand_env(text: str) -> str:
    """Substitute `$NAME` and `${NAME}` references from the environment."""

    def _lookup(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return os.environ.get(name, "")

    return _ENV_VAR_RE.sub(_lookup, text)


def expand_user(text: str) -> str:
    """
    Expand a leading `~` or `~user`. Raises `PathExpansionError` if the home
    directory cannot be determined.
    """
    if not text.startswith("~"):
        return text
    expanded = os.path.expanduser(text)
    if expanded.startswith("~"):
        raise PathExpansionError(f"Could not expand home directory in: {text}")
    return expanded


def expand_path(text: str | Path, relative_to: Path | None = None) -> Path:
    """
    Expand `~` and environment variables, then make the result absolute.

    Relative results are anchored at `relative_to` (the current directory when
    `None`). The path is normalized but symlinks are not resolved, so glob
    characters in the final components survive untouched.
    """
    expanded = expand_env(expand_user(str(text)))
    if not os.path.isabs(expanded):
        anchor = relative_to if relative_to is not None else Path.cwd()
        expanded = os.path.join(anchor, expanded)
    return Path(os.path.normpath(expanded))
