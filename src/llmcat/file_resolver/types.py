"""Configuration types for file resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileResolverConfig:
    """
    Configuration for glob resolution and filtering.

    `base_dir` may use `~` and environment variables; it is expanded when
    resolving. `exclude` holds gitignore-syntax patterns matched against paths
    relative to the base directory. `respect_gitignore` additionally applies
    `.gitignore` files under the base directory and the nearest `.llmcatignore`.
    """

    base_dir: str | Path = "."
    exclude: tuple[str, ...] = ()
    respect_gitignore: bool = False
    tool_name: str = "llmcat"
