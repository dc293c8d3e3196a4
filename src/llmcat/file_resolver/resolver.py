"""
FileResolver — main entry point for file discovery.

Expands glob patterns against a base directory into a deduplicated, sorted
list of absolute file paths, applying any configured exclusions.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

import pathspec

from llmcat.errors import InvalidBaseDirectory, PatternExpansionError
from llmcat.file_resolver.gitignore import load_gitignore, load_tool_ignore
from llmcat.file_resolver.matcher import iter_matches, validate_pattern
from llmcat.file_resolver.paths import expand_path
from llmcat.file_resolver.types import FileResolverConfig

log = logging.getLogger(__name__)


def resolve_base_dir(base_dir: str | Path) -> Path:
    """
    Expand `~` and environment variables in `base_dir` and make it absolute.
    Raises `InvalidBaseDirectory` unless the result is an existing directory.
    """
    expanded = expand_path(base_dir)
    if not expanded.exists():
        raise InvalidBaseDirectory(f"Base directory does not exist: {base_dir}")
    if not expanded.is_dir():
        raise InvalidBaseDirectory(f"{base_dir} is not a directory")
    return expanded


class FileResolver:
    """
    Resolves glob patterns relative to a base directory.

    Patterns are matched in the order given; the combined matches are
    deduplicated by absolute path, stripped of directories and excluded
    files, and sorted by path string so output order never depends on
    filesystem iteration order.
    """

    def __init__(self, config: FileResolverConfig) -> None:
        self._config: FileResolverConfig = config
        self._exclude_spec: pathspec.GitIgnoreSpec | None = (
            pathspec.GitIgnoreSpec.from_lines(config.exclude) if config.exclude else None
        )
        # Cache gitignore specs per directory to avoid re-reading from disk.
        self._gitignore_cache: dict[Path, pathspec.GitIgnoreSpec | None] = {}

    def resolve(self, patterns: Sequence[str]) -> list[Path]:
        """Resolve `patterns` into a sorted, deduplicated list of files."""
        base_dir = resolve_base_dir(self._config.base_dir)
        log.debug("Base directory: %s", base_dir)

        tool_ignore = None
        if self._config.respect_gitignore:
            tool_ignore = load_tool_ignore(self._config.tool_name, base_dir)

        seen: set[Path] = set()
        result: list[Path] = []
        for pattern in patterns:
            for found in self._expand_pattern(base_dir, pattern):
                if found in seen:
                    continue
                seen.add(found)
                if found.is_dir() or not found.exists():
                    continue
                if self._is_excluded(found, base_dir, tool_ignore):
                    log.debug("Excluded: %s", found)
                    continue
                result.append(found)

        result.sort(key=str)
        return result

    def _expand_pattern(self, base_dir: Path, pattern: str) -> list[Path]:
        """Expand one pattern into normalized absolute paths (files and directories)."""
        log.debug("Resolving pattern: %s", pattern)
        validate_pattern(pattern)

        expanded = expand_path(pattern, relative_to=base_dir)
        log.debug("Expanded pattern: %s", expanded)
        try:
            rel_pattern = os.path.relpath(expanded, base_dir)
        except ValueError as e:
            # Different drives on Windows.
            raise PatternExpansionError(
                f"Pattern {pattern} cannot be made relative to {base_dir}"
            ) from e
        log.debug("Relative pattern: %s", rel_pattern)
        validate_pattern(rel_pattern)

        matches = [Path(os.path.normpath(m)) for m in iter_matches(base_dir, rel_pattern)]
        if not matches:
            log.debug("No matches found")
        else:
            log.debug("Matches found:\n%s", "\n".join(f"  {m}" for m in matches))
        return matches

    def _is_excluded(
        self,
        path: Path,
        base_dir: Path,
        tool_ignore: pathspec.GitIgnoreSpec | None,
    ) -> bool:
        """Check a file against `exclude`, `.gitignore` files and `.llmcatignore`."""
        if self._exclude_spec is None and not self._config.respect_gitignore:
            return False
        try:
            rel = path.relative_to(base_dir)
        except ValueError:
            # Ignore rules are rooted at the base directory; files outside it
            # (reached via `..`) are never excluded.
            return False

        if self._exclude_spec is not None and self._exclude_spec.match_file(rel.as_posix()):
            return True
        if not self._config.respect_gitignore:
            return False
        if tool_ignore is not None and tool_ignore.match_file(rel.as_posix()):
            return True
        for directory, spec in self._get_gitignore_chain(path.parent, base_dir):
            if spec.match_file(path.relative_to(directory).as_posix()):
                return True
        return False

    def _get_gitignore(self, directory: Path) -> pathspec.GitIgnoreSpec | None:
        """Load and cache gitignore for a directory."""
        if directory not in self._gitignore_cache:
            self._gitignore_cache[directory] = load_gitignore(directory)
        return self._gitignore_cache[directory]

    def _get_gitignore_chain(
        self, directory: Path, walk_root: Path
    ) -> list[tuple[Path, pathspec.GitIgnoreSpec]]:
        """Collect gitignore specs from `walk_root` down to `directory` (inclusive)."""
        specs: list[tuple[Path, pathspec.GitIgnoreSpec]] = []
        current = walk_root
        while True:
            spec = self._get_gitignore(current)
            if spec is not None:
                specs.append((current, spec))
            if current == directory:
                break
            try:
                next_part = directory.relative_to(current).parts[0]
            except (ValueError, IndexError):
                break
            current = current / next_part
        return specs
