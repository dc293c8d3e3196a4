"""
Segment-wise glob matching with recursive `**` support.

A pattern is split on path separators and matched one segment at a time
against directory listings:

- `**` as a whole segment matches zero or more directories
- `*` matches any run of characters within one segment
- `?` matches one character, `[...]` a character class (`[!...]` negates)
- `{a,b}` matches either alternative; alternatives may nest and may contain
  path separators, so `{docs,src/lib}/*.md` is two patterns

On POSIX a backslash escapes the next character, so `\\*` matches a literal
`*`. On Windows the backslash is a path separator and there is no escape.

Names starting with `.` are only matched by a segment that itself starts with
`.`, and `**` never descends into hidden or symlinked directories. Segments
without wildcards are joined directly, so `../shared/*.md` works.

Unlike `glob.glob()`, listing errors other than a missing directory are
raised as `PatternExpansionError` instead of being skipped.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from fnmatch import fnmatchcase
from pathlib import Path

from llmcat.errors import PatternExpansionError

# Characters that make a segment a wildcard rather than a literal name.
_GLOB_CHARS = frozenset("*?[")

# Escaped characters that must stay literal after unescaping.
_ESCAPABLE = frozenset("*?[]{},\\")

_SEPARATORS_RE = re.compile(r"[/\\]" if os.sep == "\\" else r"/")


def has_magic(segment: str) -> bool:
    return any(c in segment for c in _GLOB_CHARS)


def split_pattern(pattern: str) -> list[str]:
    """Split a relative pattern into segments, dropping empty and `.` segments."""
    return [s for s in _SEPARATORS_RE.split(pattern) if s not in ("", ".")]


def _class_end(pattern: str, start: int) -> int:
    """
    Index of the `]` closing the character class opened at `start`, or -1 if
    the class is not closed before the end of its segment.
    """
    j = start + 1
    if j < len(pattern) and pattern[j] == "!":
        j += 1
    # A `]` right after the opening bracket is a literal member.
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    while j < len(pattern):
        c = pattern[j]
        if c == "]":
            return j
        if _SEPARATORS_RE.match(c):
            return -1
        j += 1
    return -1


def unescape_pattern(pattern: str) -> str:
    """
    Resolve backslash escapes. An escaped wildcard or brace character becomes a
    one-member character class (`\\*` becomes `[*]`), any other escaped
    character becomes itself. Character class contents are left as written.
    Patterns are returned unchanged on Windows.
    """
    if os.sep == "\\":
        return pattern
    out: list[str] = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "[":
            end = _class_end(pattern, i)
            if end != -1:
                out.append(pattern[i : end + 1])
                i = end + 1
                continue
        elif c == "\\":
            if i + 1 == len(pattern):
                raise PatternExpansionError(
                    f"Invalid glob pattern {pattern!r}: trailing backslash"
                )
            escaped = pattern[i + 1]
            out.append(f"[{escaped}]" if escaped in _ESCAPABLE else escaped)
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def expand_braces(pattern: str) -> list[str]:
    """
    Expand `{a,b}` alternatives into separate patterns, left to right:
    `*.{go,md}` gives `["*.go", "*.md"]`. Braces inside a character class are
    literal. Raises `PatternExpansionError` for an unmatched `{` or `}`.
    """
    open_at = -1
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "[":
            end = _class_end(pattern, i)
            if end != -1:
                i = end + 1
                continue
        elif c == "}":
            raise PatternExpansionError(f"Invalid glob pattern {pattern!r}: unmatched '}}'")
        elif c == "{":
            open_at = i
            break
        i += 1
    if open_at == -1:
        return [pattern]

    depth = 0
    close_at = -1
    commas: list[int] = []
    i = open_at
    while i < len(pattern):
        c = pattern[i]
        if c == "[":
            end = _class_end(pattern, i)
            if end != -1:
                i = end + 1
                continue
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                close_at = i
                break
        elif c == "," and depth == 1:
            commas.append(i)
        i += 1
    if close_at == -1:
        raise PatternExpansionError(f"Invalid glob pattern {pattern!r}: unmatched '{{'")

    prefix, suffix = pattern[:open_at], pattern[close_at + 1 :]
    bounds = [open_at, *commas, close_at]
    expanded: list[str] = []
    for start, end in zip(bounds, bounds[1:]):
        expanded.extend(expand_braces(prefix + pattern[start + 1 : end] + suffix))
    return expanded


def validate_pattern(pattern: str) -> None:
    """
    Raise `PatternExpansionError` for an empty pattern, a trailing backslash,
    unbalanced braces, or a segment with an unterminated `[` character class.
    """
    if not pattern.strip():
        raise PatternExpansionError("Empty glob pattern")
    for expanded in expand_braces(unescape_pattern(pattern)):
        for segment in split_pattern(expanded):
            i = 0
            while i < len(segment):
                if segment[i] == "[":
                    end = _class_end(segment, i)
                    if end == -1:
                        raise PatternExpansionError(
                            f"Invalid glob pattern {pattern!r}: unterminated character class"
                        )
                    i = end
                i += 1


def iter_matches(root: Path, pattern: str) -> Iterator[Path]:
    """
    Yield every path under `root` matching the relative `pattern`. Directories
    are yielded too; callers filter them. The same path may be yielded more
    than once when a pattern contains several `**` segments or overlapping
    brace alternatives.
    """
    for expanded in expand_braces(unescape_pattern(pattern)):
        segments = split_pattern(expanded)
        if segments and segments[-1] == "**":
            # A trailing `**` selects everything beneath it, files included.
            segments.append("*")
        yield from _match(root, segments)


def _match(directory: Path, segments: list[str]) -> Iterator[Path]:
    if not segments:
        yield directory
        return

    head, rest = segments[0], segments[1:]

    if head == "**":
        yield from _match(directory, rest)
        for entry in _scandir(directory):
            if _is_hidden(entry.name):
                continue
            if entry.is_dir(follow_symlinks=False):
                yield from _match(directory / entry.name, segments)
        return

    if not has_magic(head):
        candidate = directory / head
        if rest:
            if candidate.is_dir():
                yield from _match(candidate, rest)
        elif os.path.lexists(candidate):
            yield candidate
        return

    allow_hidden = head.startswith(".")
    for entry in _scandir(directory):
        if _is_hidden(entry.name) and not allow_hidden:
            continue
        if not fnmatchcase(entry.name, head):
            continue
        if rest:
            if entry.is_dir():
                yield from _match(directory / entry.name, rest)
        else:
            yield directory / entry.name


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _scandir(directory: Path) -> list[os.DirEntry[str]]:
    """List a directory, sorted by name. A missing directory lists as empty."""
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except (FileNotFoundError, NotADirectoryError):
        return []
    except OSError as e:
        raise PatternExpansionError(f"Error listing directory {directory}: {e}") from e
    entries.sort(key=lambda entry: entry.name)
    return entries
