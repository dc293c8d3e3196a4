"""
Concatenation of resolved files into a single decorated output stream.

File contents are passed through byte for byte. Only the decoration
(separators, filename banners, prefixes and suffixes) is generated text, and
it is written as UTF-8.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from llmcat.errors import FileAccessError, FileReadError, OutputWriteError
from llmcat.file_resolver import expand_path

log = logging.getLogger(__name__)

SEPARATOR_WIDTH = 80
SEPARATOR = "-" * SEPARATOR_WIDTH

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class CatConfig:
    """
    Output decoration settings, built once from the command line and config
    file. Prefix and suffix values are used verbatim, so any `\\n` escapes must
    already have been converted (see `unescape_newlines()`).
    """

    show_filename: bool = False
    use_dashes: bool = False
    content_prefix: str = ""
    content_suffix: str = ""
    filename_prefix: str = ""
    filename_suffix: str = ""
    base_dir: str | Path = "."


def unescape_newlines(text: str) -> str:
    """Replace each literal two-character `\\n` sequence with a newline."""
    return text.replace("\\n", "\n")


def display_path(path: Path, base_dir: Path) -> str:
    """Path relative to `base_dir`, or the absolute path if none exists (other drive)."""
    try:
        return os.path.relpath(path, base_dir)
    except ValueError:
        return str(path)


class _OutputWriter:
    """Wraps the output stream, remembering whether we're at the start of a line."""

    def __init__(self, out: BinaryIO) -> None:
        self._out = out
        self.at_line_start = True

    def write(self, data: bytes) -> None:
        if not data:
            return
        try:
            self._out.write(data)
        except OSError as e:
            raise OutputWriteError(f"Error writing output: {e}") from e
        self.at_line_start = data.endswith(b"\n")

    def write_text(self, text: str) -> None:
        self.write(text.encode("utf-8", "surrogateescape"))

    def write_line(self, text: str = "") -> None:
        self.write_text(text + "\n")


def check_file(path: Path) -> None:
    """Raise `FileAccessError` unless `path` exists and is not a directory."""
    try:
        st = path.stat()
    except OSError as e:
        raise FileAccessError(f"Error accessing file {path}: {e}") from e
    if stat.S_ISDIR(st.st_mode):
        raise FileAccessError(f"{path} is a directory, not a file")


def _copy_file(path: Path, writer: _OutputWriter) -> None:
    try:
        f = open(path, "rb")
    except OSError as e:
        raise FileReadError(f"Error opening file {path}: {e}") from e
    with f:
        while True:
            try:
                chunk = f.read(_CHUNK_SIZE)
            except OSError as e:
                raise FileReadError(f"Error reading file {path}: {e}") from e
            if not chunk:
                break
            writer.write(chunk)


def cat_files(files: Iterable[Path], config: CatConfig, out: BinaryIO) -> None:
    """
    Write each file to `out` in order, wrapped in the decoration `config` asks
    for, then a final newline.

    The first failure aborts the run with `FileAccessError`, `FileReadError` or
    `OutputWriteError`; whatever was already written stays written.
    """
    base_dir = expand_path(config.base_dir)
    writer = _OutputWriter(out)

    for path in files:
        check_file(path)
        log.debug("Writing %s", path)

        if config.use_dashes:
            if not writer.at_line_start:
                writer.write_line()
            writer.write_line(SEPARATOR)

        if config.show_filename:
            writer.write_line(
                config.filename_prefix + display_path(path, base_dir) + config.filename_suffix
            )

        writer.write_text(config.content_prefix)
        _copy_file(path, writer)
        writer.write_text(config.content_suffix)

        if config.use_dashes:
            if not writer.at_line_start:
                writer.write_line()
            writer.write_line(SEPARATOR)

    writer.write_line()
