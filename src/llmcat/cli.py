#!/usr/bin/env python3
"""
llmcat: Concatenate files matched by glob patterns, for use as LLM input

Common usage:
  llmcat cat '**/*.md'
  llmcat cat -b ~/src/project -f -d 'src/**/*.py' README.md
  llmcat cat -f --filename-prefix '### ' --content-prefix '```\\n' --content-suffix '```\\n' '*.py'
  llmcat cat --list-files '**/*.py'
  llmcat version

Patterns are matched relative to --base-dir (default: current directory).
Quote patterns so the shell doesn't expand them first.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from llmcat.cat import CatConfig, cat_files, unescape_newlines
from llmcat.config import LlmcatConfig, find_config_file, load_config, merged_value
from llmcat.errors import LlmcatError, OutputWriteError
from llmcat.file_resolver import FileResolver, FileResolverConfig

log = logging.getLogger(__name__)


@dataclass
class Options:
    """Command-line options for the llmcat tool. `None` means the flag was not given."""

    command: str
    patterns: list[str] = field(default_factory=list)
    base_dir: str | None = None
    show_filename: bool | None = None
    show_dashes: bool | None = None
    content_prefix: str | None = None
    content_suffix: str | None = None
    filename_prefix: str | None = None
    filename_suffix: str | None = None
    exclude: list[str] | None = None
    respect_gitignore: bool | None = None
    list_files: bool = False
    output: str = "-"
    debug: bool = False
    no_config: bool = False


def _add_cat_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "patterns",
        nargs="+",
        metavar="PATTERN",
        help="Glob patterns to match, relative to the base directory (supports '**')",
    )
    parser.add_argument(
        "-b",
        "--base-dir",
        type=str,
        default=None,
        help="Root for pattern matching and displayed file names (default: .)",
    )
    parser.add_argument(
        "-f",
        "--show-filename",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show file name before content",
    )
    parser.add_argument(
        "-d",
        "--show-dashes",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Add dashed lines before and after each file",
    )
    parser.add_argument(
        "--content-prefix",
        type=str,
        default=None,
        metavar="TEXT",
        help="Text to print before file contents ('\\n' is a newline)",
    )
    parser.add_argument(
        "--content-suffix",
        type=str,
        default=None,
        metavar="TEXT",
        help="Text to print after file contents ('\\n' is a newline)",
    )
    parser.add_argument(
        "--filename-prefix",
        type=str,
        default=None,
        metavar="TEXT",
        help="Text to print before file name",
    )
    parser.add_argument(
        "--filename-suffix",
        type=str,
        default=None,
        metavar="TEXT",
        help="Text to print after file name",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Skip files matching this gitignore-style pattern. Can be repeated",
    )
    parser.add_argument(
        "--respect-gitignore",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip files ignored by .gitignore files or .llmcatignore",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        help="Print resolved file paths, one per line, instead of their contents",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="-",
        help="Output file (use '-' for stdout)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print pattern resolution details to stderr",
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        dest="no_config",
        help="Ignore .llmcat.toml, llmcat.toml and [tool.llmcat] in pyproject.toml",
    )


def _parse_args(args: list[str] | None = None) -> Options:
    """Parse command-line arguments."""
    # Use the module's docstring as the description
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="llmcat",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    cat_parser = subparsers.add_parser(
        "cat",
        help="Concatenate files for LLM input",
        description="Concatenate the files matched by the glob patterns into a single output.",
    )
    _add_cat_arguments(cat_parser)
    subparsers.add_parser("version", help="Print the version number")

    opts = parser.parse_args(args)

    if opts.command == "version":
        return Options(command="version")

    return Options(
        command=opts.command,
        patterns=opts.patterns,
        base_dir=opts.base_dir,
        show_filename=opts.show_filename,
        show_dashes=opts.show_dashes,
        content_prefix=opts.content_prefix,
        content_suffix=opts.content_suffix,
        filename_prefix=opts.filename_prefix,
        filename_suffix=opts.filename_suffix,
        exclude=opts.exclude,
        respect_gitignore=opts.respect_gitignore,
        list_files=opts.list_files,
        output=opts.output,
        debug=opts.debug,
        no_config=opts.no_config,
    )


def _setup_logging(debug: bool) -> None:
    """Send llmcat's own log records to stderr; DEBUG with --debug, else warnings only."""
    logger = logging.getLogger("llmcat")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def _get_version() -> str:
    try:
        return "v" + importlib.metadata.version("llmcat")
    except importlib.metadata.PackageNotFoundError:
        return "(unknown)"


def _build_cat_config(options: Options, file_config: LlmcatConfig | None, base_dir: str) -> CatConfig:
    """Merge flags with the config file into the immutable output configuration."""

    def pick(name: str, cli_value: object, default: object) -> object:
        return merged_value(name, cli_value, file_config, default)

    return CatConfig(
        show_filename=bool(pick("show_filename", options.show_filename, False)),
        use_dashes=bool(pick("show_dashes", options.show_dashes, False)),
        content_prefix=unescape_newlines(str(pick("content_prefix", options.content_prefix, ""))),
        content_suffix=unescape_newlines(str(pick("content_suffix", options.content_suffix, ""))),
        filename_prefix=str(pick("filename_prefix", options.filename_prefix, "")),
        filename_suffix=str(pick("filename_suffix", options.filename_suffix, "")),
        base_dir=base_dir,
    )


@contextmanager
def _open_output(output: str) -> Iterator[BinaryIO]:
    """Yield a binary stream for `output`, which is a file path or `-` for stdout."""
    if output == "-":
        sys.stdout.flush()
        stdout = sys.stdout.buffer
        yield stdout
        try:
            stdout.flush()
        except OSError as e:
            raise OutputWriteError(f"Error writing output: {e}") from e
        return

    try:
        f = open(output, "wb")
    except OSError as e:
        raise OutputWriteError(f"Error opening output file {output}: {e}") from e
    with f:
        yield f


def _write_file_list(files: list[Path], out: BinaryIO) -> None:
    """Write one path per line, as the raw file system bytes of each name."""
    try:
        for path in files:
            out.write(os.fsencode(path) + b"\n")
    except OSError as e:
        raise OutputWriteError(f"Error writing output: {e}") from e


def _run_cat(options: Options) -> int:
    file_config: LlmcatConfig | None = None
    if not options.no_config:
        config_path = find_config_file(Path.cwd())
        if config_path:
            log.debug("Using config file: %s", config_path)
            file_config = load_config(config_path)

    base_dir = str(merged_value("base_dir", options.base_dir, file_config, "."))
    exclude = merged_value("exclude", options.exclude, file_config, [])
    respect_gitignore = bool(
        merged_value("respect_gitignore", options.respect_gitignore, file_config, False)
    )

    resolver = FileResolver(
        FileResolverConfig(
            base_dir=base_dir,
            exclude=tuple(exclude),
            respect_gitignore=respect_gitignore,
        )
    )
    files = resolver.resolve(options.patterns)

    cat_config = _build_cat_config(options, file_config, base_dir)
    with _open_output(options.output) as out:
        if options.list_files:
            _write_file_list(files, out)
        else:
            cat_files(files, cat_config, out)
    return 0


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the llmcat CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    options = _parse_args(args)
    _setup_logging(options.debug)

    if options.command == "version":
        print(_get_version())
        return 0

    try:
        return _run_cat(options)
    except LlmcatError as e:
        if isinstance(e.__cause__, BrokenPipeError):
            # Keep the interpreter's final stdout flush from failing again.
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, sys.stdout.fileno())
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
