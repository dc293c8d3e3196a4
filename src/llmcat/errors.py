"""
Error types raised by llmcat.

Every error is terminal: the first one aborts the run, and the CLI reports its
message on stderr and exits non-zero.
"""

from __future__ import annotations


class LlmcatError(Exception):
    """Base class for all llmcat errors."""


class ConfigError(LlmcatError):
    """A config file could not be read or parsed."""


class InvalidBaseDirectory(LlmcatError):
    """The base directory does not exist or is not a directory."""


class PathExpansionError(LlmcatError):
    """Home directory lookup failed while expanding `~`."""


class PatternExpansionError(LlmcatError):
    """A glob pattern is invalid, or listing a directory failed."""


class FileAccessError(LlmcatError):
    """A resolved file is missing or turned into a directory before it was read."""


class FileReadError(LlmcatError):
    """A resolved file could not be opened or read."""


class OutputWriteError(LlmcatError):
    """Writing to the output stream failed."""
