"""
Glob-based file discovery relative to a base directory.

Usage::

    from llmcat.file_resolver import FileResolver, FileResolverConfig

    config = FileResolverConfig(base_dir="~/src/project", exclude=("*.lock",))
    resolver = FileResolver(config)
    files = resolver.resolve(["**/*.md", "src/*.py"])
"""

from llmcat.file_resolver.paths import expand_path
from llmcat.file_resolver.resolver import FileResolver, resolve_base_dir
from llmcat.file_resolver.types import FileResolverConfig

__all__ = [
    "FileResolver",
    "FileResolverConfig",
    "expand_path",
    "resolve_base_dir",
]
