"""CLI integration tests."""

from __future__ import annotations

import io
import os
import sys
from pathlib import Path

import pytest

from llmcat.cli import _write_file_list, main
from llmcat.errors import OutputWriteError

DASHES = b"-" * 80


def _make_tree(root: Path) -> None:
    """Create a minimal project directory tree for testing."""
    (root / "README.md").write_text("# Root\n")
    docs = root / "docs"
    docs.mkdir()
    (docs / "guide.md").write_text("# Guide\n")
    (docs / "api.md").write_text("# API\n")
    (root / "code.py").write_text("print('hello')\n")


def test_cat_single_file_round_trip(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "notes.txt").write_bytes(b"alpha\nbeta")
    assert main(["cat", "--no-config", "-b", str(tmp_path), "notes.txt"]) == 0
    out = capsysbinary.readouterr().out
    assert out == b"alpha\nbeta\n"


def test_cat_recursive_sorted(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    assert main(["cat", "--no-config", "-b", str(tmp_path), "**/*.md"]) == 0
    out = capsysbinary.readouterr().out
    assert out == b"# Root\n# API\n# Guide\n\n"


def test_cat_overlapping_patterns_emit_once(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]
):
    (tmp_path / "readme.md").write_text("# Readme\n")
    assert main(["cat", "--no-config", "-b", str(tmp_path), "*.md", "**/*.md"]) == 0
    out = capsysbinary.readouterr().out
    assert out.count(b"# Readme") == 1


def test_cat_filename_banner(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    args = ["cat", "--no-config", "-b", str(tmp_path), "-f", "--filename-prefix", "### "]
    assert main([*args, "docs/guide.md"]) == 0
    out = capsysbinary.readouterr().out
    assert out == b"### docs/guide.md\n# Guide\n\n"


def test_cat_dashes(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "a.txt").write_text("no newline")
    assert main(["cat", "--no-config", "-b", str(tmp_path), "--show-dashes", "a.txt"]) == 0
    out = capsysbinary.readouterr().out
    assert out == DASHES + b"\nno newline\n" + DASHES + b"\n\n"


def test_cat_escaped_newline_in_prefix(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "a.py").write_text("x = 1\n")
    args = ["cat", "--no-config", "-b", str(tmp_path)]
    args += ["--content-prefix", "```python\\n", "--content-suffix", "```\\n", "a.py"]
    assert main(args) == 0
    out = capsysbinary.readouterr().out
    assert out == b"```python\nx = 1\n```\n\n"


def test_cat_default_base_dir_is_cwd(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes], monkeypatch: pytest.MonkeyPatch
):
    _make_tree(tmp_path)
    monkeypatch.chdir(tmp_path)
    assert main(["cat", "--no-config", "-f", "*.py"]) == 0
    out = capsysbinary.readouterr().out
    assert out == b"code.py\nprint('hello')\n\n"


def test_cat_output_file(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "a.txt").write_text("A\n")
    target = tmp_path / "out" / "result.txt"
    target.parent.mkdir()
    assert main(["cat", "--no-config", "-b", str(tmp_path), "-o", str(target), "a.txt"]) == 0
    assert target.read_bytes() == b"A\n\n"
    assert capsysbinary.readouterr().out == b""


def test_missing_base_dir(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    missing = tmp_path / "nope"
    assert main(["cat", "--no-config", "-b", str(missing), "*.md"]) == 1
    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"Error: Base directory does not exist" in captured.err
    assert str(missing).encode() in captured.err


def test_invalid_pattern(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    assert main(["cat", "--no-config", "-b", str(tmp_path), "[oops"]) == 1
    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"Error: Invalid glob pattern" in captured.err


def test_no_matches_is_not_an_error(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    assert main(["cat", "--no-config", "-b", str(tmp_path), "*.nothing"]) == 0
    assert capsysbinary.readouterr().out == b"\n"


def test_patterns_required(capsys: pytest.CaptureFixture[str]):
    with pytest.raises(SystemExit) as exc:
        main(["cat"])
    assert exc.value.code == 2


def test_list_files(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    assert main(["cat", "--no-config", "-b", str(tmp_path), "--list-files", "**/*.md"]) == 0
    lines = capsysbinary.readouterr().out.decode().strip().split("\n")
    assert lines == [
        str(tmp_path / "README.md"),
        str(tmp_path / "docs" / "api.md"),
        str(tmp_path / "docs" / "guide.md"),
    ]


def test_list_files_exclude(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    args = ["cat", "--no-config", "-b", str(tmp_path), "--list-files"]
    assert main([*args, "--exclude", "docs/", "**/*.md"]) == 0
    out = capsysbinary.readouterr().out.decode()
    assert "README.md" in out
    assert "docs" not in out


def test_list_files_respect_gitignore(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    (tmp_path / ".gitignore").write_text("api.md\n")
    args = ["cat", "--no-config", "-b", str(tmp_path), "--list-files", "**/*.md"]

    assert main(args) == 0
    assert b"api.md" in capsysbinary.readouterr().out

    assert main([*args, "--respect-gitignore"]) == 0
    out = capsysbinary.readouterr().out
    assert b"api.md" not in out
    assert b"guide.md" in out


@pytest.mark.skipif(sys.platform != "linux", reason="needs file names that are not valid UTF-8")
def test_list_files_undecodable_name(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    name = os.fsdecode(b"bad\xff.txt")
    (tmp_path / name).write_bytes(b"x")

    assert main(["cat", "--no-config", "-b", str(tmp_path), "--list-files", "*.txt"]) == 0
    captured = capsysbinary.readouterr()
    assert captured.out == os.fsencode(tmp_path / name) + b"\n"
    assert captured.err == b""


def test_list_files_output_file(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    target = tmp_path / "files.txt"
    args = ["cat", "--no-config", "-b", str(tmp_path), "--list-files", "-o", str(target)]

    assert main([*args, "docs/*.md"]) == 0
    assert capsysbinary.readouterr().out == b""
    api, guide = tmp_path / "docs" / "api.md", tmp_path / "docs" / "guide.md"
    assert target.read_bytes() == os.fsencode(api) + b"\n" + os.fsencode(guide) + b"\n"


class _ClosedPipe(io.RawIOBase):
    def writable(self) -> bool:
        return True

    def write(self, b: object) -> int:
        raise BrokenPipeError("broken pipe")


def test_list_files_write_error(tmp_path: Path):
    with pytest.raises(OutputWriteError, match="Error writing output"):
        _write_file_list([tmp_path / "a.md"], _ClosedPipe())  # pyright: ignore[reportArgumentType]


def test_cat_brace_alternatives(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    _make_tree(tmp_path)
    args = ["cat", "--no-config", "-b", str(tmp_path), "--list-files"]
    assert main([*args, "*.{py,md}"]) == 0
    lines = capsysbinary.readouterr().out.decode().splitlines()
    assert lines == [str(tmp_path / "README.md"), str(tmp_path / "code.py")]


def test_debug_goes_to_stderr(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "a.md").write_text("# A\n")
    assert main(["cat", "--no-config", "--debug", "-b", str(tmp_path), "*.md"]) == 0
    captured = capsysbinary.readouterr()
    assert captured.out == b"# A\n\n"
    assert b"Base directory: " in captured.err
    assert b"Resolving pattern: *.md" in captured.err
    assert b"Matches found:" in captured.err


def test_no_debug_output_by_default(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]):
    (tmp_path / "a.md").write_text("# A\n")
    assert main(["cat", "--no-config", "-b", str(tmp_path), "*.md"]) == 0
    assert capsysbinary.readouterr().err == b""


def test_config_file_defaults(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes], monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.md").write_text("# A\n")
    (tmp_path / ".llmcat.toml").write_text('show-filename = true\nfilename-prefix = "## "\n')
    monkeypatch.chdir(tmp_path)

    assert main(["cat", "*.md"]) == 0
    assert capsysbinary.readouterr().out == b"## a.md\n# A\n\n"


def test_cli_flags_override_config(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes], monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.md").write_text("# A\n")
    (tmp_path / ".llmcat.toml").write_text('show-filename = true\nfilename-prefix = "## "\n')
    monkeypatch.chdir(tmp_path)

    assert main(["cat", "--no-show-filename", "*.md"]) == 0
    assert capsysbinary.readouterr().out == b"# A\n\n"

    assert main(["cat", "--filename-prefix", "> ", "*.md"]) == 0
    assert capsysbinary.readouterr().out == b"> a.md\n# A\n\n"


def test_no_config_ignores_config_file(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes], monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.md").write_text("# A\n")
    (tmp_path / ".llmcat.toml").write_text("show-dashes = true\n")
    monkeypatch.chdir(tmp_path)

    assert main(["cat", "--no-config", "*.md"]) == 0
    assert capsysbinary.readouterr().out == b"# A\n\n"


def test_invalid_config_file(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes], monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.md").write_text("# A\n")
    (tmp_path / ".llmcat.toml").write_text("show-dashes = \n")
    monkeypatch.chdir(tmp_path)

    assert main(["cat", "*.md"]) == 1
    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"Error: Invalid TOML in config file" in captured.err


def test_version(capsys: pytest.CaptureFixture[str]):
    assert main(["version"]) == 0
    out = capsys.readouterr().out.strip()
    assert out
    assert out.startswith("v") or out == "(unknown)"
