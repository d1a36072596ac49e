from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from yamlmigrator.runner import CommandResult, ProcessRunner

GO_MOD = """\
module example.com/app

go 1.22

require gopkg.in/yaml.v3 v3.0.1
"""

MAIN_GO = """\
package main

import "gopkg.in/yaml.v3"

func main() {
	_ = yaml.Unmarshal
}
"""


class FakeRunner(ProcessRunner):
    """Records commands instead of running them.

    ``gofmt`` either echoes its input back (``gofmt_ok=True``) or behaves as
    if it were not installed.
    """

    def __init__(self, gofmt_ok: bool = False, tidy_returncode: int = 0) -> None:
        self.gofmt_ok = gofmt_ok
        self.tidy_returncode = tidy_returncode
        self.calls: List[Tuple[Tuple[str, ...], Optional[Path]]] = []

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input: Optional[bytes] = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append((argv, cwd))
        if argv[0] == "gofmt":
            if self.gofmt_ok:
                return CommandResult(argv, 0, stdout=input, stderr=b"")
            return CommandResult(argv, -1, error="could not run gofmt: not found")
        return CommandResult(argv, self.tidy_returncode)

    def commands(self) -> List[Tuple[str, ...]]:
        return [argv for argv, _ in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def go_project(tmp_path):
    """Build a project tree from a mapping of relative paths to contents."""

    def _make(files: Dict[str, str]) -> Path:
        for name, content in files.items():
            target = tmp_path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


def snapshot(root: Path) -> Dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
