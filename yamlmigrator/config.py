"""Settings shared by the migration engine and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Tuple

DEPRECATED_ROOT = "gopkg.in/yaml"
NEW_ROOT = "go.yaml.in/yaml"
# go.yaml.in/yaml itself declares go 1.22
REQUIRED_GO_VERSION = "1.22"

SKIP_DIRS: FrozenSet[str] = frozenset({"vendor", ".git"})


@dataclass
class MigrationConfig:
    """Everything a single migration run needs to know.

    Parameters
    ----------
    root: Path
        Directory of the Go project (the one holding ``go.mod``).
    dry_run: bool
        Detect and report changes without writing anything or running
        ``go mod tidy``.
    tidy: bool
        Run ``go mod tidy`` after a non dry run.
    """

    root: Path = field(default_factory=lambda: Path("."))
    dry_run: bool = False
    tidy: bool = True
    skip_dirs: FrozenSet[str] = SKIP_DIRS
    source_suffix: str = ".go"
    manifest_name: str = "go.mod"
    required_go: str = REQUIRED_GO_VERSION
    format_command: Tuple[str, ...] = ("gofmt",)
    tidy_command: Tuple[str, ...] = ("go", "mod", "tidy")

    @property
    def manifest_path(self) -> Path:
        return self.root / self.manifest_name
