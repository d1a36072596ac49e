"""
Migrate Go projects from ``gopkg.in/yaml.vN`` to ``go.yaml.in/yaml/vN``.

This package provides a command‑line interface (CLI) that rewrites the
import declarations of every Go source file in a project and the matching
``require`` entries of its ``go.mod``.  Rewriting works on syntax trees
rather than raw text, so string constants and comments that mention the old
path are left untouched, and only complete module paths are replaced:
``gopkg.in/yaml.v3`` becomes ``go.yaml.in/yaml/v3`` while the major version
digit is kept as is.

Example::

    # Preview what would change
    yamlmigrator --path ./service --dry-run

    # Rewrite, then run go mod tidy
    yamlmigrator --path ./service

The CLI is built on top of :mod:`click`.  See ``yamlmigrator.cli`` for
details and ``yamlmigrator.migrator`` for the programmatic entry point.
"""

__all__ = [
    "MigrationConfig",
    "ScanResult",
    "migrate",
    "rewrite_source",
    "rewrite_module_path",
]

from .config import MigrationConfig  # noqa: F401
from .gosource import rewrite_source  # noqa: F401
from .matcher import rewrite_module_path  # noqa: F401
from .migrator import ScanResult, migrate  # noqa: F401
