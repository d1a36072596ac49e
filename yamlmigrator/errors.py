"""
Exceptions raised by the migration engine.

Every fatal condition derives from :class:`MigrationError` so the CLI can
turn it into a non-zero exit with a single ``except`` clause.  Failures of
external tools (``gofmt``, ``go mod tidy``) are *not* represented here; they
come back as :class:`yamlmigrator.runner.CommandResult` values and are only
reported.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class MigrationError(Exception):
    """Base class for errors that abort a migration run."""


class GoVersionError(MigrationError):
    """The project's ``go`` directive is older than the required version."""

    def __init__(self, detected: str, required: str) -> None:
        super().__init__(
            f"Detected Go {detected}. go.yaml.in/yaml requires Go {required}+"
        )
        self.detected = detected
        self.required = required


class TraversalError(MigrationError):
    """A file or directory could not be read while walking the project."""


class ParseError(MigrationError):
    """A source file or manifest could not be parsed."""

    def __init__(
        self,
        path: Optional[Path],
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        location = str(path) if path is not None else "<input>"
        if line is not None:
            location += f":{line}"
            if column is not None:
                location += f":{column}"
        super().__init__(f"{location}: {message}")
        self.path = path
        self.line = line
        self.column = column


class SourceParseError(ParseError):
    """A ``.go`` file contains malformed syntax."""


class ManifestParseError(ParseError):
    """``go.mod`` contains malformed syntax."""


class WriteError(MigrationError):
    """A rewritten file could not be persisted."""
