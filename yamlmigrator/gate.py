"""
Toolchain version gate.

``go.yaml.in/yaml`` requires Go 1.22, so a project whose ``go`` directive is
older cannot be migrated.  The check happens before any file is touched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .config import REQUIRED_GO_VERSION
from .errors import GoVersionError, ManifestParseError
from .gomod import parse_modfile

__all__ = [
    "read_go_version",
    "compare_go",
    "check_go_version",
]

logger = logging.getLogger(__name__)

UNKNOWN_GO_VERSION = "0.0"


def read_go_version(root: Path, manifest_name: str = "go.mod") -> str:
    """Return the argument of the first ``go`` directive in ``root/go.mod``.

    A missing, unreadable or malformed manifest, or one without a ``go``
    directive, yields ``"0.0"`` which always fails the gate.
    """
    path = root / manifest_name
    try:
        modfile = parse_modfile(path.read_text(encoding="utf-8"), path)
    except (OSError, UnicodeDecodeError, ManifestParseError) as exc:
        logger.debug("cannot read go directive from %s: %s", path, exc)
        return UNKNOWN_GO_VERSION
    return modfile.go_version or UNKNOWN_GO_VERSION


def _major_minor(version: str) -> List[int]:
    parts = version.split(".", 2)
    numbers = []
    for part in parts[:2]:
        try:
            numbers.append(int(part))
        except ValueError:
            numbers.append(0)
    while len(numbers) < 2:
        numbers.append(0)
    return numbers


def compare_go(a: str, b: str) -> int:
    """Compare two Go versions by major then minor component.

    Returns ``-1``, ``0`` or ``1``.  Patch levels are ignored and any
    non-numeric component counts as zero, so ``"1.22rc1"`` compares equal
    to ``"1.0"``.
    """
    pa, pb = _major_minor(a), _major_minor(b)
    if pa < pb:
        return -1
    if pa > pb:
        return 1
    return 0


def check_go_version(
    root: Path,
    required: str = REQUIRED_GO_VERSION,
    manifest_name: str = "go.mod",
) -> str:
    """Return the detected version, raising :class:`GoVersionError` if it is too old."""
    detected = read_go_version(root, manifest_name)
    if compare_go(detected, required) < 0:
        raise GoVersionError(detected, required)
    return detected
