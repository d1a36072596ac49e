"""
Recognise the deprecated ``gopkg.in/yaml.vN`` module family.

Only complete module paths match: ``gopkg.in/yaml.v3`` is rewritten to
``go.yaml.in/yaml/v3`` while ``gopkg.in/yaml.v3/internal`` or
``example.com/gopkg.in/yaml.v3`` are left alone.  The major version digit is
carried over verbatim; only the root and the suffix style change
(``.v3`` becomes ``/v3``).
"""

from __future__ import annotations

import re
from typing import Optional

from .config import DEPRECATED_ROOT, NEW_ROOT

__all__ = [
    "MODULE_PATH_RE",
    "match_module_path",
    "replacement_path",
    "rewrite_module_path",
]

MODULE_PATH_RE = re.compile(rf"^{re.escape(DEPRECATED_ROOT)}\.v([234])$")


def match_module_path(path: str) -> Optional[str]:
    """Return the major version digit if ``path`` is a deprecated yaml path.

    >>> match_module_path("gopkg.in/yaml.v2")
    '2'
    >>> match_module_path("gopkg.in/yaml.v2/sub") is None
    True
    """
    m = MODULE_PATH_RE.fullmatch(path)
    return m.group(1) if m else None


def replacement_path(major: str) -> str:
    return f"{NEW_ROOT}/v{major}"


def rewrite_module_path(path: str) -> Optional[str]:
    """Return the canonical replacement for ``path``, or ``None`` if it does not match."""
    major = match_module_path(path)
    if major is None:
        return None
    return replacement_path(major)
