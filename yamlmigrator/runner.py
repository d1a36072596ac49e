"""
External command execution.

The engine never calls :mod:`subprocess` directly; it is handed a
:class:`ProcessRunner` so tests can substitute a fake and so a failing or
missing tool is reported as data rather than an exception.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

__all__ = [
    "CommandResult",
    "ProcessRunner",
    "SubprocessRunner",
]

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external command.

    ``stdout``/``stderr`` are ``None`` when the streams were inherited from
    the parent process.  ``error`` is set when the command could not be
    launched at all, in which case ``returncode`` is ``-1``.
    """

    args: Tuple[str, ...]
    returncode: int
    stdout: Optional[bytes] = None
    stderr: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.error is None

    def describe(self) -> str:
        if self.error is not None:
            return self.error
        if self.returncode != 0:
            detail = (self.stderr or b"").decode("utf-8", "replace").strip()
            message = f"exit status {self.returncode}"
            return f"{message}: {detail}" if detail else message
        return "ok"


class ProcessRunner(ABC):
    """Capability to run a command in a working directory.

    ``input`` is fed to the command's stdin.  With ``capture`` set, stdout
    and stderr are collected on the result; otherwise they are inherited.
    Implementations report launch failures on the result instead of raising.
    """

    @abstractmethod
    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input: Optional[bytes] = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run ``args`` in ``cwd`` and wait for it to finish."""


class SubprocessRunner(ProcessRunner):
    """Run commands with :func:`subprocess.run`.

    No timeout is applied: a hanging command hangs the caller.
    """

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input: Optional[bytes] = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(args)
        logger.debug("running %s in %s", " ".join(argv), cwd or ".")
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                input=input,
                capture_output=capture,
                check=False,
            )
        except OSError as exc:
            logger.debug("could not launch %s: %s", argv[0], exc)
            return CommandResult(argv, -1, error=f"could not run {argv[0]}: {exc}")
        return CommandResult(
            argv,
            completed.returncode,
            stdout=completed.stdout if capture else None,
            stderr=completed.stderr if capture else None,
        )
