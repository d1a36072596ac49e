"""
Walk a Go project and migrate it from ``gopkg.in/yaml`` to ``go.yaml.in/yaml``.

A run has four stages:

1. the toolchain gate reads the ``go`` directive and refuses projects older
   than Go 1.22;
2. every ``.go`` file outside ``vendor`` and ``.git`` directories is parsed
   and rewritten in memory, then ``go.mod`` is parsed and rewritten in
   memory;
3. the staged changes are written (or only reported in dry-run mode);
4. ``go mod tidy`` reconciles the manifest, unless this is a dry run.

Because every file is parsed before the first write, a syntax error anywhere
aborts the run with the tree untouched.  Writes are still committed one file
at a time, so an I/O failure half way through can leave earlier files
migrated; re-running the tool picks up where it stopped.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .config import MigrationConfig
from .errors import TraversalError, WriteError
from .gate import check_go_version
from .gomod import ManifestRewrite, process_go_mod
from .gosource import SourceRewrite, gofmt_formatter, process_go_file
from .runner import CommandResult, ProcessRunner, SubprocessRunner

__all__ = [
    "ScanResult",
    "MigrationPlan",
    "iter_source_files",
    "plan_migration",
    "apply_plan",
    "run_tidy",
    "migrate",
]

logger = logging.getLogger(__name__)

# report(tag, message), e.g. report("SCAN", "pkg/config.go")
Reporter = Callable[[str, str], None]


def _silent(tag: str, message: str) -> None:
    pass


@dataclass
class ScanResult:
    """Counters for one run.

    ``matched`` counts source files with at least one deprecated import and
    ``changed`` the ones actually written, so ``changed`` stays zero in
    dry-run mode.
    """

    scanned: int = 0
    matched: int = 0
    changed: int = 0
    go_version: Optional[str] = None
    manifest_matched: bool = False
    manifest_updated: bool = False
    tidy: Optional[CommandResult] = None
    elapsed: float = 0.0


@dataclass
class MigrationPlan:
    sources: List[SourceRewrite] = field(default_factory=list)
    manifest: Optional[ManifestRewrite] = None


def iter_source_files(
    root: Path,
    config: MigrationConfig,
    report: Reporter = _silent,
) -> Iterator[Path]:
    """Yield Go source files under ``root`` in a stable order.

    Directories named in ``config.skip_dirs`` are pruned wherever they
    appear, so nothing inside them is ever visited.
    """

    def _raise(exc: OSError) -> None:
        raise TraversalError(f"walk failed: {exc}") from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        for name in sorted(d for d in dirnames if d in config.skip_dirs):
            report("SKIP", _display(Path(dirpath) / name, root))
        dirnames[:] = sorted(d for d in dirnames if d not in config.skip_dirs)
        for filename in sorted(filenames):
            if filename.endswith(config.source_suffix):
                yield Path(dirpath) / filename


def _display(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def plan_migration(
    config: MigrationConfig,
    runner: ProcessRunner,
    result: ScanResult,
    report: Reporter = _silent,
) -> MigrationPlan:
    """Parse every candidate file and stage the rewrites.  Nothing is written."""
    plan = MigrationPlan()
    formatter = gofmt_formatter(runner, config.format_command)
    for path in iter_source_files(config.root, config, report):
        result.scanned += 1
        report("SCAN", _display(path, config.root))
        rewrite = process_go_file(path, formatter=formatter)
        if not rewrite.changed:
            continue
        result.matched += 1
        for ref in rewrite.matches:
            report(
                "MATCH",
                f"{_display(path, config.root)}:{ref.line} {ref.path} -> {ref.replacement}",
            )
        plan.sources.append(rewrite)

    manifest_path = config.manifest_path
    if manifest_path.is_file():
        manifest = process_go_mod(manifest_path)
        if manifest.changed:
            result.manifest_matched = True
            for change in manifest.changes:
                report(
                    "GO.MOD",
                    f"require: {change.old_path} {change.version} -> "
                    f"{change.new_path} {change.version}",
                )
            plan.manifest = manifest
    else:
        logger.debug("no %s in %s", config.manifest_name, config.root)
    return plan


def _write(change: Union[SourceRewrite, ManifestRewrite]) -> None:
    try:
        change.path.write_bytes(change.text)
    except OSError as exc:
        raise WriteError(f"cannot write {change.path}: {exc}") from exc


def apply_plan(
    plan: MigrationPlan,
    config: MigrationConfig,
    result: ScanResult,
    report: Reporter = _silent,
) -> None:
    """Write the staged rewrites, or only report them in dry-run mode."""
    for rewrite in plan.sources:
        name = _display(rewrite.path, config.root)
        if config.dry_run:
            report("DRY-RUN", f"would update {name}")
            continue
        _write(rewrite)
        result.changed += 1
        report("UPDATED", name)

    if plan.manifest is None:
        return
    name = _display(plan.manifest.path, config.root)
    if config.dry_run:
        report("DRY-RUN", f"would write {name} changes")
        return
    _write(plan.manifest)
    result.manifest_updated = True
    report("GO.MOD", "updated")


def run_tidy(
    config: MigrationConfig,
    runner: ProcessRunner,
    report: Reporter = _silent,
) -> CommandResult:
    """Run ``go mod tidy`` in the project directory.

    Failures are reported, never raised.
    """
    report("TIDY", "running: " + " ".join(config.tidy_command))
    outcome = runner.run(config.tidy_command, cwd=config.root)
    if outcome.ok:
        report("TIDY", "finished")
    else:
        report("ERROR", f"{' '.join(config.tidy_command)} failed: {outcome.describe()}")
    return outcome


def migrate(
    config: MigrationConfig,
    runner: Optional[ProcessRunner] = None,
    report: Reporter = _silent,
    result: Optional[ScanResult] = None,
) -> ScanResult:
    """Run the whole migration and return its counters.

    Parameters
    ----------
    config: MigrationConfig
        Project root and switches.
    runner: ProcessRunner, optional
        Used for ``gofmt`` and ``go mod tidy``.  Defaults to
        :class:`SubprocessRunner`.
    report: callable, optional
        Receives ``(tag, message)`` progress events.
    result: ScanResult, optional
        Counters to update.  Pass one in to keep partial counts when the
        run aborts.

    Raises
    ------
    GoVersionError
        If the project's ``go`` directive is older than required.  No file
        is read or written.
    TraversalError, SourceParseError, ManifestParseError
        Before any write.
    WriteError
        If persisting a change fails.
    """
    started = time.monotonic()
    runner = runner or SubprocessRunner()
    result = result if result is not None else ScanResult()
    try:
        result.go_version = check_go_version(
            config.root, config.required_go, config.manifest_name
        )
        report("GO", f"detected go directive: {result.go_version}")
        plan = plan_migration(config, runner, result, report)
        apply_plan(plan, config, result, report)
        if config.dry_run:
            report("DRY-RUN", "skipping " + " ".join(config.tidy_command))
        elif config.tidy:
            result.tidy = run_tidy(config, runner, report)
    finally:
        result.elapsed = time.monotonic() - started
    return result
