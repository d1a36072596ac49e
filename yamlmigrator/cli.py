"""
Command‑line interface for the yamlmigrator package.

The single command migrates the Go project found at ``--path`` (the current
working directory by default)::

    yamlmigrator --path ./service --dry-run
    yamlmigrator --path ./service

Every option can also be set through the environment
(``YAMLMIGRATOR_PATH``, ``YAMLMIGRATOR_DRY_RUN``, ``YAMLMIGRATOR_SKIP_TIDY``).
Progress is printed as one ``[TAG] message`` line per event followed by a
summary of the counts.  Any fatal error exits with status 1.
"""

from __future__ import annotations

import logging
import pathlib
import sys

import click

from .config import MigrationConfig
from .errors import MigrationError
from .migrator import ScanResult, migrate

_TAG_COLOURS = {
    "SCAN": None,
    "SKIP": "bright_black",
    "MATCH": "cyan",
    "UPDATED": "green",
    "GO.MOD": "green",
    "DRY-RUN": "yellow",
    "TIDY": "blue",
    "ERROR": "red",
}


def report(tag: str, message: str) -> None:
    """Print one progress event."""
    if tag == "GO":
        click.echo(message)
        return
    click.secho(f"[{tag}]", fg=_TAG_COLOURS.get(tag), nl=False)
    click.echo(f" {message}")


def print_summary(result: ScanResult) -> None:
    if result.manifest_updated:
        manifest = "updated"
    elif result.manifest_matched:
        manifest = "would update"
    else:
        manifest = "unchanged"
    click.echo(
        f"\nscanned files: {result.scanned}\n"
        f"matched files: {result.matched}\n"
        f"changed files: {result.changed}\n"
        f"go.mod: {manifest}\n"
        f"completed in {result.elapsed:.2f}s"
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.version_option()
@click.option(
    "--path", "path", envvar="YAMLMIGRATOR_PATH", default=".", show_default=True,
    type=click.Path(exists=True, file_okay=False, path_type=pathlib.Path),
    help="Target project path.",
)
@click.option(
    "--dry-run", "dry_run", envvar="YAMLMIGRATOR_DRY_RUN", type=click.BOOL,
    is_flag=False, flag_value=True, default=False, show_default=True,
    help="Preview changes without writing files.",
)
@click.option(
    "--skip-tidy", "skip_tidy", envvar="YAMLMIGRATOR_SKIP_TIDY", is_flag=True,
    help="Do not run 'go mod tidy' after rewriting.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(path: pathlib.Path, dry_run: bool, skip_tidy: bool, verbose: bool) -> None:
    """Migrate gopkg.in/yaml.vN imports to go.yaml.in/yaml/vN.

    Import declarations in every ``.go`` file under PATH (``vendor`` and
    ``.git`` directories excluded) and the require entries of ``go.mod``
    are rewritten.  The project must declare Go 1.22 or newer.
    """
    configure_logging(verbose)
    config = MigrationConfig(root=path, dry_run=dry_run, tidy=not skip_tidy)
    click.echo("== yaml-ast-migrator started ==")
    click.echo(f"path: {path}")
    click.echo(f"dry-run: {str(dry_run).lower()}\n")
    result = ScanResult()
    try:
        migrate(config, report=report, result=result)
    except MigrationError as exc:
        print_summary(result)
        raise click.ClickException(str(exc)) from exc
    print_summary(result)


def main(argv: list[str] | None = None) -> None:
    """Entrypoint for console_scripts.

    Allows the CLI to be executed via ``python -m yamlmigrator`` or when
    installed through a ``console_scripts`` entry point.
    """
    cli.main(args=argv, prog_name="yamlmigrator")


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
