"""Makeweave CLI entry point."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from makeweave import __version__

# Log records from every makeweave module go through this logger.
_PACKAGE_LOGGER = "makeweave"


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    """Send makeweave log records to stderr through rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


@click.group()
@click.version_option(version=__version__, prog_name="makeweave")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Makeweave - incremental Makefile generator with header dependency tracking."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


def _print_errors(errors: list[str], warnings: list[str]) -> None:
    if errors:
        click.echo("", err=True)
        for err in errors:
            click.echo(f"  [ERR] {err}", err=True)
    if warnings:
        click.echo("", err=True)
        for warn in warnings:
            click.echo(f"  [warn] {warn}", err=True)


def _load_project_or_exit(project_file: Path, binary_dir: Path | None):  # noqa: ANN202
    from makeweave.model.loader import ProjectError, load_project

    try:
        return load_project(project_file, binary_dir)
    except (ProjectError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "-H",
    "source_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Source directory holding makeweave.yml (default: current directory).",
)
@click.option(
    "-B",
    "binary_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build directory (default: 'binary_dir' from the project file).",
)
@click.option(
    "--project",
    "project_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Project file (overrides -H).",
)
@click.option(
    "--scan-depends",
    is_flag=True,
    default=False,
    help="Scan include dependencies of every object after generating.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=1,
    help="Worker threads for --scan-depends.",
)
@click.pass_context
def generate(
    ctx: click.Context,
    *,
    source_dir: Path | None,
    binary_dir: Path | None,
    project_file: Path | None,
    scan_depends: bool,
    jobs: int,
) -> None:
    """Generate rule files for every directory of the project.

    Exit codes: 0 = success, 1 = some units failed, 2 = project file error.
    """
    from makeweave.generator import generate as run_generate
    from makeweave.model.targets import PROJECT_FILE_NAME

    if project_file is None:
        project_file = (source_dir or Path.cwd()) / PROJECT_FILE_NAME
    project = _load_project_or_exit(project_file, binary_dir)
    result = run_generate(project, scan_depends=scan_depends, jobs=jobs)

    if not ctx.obj.get("quiet"):
        from rich.console import Console
        from rich.table import Table

        console = Console()
        table = Table(title=f"makeweave: {project.name}", show_header=False, box=None)
        table.add_column("metric", style="cyan")
        table.add_column("value", justify="right")
        table.add_row("Directories", str(result.directories))
        table.add_row("Targets", str(result.targets))
        table.add_row("Objects", str(result.objects))
        table.add_row("Files written", str(result.files_written))
        table.add_row("Files unchanged", str(result.files_unchanged))
        table.add_row("Records reset", str(result.records_reset))
        table.add_row("Remote targets", str(result.remote_targets))
        if scan_depends:
            table.add_row("Objects scanned", str(result.scanned))
        console.print(table)
        click.echo(f"Build files written to {project.binary_dir}")

    _print_errors(result.errors, result.warnings)
    if not result.ok:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Subcommands invoked by the generated rules
# ---------------------------------------------------------------------------


@main.command("depends")
@click.argument("language")
@click.argument("object_path")
@click.argument("source_path")
@click.option(
    "-I",
    "include_dirs",
    multiple=True,
    help="Include search directory (repeatable, searched in order).",
)
def depends(
    language: str, object_path: str, source_path: str, *, include_dirs: tuple[str, ...]
) -> None:
    """Scan SOURCE_PATH's includes and write OBJECT_PATH's dependency record.

    Runs in the binary directory; relative paths are taken from there.
    """
    from makeweave.depends.scanner import ScanError, ScanRequest, run_scan

    request = ScanRequest(
        language=language,
        object_path=object_path,
        source_path=source_path,
        include_dirs=include_dirs,
    )
    try:
        run_scan(request, Path.cwd())
    except (ScanError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@main.command("check-build-system")
@click.argument("state_file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def check_build_system_cmd(ctx: click.Context, state_file: Path) -> None:
    """Regenerate the build system if STATE_FILE says it is out of date.

    Also checks the dependency record of every registered artifact.
    """
    from makeweave.generator import generate as run_generate
    from makeweave.infrastructure.check import check_build_system

    try:
        result = check_build_system(state_file)
    except (OSError, ValueError) as exc:
        click.echo(f"Error: cannot read build state: {exc}", err=True)
        sys.exit(1)

    if not result.needs_regeneration:
        return
    if result.project_file is None:
        click.echo(f"Error: {state_file} does not name a project file", err=True)
        sys.exit(1)

    if not ctx.obj.get("quiet"):
        click.echo("Regenerating the build system...")
    project = _load_project_or_exit(result.project_file, result.binary_dir)
    generation = run_generate(project)
    _print_errors(generation.errors, generation.warnings)
    if not generation.ok:
        sys.exit(1)


@main.command("check-depends")
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("artifacts", nargs=-1, required=True)
def check_depends(directory: Path, artifacts: tuple[str, ...]) -> None:
    """Check the dependency records of ARTIFACTS relative to DIRECTORY."""
    from makeweave.depends.integrity import check_listed

    warnings: list[str] = []
    for outcome in check_listed(directory, artifacts):
        if outcome.regenerate:
            click.echo(f"  [reset] {outcome.artifact}")
        for removed in outcome.removed:
            click.echo(f"  [removed] {removed}")
        warnings.extend(outcome.warnings)
    _print_errors([], warnings)
    if warnings:
        sys.exit(1)


@main.command()
@click.option("-f", "force", is_flag=True, help="Ignore files that do not exist.")
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
def remove(*, force: bool, files: tuple[Path, ...]) -> None:
    """Remove FILES."""
    from makeweave.infrastructure.fileio import remove_file

    failed = False
    for path in files:
        try:
            removed = remove_file(path)
        except OSError as exc:
            click.echo(f"Error: cannot remove {path}: {exc}", err=True)
            failed = True
            continue
        if not removed and not force:
            click.echo(f"Error: {path} does not exist", err=True)
            failed = True
    if failed:
        sys.exit(1)


@main.command("symlink-library")
@click.argument("real", type=click.Path(path_type=Path))
@click.argument("soname", type=click.Path(path_type=Path))
@click.argument("link", type=click.Path(path_type=Path))
def symlink_library(real: Path, soname: Path, link: Path) -> None:
    """Create the symlinks SONAME -> REAL and LINK -> SONAME.

    A link is skipped when both of its names are the same.
    """
    from makeweave.graph.naming import LibraryNames, library_symlink_chain
    from makeweave.infrastructure.fileio import replace_symlink

    names = LibraryNames(
        link_name=str(link),
        so_name=str(soname),
        real_name=str(real),
        base_name="",
    )
    for link_path, points_to in library_symlink_chain(names):
        relative = os.path.relpath(points_to, os.path.dirname(link_path) or ".")
        try:
            replace_symlink(Path(link_path), relative)
        except OSError as exc:
            click.echo(f"Error: cannot create {link_path}: {exc}", err=True)
            sys.exit(1)


@main.command("edit-cache")
@click.option(
    "-B",
    "binary_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Build directory holding the cache (default: current directory).",
)
def edit_cache(*, binary_dir: Path | None) -> None:
    """Open the build-tree cache in $EDITOR.

    The edited text must be a YAML mapping of definition overrides.
    """
    import yaml

    from makeweave.infrastructure.fileio import write_atomic
    from makeweave.model.targets import CACHE_FILE_NAME

    cache_path = (binary_dir or Path.cwd()) / CACHE_FILE_NAME
    if cache_path.is_file():
        current = cache_path.read_text(encoding="utf-8")
    else:
        current = "# Definition overrides for this build tree.\n"

    edited = click.edit(current, extension=".yml")
    if edited is None or edited == current:
        click.echo("Cache unchanged.")
        return

    try:
        data = yaml.safe_load(edited)
    except yaml.YAMLError as exc:
        click.echo(f"Error: invalid YAML: {exc}", err=True)
        sys.exit(2)
    if data is not None and not isinstance(data, dict):
        click.echo(f"Error: {CACHE_FILE_NAME} must be a YAML mapping", err=True)
        sys.exit(2)

    write_atomic(cache_path, edited)
    click.echo(f"Updated {cache_path}")
