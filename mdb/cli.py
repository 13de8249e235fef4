"""CLI entry point for mdb."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from mdb_core.build import BuildReport, TaskExecutor
from mdb_core.config import (
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG_TEMPLATE,
    MdbConfig,
    RuntimeConfig,
    Task,
    load_config,
    merge_options,
    resolve_runtime,
)
from mdb_core.errors import ConversionFailedError, MdbError
from mdb_core.freshness import (
    OutputTarget,
    RebuildReason,
    SourceWatcher,
    check_all,
)

app = typer.Typer(
    name="mdb",
    help="Incrementally build documents from markdown sources with pandoc.",
)

config_app = typer.Typer(help="Manage mdb configuration.")
app.add_typer(config_app, name="config")

err_console = Console(stderr=True)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_cwd: Path | None = None
_config_path: str | None = None
_verbose: bool = False
_config: MdbConfig | None = None


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help=f"Path to {CONFIG_FILE_NAME}")
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option("--directory", "-C", help="Run as if started in this directory"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Global options."""
    global _cwd, _config_path, _verbose, _config
    _cwd = (directory or Path.cwd()).resolve()
    _config_path = config
    _verbose = verbose
    _config = None


def _get_cwd() -> Path:
    return _cwd if _cwd is not None else Path.cwd().resolve()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if _verbose else _LOG_LEVELS[level],
        format="%(name)s | %(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _report_error(error: MdbError) -> None:
    if isinstance(error, ConversionFailedError):
        err_console.print(f"[red]Failed:[/red] {escape(error.output)}")
        if error.stderr:
            typer.echo(error.stderr, err=True, nl=not error.stderr.endswith("\n"))
    else:
        err_console.print(f"[red]Error:[/red] {escape(str(error))}")


def _fail(error: MdbError) -> typer.Exit:
    """Report *error* to the operator and return the matching exit."""
    _report_error(error)
    return typer.Exit(error.exit_code)


def _get_config() -> MdbConfig:
    global _config
    if _config is None:
        try:
            _config = load_config(_get_cwd(), _config_path)
        except MdbError as e:
            raise _fail(e)
        _setup_logging(_config.log_level)
    return _config


def _runtime(
    source: str | None,
    outputs: list[str] | None,
    out_directory: str | None = None,
    reference_doc: str | None = None,
) -> RuntimeConfig:
    merged = merge_options(
        _get_config(),
        source=source,
        outputs=outputs or [],
        out_directory=out_directory,
        reference_doc=reference_doc,
    )
    return resolve_runtime(merged, _get_cwd())


class ConsoleReporter:
    """Prints one line per output as the build progresses."""

    def built(self, task: Task, target: OutputTarget) -> None:
        rprint(f"[green]Built[/green] {escape(target.output)}")

    def skipped(self, task: Task, target: OutputTarget) -> None:
        rprint(f"[dim]Up to date[/dim] {escape(target.output)}")

    def pending(self, task: Task, target: OutputTarget, reason: RebuildReason) -> None:
        rprint(f"[yellow]Would build[/yellow] {escape(target.output)} ({reason})")


def _summary(report: BuildReport) -> str:
    parts = [f"{len(report.built)} built", f"{len(report.skipped)} up to date"]
    if report.pending:
        parts.append(f"{len(report.pending)} would build")
    return ", ".join(parts)


SourceArg = Annotated[
    str | None,
    typer.Argument(help="Source directory; replaces the configured tasks"),
]
OutputsOpt = Annotated[
    list[str] | None,
    typer.Option("--output", "-o", help="Output file, e.g. book.docx (repeatable)"),
]
OutDirOpt = Annotated[
    str | None, typer.Option("--out-directory", help="Root directory for generated outputs")
]
ReferenceOpt = Annotated[
    str | None, typer.Option("--reference-doc", help="Styling template for the converter")
]


@app.command()
def build(
    source: SourceArg = None,
    outputs: OutputsOpt = None,
    out_directory: OutDirOpt = None,
    reference_doc: ReferenceOpt = None,
    force: Annotated[bool, typer.Option("--force", help="Rebuild even if up to date")] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Report what would be built")
    ] = False,
) -> None:
    """Rebuild every output whose sources changed."""
    runtime = _runtime(source, outputs, out_directory, reference_doc)
    executor = TaskExecutor(
        runtime, reporter=ConsoleReporter(), force=force, dry_run=dry_run
    )
    try:
        report = executor.run()
    except MdbError as e:
        raise _fail(e)
    rprint(f"[bold]Done:[/bold] {_summary(report)}")


@app.command()
def status(
    source: SourceArg = None,
    outputs: OutputsOpt = None,
    out_directory: OutDirOpt = None,
) -> None:
    """Show which outputs are stale, without building anything."""
    runtime = _runtime(source, outputs, out_directory)
    try:
        statuses = check_all(runtime)
    except MdbError as e:
        raise _fail(e)

    if not statuses:
        rprint("[yellow]No outputs requested.[/yellow]")
        return

    table = Table(title=f"Outputs ({len(statuses)})")
    table.add_column("Source", style="cyan")
    table.add_column("Output")
    table.add_column("Status")
    for s in statuses:
        style = "yellow" if s.stale else "green"
        table.add_row(escape(s.source), escape(s.output), f"[{style}]{s.reason}[/{style}]")
    rprint(table)


@app.command()
def watch(
    source: SourceArg = None,
    outputs: OutputsOpt = None,
    out_directory: OutDirOpt = None,
    reference_doc: ReferenceOpt = None,
    debounce: Annotated[
        float, typer.Option("--debounce", help="Quiet period in seconds before rebuilding")
    ] = 0.5,
) -> None:
    """Build, then rebuild whenever a source directory changes."""
    runtime = _runtime(source, outputs, out_directory, reference_doc)
    executor = TaskExecutor(runtime, reporter=ConsoleReporter())

    def _rebuild() -> None:
        try:
            report = executor.run()
        except ConversionFailedError as e:
            _report_error(e)
            return
        rprint(f"[bold]Done:[/bold] {_summary(report)}")

    try:
        _rebuild()
    except MdbError as e:
        raise _fail(e)

    watcher = SourceWatcher(
        (runtime.source_dir(t) for t in runtime.tasks), debounce_seconds=debounce
    )
    watcher.start()
    rprint("[dim]Watching for changes (Ctrl-C to stop)...[/dim]")
    try:
        while True:
            if watcher.wait_for_changes(timeout=1.0):
                try:
                    _rebuild()
                except MdbError as e:
                    raise _fail(e)
    except KeyboardInterrupt:
        rprint("\n[dim]Stopped.[/dim]")
    finally:
        watcher.stop()


@config_app.command("show")
def config_show() -> None:
    """Show the current configuration file settings."""
    cfg = _get_config()
    dumped = cfg.model_dump(by_alias=True, exclude_none=True)
    rprint(Syntax(yaml.safe_dump(dumped, default_flow_style=False, sort_keys=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create a default mdb.toml in the working directory."""
    target = _get_cwd() / CONFIG_FILE_NAME
    if target.exists() and not force:
        rprint(f"[yellow]{CONFIG_FILE_NAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {escape(str(target))}")
