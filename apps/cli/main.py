"""CLI application for bumpall."""

import asyncio
import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bumpall.config import Config
from bumpall.errors import BumpallError, NpmCommandError
from bumpall.lockfile import read_lockfile
from bumpall.log import configure_logging
from bumpall.models import ResolutionResult, UpdateReport
from bumpall.npm import NpmClient
from bumpall.parse_node import parse_package_json
from bumpall.resolve_node import NodeResolver
from bumpall.rewrite import build_report, read_manifest, write_manifest

console = Console()

# EX_SOFTWARE from sysexits.h
EXIT_NPM_FAILURE = 70

DELTA_STYLES = {
    "prerelease": "green",
    "patch": "green",
    "minor": "cyan",
    "major": "yellow",
}


def print_message(message: str, emoji: str) -> None:
    console.print(f"{emoji} {message} {emoji}")
    console.print()


def format_table(results: list[ResolutionResult]) -> Table:
    """Table of planned upgrades, coloured by update type."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Package")
    table.add_column("Current")
    table.add_column("Target")
    table.add_column("Type")
    table.add_column("Range")

    for result in results:
        style = DELTA_STYLES.get(result.semver_delta, "magenta")
        table.add_row(
            escape(result.entry.name),
            escape(result.current_version or "-"),
            f"[{style}]{escape(result.chosen_version)}[/{style}]",
            result.semver_delta,
            escape(f"{result.entry.spec} -> {result.new_spec}"),
        )
    return table


def format_json_output(results: list[ResolutionResult], dry_run: bool) -> str:
    """Format JSON output."""
    reports = []
    skipped = []
    for result in results:
        item = {
            "name": result.entry.name,
            "section": result.entry.section,
            "current_version": result.current_version,
            "chosen_version": result.chosen_version,
            "current_spec": result.entry.spec,
            "new_spec": result.new_spec,
            "reason": result.reason,
            "semver_delta": result.semver_delta,
        }
        if result.has_change:
            reports.append(item)
        else:
            skipped.append(item)

    return json.dumps({"reports": reports, "skipped": skipped, "dry_run": dry_run}, indent=2)


def show_report(report: UpdateReport, verbose: bool) -> None:
    if report.changes:
        console.print("Updates required")
        console.print(format_table(report.changes))
        console.print()
    else:
        print_message("No outdated packages found", "🚀")

    if verbose and report.notes:
        console.print("Skipped:", style="dim")
        for note in report.notes:
            console.print(f"  {escape(note)}", style="dim")
        console.print()


app = typer.Typer(
    name="bumpall",
    help="bumpall - Bump npm dependencies in package.json, by default to the latest minor version",
    add_completion=False,
)


@app.command()
def bump(
    project: str = typer.Argument(".", help="Project directory or path to its package.json"),
    latest: bool = typer.Option(False, "--latest", "-l", help="Bump to the latest version, including major changes"),
    patch: bool = typer.Option(False, "--patch", "-p", help="Only apply patch updates"),
    legacy_peer_deps: bool = typer.Option(False, "--legacy-peer-deps", help="Pass --legacy-peer-deps to npm install"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show npm output, debug logs and skipped packages"),
    dry_run: bool = typer.Option(False, "--dry-run", "-d", help="List the bumps without changing anything"),
    include: str | None = typer.Option(
        None, "--include", "-i", envvar="BUMPALL_INCLUDE", help="Only bump packages matching this glob"
    ),
    install: bool = typer.Option(True, "--install/--no-install", help="Run npm install after rewriting package.json"),
    format_type: str = typer.Option("table", "--format", help="Output format: table or json"),
    npm: str | None = typer.Option(None, "--npm", envvar="BUMPALL_NPM", help="npm executable to use"),
) -> None:
    """Bump the dependencies in package.json and reinstall."""

    try:
        config = Config.from_options(
            project=project,
            latest=latest,
            patch=patch,
            legacy_peer_deps=legacy_peer_deps,
            verbose=verbose,
            dry_run=dry_run,
            include=include,
            install=install,
            npm=npm,
        )
    except ValueError as e:
        console.print(f"Error: {escape(str(e))}", style="red")
        raise typer.Exit(1)

    if format_type not in ("table", "json"):
        console.print(f"Error: Unknown format: {escape(format_type)}", style="red")
        raise typer.Exit(1)

    configure_logging(config.verbose)
    # keep stdout parseable in json mode
    chatty = format_type == "table"

    try:
        manifest_path = config.manifest_path
        if not manifest_path.exists():
            console.print(f"Error: File {escape(str(manifest_path))} not found", style="red")
            raise typer.Exit(1)

        content = read_manifest(manifest_path)
        manifest = parse_package_json(content)
        installed = read_lockfile(config.project_dir)

        if chatty:
            print_message("Checking for outdated packages...", "🔍")

        client = NpmClient(config.project_dir, executable=config.npm_executable, verbose=config.verbose)
        outdated = asyncio.run(client.outdated(patch_mode=config.mode == "patch"))

        resolver = NodeResolver(
            mode=config.mode,
            include=config.include,
            project_name=config.current_dir_name,
        )
        results = resolver.resolve_entries(manifest, outdated, installed)
        report = build_report(manifest_path.name, content, results)

        if chatty:
            show_report(report, config.verbose)
        else:
            typer.echo(format_json_output(results, config.dry_run))

        if not report.changes:
            raise typer.Exit(0)

        if config.dry_run:
            if chatty:
                console.print(report.diff, markup=False, highlight=False, soft_wrap=True)
                print_message("Dry run, exiting...", "🌵")
            raise typer.Exit(0)

        write_manifest(manifest_path, report.updated_content)

        if not config.install:
            if chatty:
                print_message(f"Updated {escape(str(manifest_path))}", "📝")
            raise typer.Exit(0)

        if chatty:
            print_message("Upgrading packages", "💫")

        if asyncio.run(client.install(config.additional_install_args)):
            if chatty:
                print_message("All packages bumped", "🏆")
        else:
            if chatty:
                print_message("Issue installing packages - try running manually", "❌")
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except NpmCommandError as e:
        console.print(f"Error: {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_NPM_FAILURE)
    except (BumpallError, OSError) as e:
        console.print(f"Error: {escape(str(e))}", style="red")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
