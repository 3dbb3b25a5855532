"""Typer-based CLI for ImpactGraph change-impact analysis."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .cache import GraphCache
from .config import Settings, load_settings
from .diff_parser import parse_diff_string
from .file_reader import iter_project_files, read_project_files
from .git import GitError, get_changed_files, get_raw_diff
from .graph import build_dependency_graph, iter_edges
from .models import DependencyGraph
from .reachability import (
    find_dependencies,
    find_dependents,
    find_related_tests,
    get_affected_files,
)
from .resolver import normalize_path
from .testfile_detection import detect_test_file

console = Console()

app = typer.Typer(
    help="ImpactGraph: find which files a change affects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

graph_app = typer.Typer(
    help="Build, inspect, and clear the cached dependency graph.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(graph_app, name="graph")

ROOT_OPTION = typer.Option(Path("."), "--root", "-r", file_okay=False, help="Project root directory.")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"ImpactGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """ImpactGraph CLI: diff parsing and import-graph impact analysis."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _build_graph(root: Path, settings: Settings) -> DependencyGraph:
    files = read_project_files(
        root,
        exclude=settings.exclude,
        max_depth=settings.scan_depth,
        extensions=settings.extensions,
    )
    return build_dependency_graph(files, root_dir=str(root))


def _load_graph(root: Path, settings: Settings, rebuild: bool = False) -> DependencyGraph:
    """Use the cached graph when fresh, otherwise rebuild and re-cache it."""
    cache = GraphCache(root)
    sources = (
        full_path for _, full_path in iter_project_files(
            root,
            exclude=settings.exclude,
            max_depth=settings.scan_depth,
            extensions=settings.extensions,
        )
    )
    if not rebuild and not cache.is_stale(source_files=sources):
        graph = cache.load()
        if graph is not None:
            return graph
    graph = _build_graph(root, settings)
    cache.save(graph)
    return graph


def _print_paths(title: str, paths: List[str]) -> None:
    if not paths:
        console.print(f"[yellow]No {title.lower()} found.[/yellow]")
        return
    console.print(f"[bold]{title}[/bold] ({len(paths)})")
    for path in paths:
        typer.echo(f"  {path}")


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------

@app.command("diff")
def diff_command(
    diff_file: Optional[str] = typer.Argument(None, help="Diff file to parse, '-' for stdin. Defaults to git."),
    root: Path = ROOT_OPTION,
    base: str = typer.Option("HEAD~1", "--base", help="Base ref when reading the diff from git."),
):
    """Summarise a unified diff per file."""
    if diff_file == "-":
        raw = sys.stdin.read()
    elif diff_file:
        path = Path(diff_file)
        if not path.exists():
            raise typer.BadParameter(f"Diff file not found: {diff_file}")
        raw = path.read_text(encoding="utf-8", errors="ignore")
    else:
        try:
            raw = get_raw_diff(cwd=root, base=base)
        except GitError as exc:
            console.print(f"[red]✗[/red] {exc}")
            raise typer.Exit(1)

    diffs = parse_diff_string(raw)
    if not diffs:
        typer.echo("No file changes found in diff.")
        return

    table = Table(title="Changed files")
    table.add_column("File")
    table.add_column("Change")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    table.add_column("Hunks", justify="right")
    for file_diff in diffs:
        label = file_diff.path
        if file_diff.old_path:
            label = f"{file_diff.old_path} → {file_diff.path}"
        table.add_row(
            label,
            file_diff.change_type.value,
            str(file_diff.additions),
            str(file_diff.deletions),
            str(len(file_diff.hunks)),
        )
    console.print(table)
    typer.echo(f"Files: {len(diffs)}")


# ---------------------------------------------------------------------------
# graph
# ---------------------------------------------------------------------------

@graph_app.command("build")
def graph_build(
    root: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Project root directory."),
):
    """Scan a project, build its dependency graph, and cache it."""
    settings = load_settings(root)
    graph = _build_graph(root, settings)
    cache_path = GraphCache(root).save(graph)
    edge_count = sum(1 for _ in iter_edges(graph))
    typer.echo(f"Built dependency graph for '{root}'.")
    typer.echo(f"Nodes: {len(graph)} | Edges: {edge_count}")
    typer.echo(f"Cached at {cache_path}")


@graph_app.command("info")
def graph_info(
    root: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Project root directory."),
):
    """Show cache status for a project."""
    meta = GraphCache(root).metadata()
    if not meta["exists"]:
        typer.echo("No cached graph. Run 'ig graph build' first.")
        return

    table = Table(title="Graph cache")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Stale", "yes" if meta["stale"] else "no")
    table.add_row("Age", f"{meta['age']:.0f}s")
    if "file_count" in meta:
        table.add_row("Files", str(meta["file_count"]))
        table.add_row("Built at", str(meta.get("built_at") or "-"))
    console.print(table)


@graph_app.command("clear")
def graph_clear(
    root: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Project root directory."),
):
    """Delete the cached graph."""
    if GraphCache(root).clear():
        typer.echo("Cleared graph cache.")
    else:
        typer.echo("No cached graph to clear.")


# ---------------------------------------------------------------------------
# queries
# ---------------------------------------------------------------------------

@app.command("dependents")
def dependents_command(
    path: str = typer.Argument(..., help="File whose importers to list."),
    root: Path = ROOT_OPTION,
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=0, help="Maximum hops to follow."),
    rebuild: bool = typer.Option(False, "--rebuild", help="Ignore the cache."),
):
    """List files that import PATH, directly or transitively."""
    settings = load_settings(root)
    graph = _load_graph(root, settings, rebuild)
    max_depth = settings.max_depth if depth is None else depth
    _print_paths("Dependents", find_dependents(graph, path, max_depth))


@app.command("dependencies")
def dependencies_command(
    path: str = typer.Argument(..., help="File whose imports to list."),
    root: Path = ROOT_OPTION,
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=0, help="Maximum hops to follow."),
    rebuild: bool = typer.Option(False, "--rebuild", help="Ignore the cache."),
):
    """List files PATH imports, directly or transitively."""
    settings = load_settings(root)
    graph = _load_graph(root, settings, rebuild)
    max_depth = settings.max_depth if depth is None else depth
    _print_paths("Dependencies", find_dependencies(graph, path, max_depth))


@app.command("affected")
def affected_command(
    paths: Optional[List[str]] = typer.Argument(None, help="Changed files."),
    root: Path = ROOT_OPTION,
    use_git: bool = typer.Option(False, "--git", help="Take changed files from git."),
    base: Optional[str] = typer.Option(None, "--base", help="Base ref for --git."),
    rebuild: bool = typer.Option(False, "--rebuild", help="Ignore the cache."),
):
    """Show the direct and transitive blast radius of a change."""
    changed = list(paths or [])
    if use_git:
        try:
            changed.extend(get_changed_files(cwd=root, base=base))
        except GitError as exc:
            console.print(f"[red]✗[/red] {exc}")
            raise typer.Exit(1)
    if not changed:
        raise typer.BadParameter("Pass changed files or use --git.")

    settings = load_settings(root)
    graph = _load_graph(root, settings, rebuild)
    affected = get_affected_files(graph, changed)

    table = Table(title="Affected files")
    table.add_column("File")
    table.add_column("Reason")
    for path in affected.directly_affected:
        table.add_row(path, "changed")
    for path in affected.transitively_affected:
        table.add_row(path, "imports a changed file")
    console.print(table)
    typer.echo(
        f"Direct: {len(affected.directly_affected)} | "
        f"Transitive: {len(affected.transitively_affected)} | "
        f"Total: {len(affected.all_affected)}"
    )


@app.command("related-tests")
def related_tests_command(
    path: str = typer.Argument(..., help="Source file."),
    root: Path = ROOT_OPTION,
    rebuild: bool = typer.Option(False, "--rebuild", help="Ignore the cache."),
):
    """List test files likely to exercise PATH."""
    settings = load_settings(root)
    graph = _load_graph(root, settings, rebuild)
    candidates = [
        p for p in graph.nodes
        if detect_test_file(p, settings.test_framework) is not None
    ]
    _print_paths("Related tests", find_related_tests(graph, normalize_path(path), candidates))
