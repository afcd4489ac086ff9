#!/usr/bin/env python3
"""
Command line chooser for orgpick.

Usage:
    orgpick list FILES...                 - Rank every heading
    orgpick projects FILES...             - Headings under any project root
    orgpick project FILES... --anchor A/B - Headings in the anchor's project
    orgpick groups FILES... --by remote   - Group headings by directory or remote
    orgpick init-config PATH              - Write a default config file
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from ..engine.config import LOG_LEVELS, Config
from ..engine.errors import OrgPickError
from ..engine.models import Candidate
from ..engine.outline import OutlineCollection, all_of, everything, make_key_fn, text, todo
from ..engine.pipeline import CandidatePipeline

console = Console()

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())


def load_config(config_path: Optional[str]) -> Config:
    if config_path:
        return Config.load(Path(config_path))
    try:
        return Config.load()
    except FileNotFoundError:
        return Config()


def build_predicate(filter_text: Optional[str], todo_only: bool):
    predicates = []
    if todo_only:
        predicates.append(todo())
    if filter_text:
        predicates.append(text(filter_text))
    if not predicates:
        return everything
    return all_of(*predicates)


def open_pipeline(ctx: click.Context, files: Tuple[str, ...]) -> CandidatePipeline:
    config: Config = ctx.obj["config"]
    paths = [Path(f) for f in files] or list(config.outline.files)
    if not paths:
        raise click.UsageError("No outline files given and none configured")
    source = OutlineCollection.from_config(config.outline).load(paths)
    return CandidatePipeline(source, config)


def display_candidates(candidates: List[Candidate], title: str, limit: Optional[int] = None) -> None:
    """Display ranked candidates in a table."""
    if not candidates:
        console.print("[yellow]No matches[/yellow]")
        return

    shown = candidates[:limit] if limit else candidates
    table = Table(title=f"{title} ({len(candidates)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Entry", style="cyan", no_wrap=False)
    table.add_column("Due", style="magenta")
    table.add_column("Frecency", justify="right")
    table.add_column("Location", style="dim")

    for i, c in enumerate(shown, 1):
        urgency = c.metadata.get("urgency")
        score = c.metadata.get("frecency")
        table.add_row(
            str(i),
            c.label,
            urgency.strftime("%Y-%m-%d %H:%M") if urgency else "",
            f"{score:.0f}" if score is not None else "-",
            str(c.ref),
            style="dim" if c.metadata.get("dim") else None,
        )

    console.print(table)


def display_groups(candidates: List[Candidate]) -> None:
    if not candidates:
        console.print("[yellow]No matches[/yellow]")
        return

    table = Table(title=f"Groups ({len(candidates)})")
    table.add_column("Group", style="cyan", no_wrap=False)
    table.add_column("Items", justify="right")
    table.add_column("Frecency", justify="right")
    table.add_column("Last seen", style="magenta")

    for c in candidates:
        score = c.metadata.get("frecency")
        last = c.metadata.get("last_instant")
        table.add_row(
            c.ref.key,
            str(c.metadata.get("count", 0)),
            f"{score:.0f}" if score is not None else "-",
            last.strftime("%Y-%m-%d %H:%M") if last else "",
        )

    console.print(table)


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help="Override the configured log level")
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """orgpick - rank outline headings by urgency and frecency."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except OrgPickError as e:
        console.print(f"[red]Config error:[/red] {e}")
        ctx.exit(2)
    setup_logging(log_level or config.log_level)
    ctx.obj["config"] = config


@cli.command(name="list")
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--filter", "-f", "filter_text", help="Terms every entry must contain")
@click.option("--todo-only", "-t", is_flag=True, help="Only open TODO entries")
@click.option("--limit", "-l", type=int, help="Max rows shown")
@click.pass_context
def list_entries(ctx, files, filter_text: Optional[str], todo_only: bool, limit: Optional[int]):
    """Rank every matching heading."""
    try:
        pipeline = open_pipeline(ctx, files)
        candidates = pipeline.flat(build_predicate(filter_text, todo_only))
    except OrgPickError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)
    display_candidates(candidates, "Entries", limit)


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--filter", "-f", "filter_text", help="Terms every entry must contain")
@click.option("--todo-only", "-t", is_flag=True, help="Only open TODO entries")
@click.option("--limit", "-l", type=int, help="Max rows shown")
@click.pass_context
def projects(ctx, files, filter_text: Optional[str], todo_only: bool, limit: Optional[int]):
    """Rank headings under any project root, relative to their root."""
    try:
        pipeline = open_pipeline(ctx, files)
        session = pipeline.all_projects_session(ctx.obj["config"].display.width)
        candidates = pipeline.scoped(build_predicate(filter_text, todo_only), session)
    except OrgPickError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)
    display_candidates(candidates, "Project entries", limit)


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--anchor", "-a", required=True, help="Outline path inside the project, e.g. Work/Site/Fix")
@click.option("--filter", "-f", "filter_text", help="Terms every entry must contain")
@click.option("--todo-only", "-t", is_flag=True, help="Only open TODO entries")
@click.option("--limit", "-l", type=int, help="Max rows shown")
@click.pass_context
def project(ctx, files, anchor: str, filter_text: Optional[str], todo_only: bool, limit: Optional[int]):
    """Rank headings in the project containing ANCHOR."""
    anchor_path = tuple(part for part in anchor.split("/") if part)
    try:
        pipeline = open_pipeline(ctx, files)
        session = pipeline.session_for(anchor_path, ctx.obj["config"].display.width)
        candidates = pipeline.scoped(build_predicate(filter_text, todo_only), session)
    except OrgPickError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)
    display_candidates(candidates, "/".join(session.roots[0]), limit)


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--by", "dimension", type=click.Choice(["directory", "remote"]), help="Grouping dimension")
@click.option("--sort", type=click.Choice(["frecency", "none"]), help="Group order")
@click.option("--filter", "-f", "filter_text", help="Terms every entry must contain")
@click.pass_context
def groups(ctx, files, dimension: Optional[str], sort: Optional[str], filter_text: Optional[str]):
    """Group headings by directory or git remote."""
    config: Config = ctx.obj["config"]
    dimension = dimension or config.grouping.dimension
    if dimension == "none":
        raise click.UsageError("Choose a grouping dimension with --by or grouping.dimension")
    try:
        pipeline = open_pipeline(ctx, files)
        candidates = pipeline.grouped(build_predicate(filter_text, False), make_key_fn(dimension), sort)
    except OrgPickError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)
    display_groups(candidates)


@cli.command(name="init-config")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(path: str, force: bool):
    """Write a default configuration file."""
    target = Path(path)
    if target.exists() and not force:
        console.print(f"[red]{target} exists[/red] (use --force to overwrite)")
        sys.exit(1)
    Config().save(target)
    console.print(f"[green]✓[/green] Wrote {target}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
