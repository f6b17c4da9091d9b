#!/usr/bin/env python3
"""
ligi: tag index and query CLI

Usage:
    ligi index                     # Index art/ in the current repo
    ligi index -f art/a.md -t x,y  # Add tags to one file and reindex it
    ligi q t proj & done           # Query documents by tag
    ligi prune --global            # Repair local and global indexes
    ligi check                     # Status of registered repositories
"""

from __future__ import annotations

import difflib
import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from click.exceptions import UsageError

from . import __version__ as LIGI_VERSION
from . import core
from .config import ConfigurationError
from .errors import ErrorCode, LigiError


# ─────────────────────────────────────────────────────────────────────────────
# Error Handling
# ─────────────────────────────────────────────────────────────────────────────


def _handle_error(
    ctx: click.Context, error: LigiError | ConfigurationError, exit_code: int = 1
) -> NoReturn:
    """Report an error on stderr and exit.

    ConfigurationError is reported as CONFIG_ERROR.
    """
    if isinstance(error, ConfigurationError):
        error = LigiError(ErrorCode.CONFIG_ERROR, str(error))
    json_errors = ctx.obj.get("json_errors", False) if ctx.obj else False

    if json_errors:
        click.echo(error.to_json(), err=True)
    else:
        click.echo(f"error: {error.message}", err=True)

    sys.exit(exit_code)


def _usage_error(ctx: click.Context, message: str) -> NoReturn:
    _handle_error(ctx, LigiError.usage(message))


class JsonErrorGroup(click.Group):
    """Click group that reports usage errors as USAGE_ERROR JSON under
    --json-errors, and suggests the closest command name on typos.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except UsageError as e:
            cmd_name = args[0] if args else ""
            if cmd_name and "No such command" in str(e):
                matches = difflib.get_close_matches(
                    cmd_name, self.list_commands(ctx), n=1, cutoff=0.6
                )
                if matches:
                    raise UsageError(f"No such command '{cmd_name}'. Did you mean '{matches[0]}'?")
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except UsageError as e:
            # ctx.obj is still unset when the command name itself is unknown
            if not ctx.params.get("json_errors"):
                raise
            click.echo(LigiError.usage(e.format_message()).to_json(), err=True)
            sys.exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Root Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group(cls=JsonErrorGroup)
@click.version_option(version=LIGI_VERSION, prog_name="ligi")
@click.option(
    "--json-errors",
    "json_errors",
    is_flag=True,
    help="Output errors as JSON (for programmatic use)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="LIGI_QUIET",
    help="Suppress warnings and summaries, show only errors and results",
)
@click.pass_context
def cli(ctx: click.Context, json_errors: bool, quiet: bool):
    """ligi: tag index and query engine for markdown documents.

    Documents live under art/ and carry inline tags like [[t/project]].

    \b
    Quick start:
      ligi index                       # Build art/index/ for this repo
      ligi q t project                 # Documents tagged project
      ligi q t project \\& done         # Tagged project AND done
      ligi q t draft \\| review         # Tagged draft OR review

    \b
    Maintenance:
      ligi prune                       # Drop entries for deleted documents
      ligi index --global              # Rebuild the global index
      ligi check                       # Status of registered repositories
    """
    from ._logging import set_quiet_mode

    ctx.ensure_object(dict)
    ctx.obj["json_errors"] = json_errors
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)


def _echo_summary(ctx: click.Context, message: str) -> None:
    if not (ctx.obj and ctx.obj.get("quiet")):
        click.echo(message)


# ─────────────────────────────────────────────────────────────────────────────
# index
# ─────────────────────────────────────────────────────────────────────────────


@cli.command("index")
@click.option("--root", "-r", type=click.Path(file_okay=False, path_type=Path), help="Repository root")
@click.option("--file", "-f", "file", type=click.Path(path_type=Path), help="Reindex only this document")
@click.option("--tags", "-t", help="Comma-separated tags to add to --file")
@click.option("--global", "global_", is_flag=True, help="Rebuild the global index from all registered repos")
@click.option("--no-local", is_flag=True, help="With --global, leave local indexes untouched")
@click.pass_context
def index_cmd(
    ctx: click.Context,
    root: Path | None,
    file: Path | None,
    tags: str | None,
    global_: bool,
    no_local: bool,
):
    """Index tagged documents under art/.

    \b
    Examples:
      ligi index
      ligi index -r ~/notes
      ligi index -f art/plan.md -t roadmap,q3
      ligi index --global --no-local
    """
    from .parser.tags import parse_tag_list

    if global_:
        for flag, value in (("--file", file), ("--tags", tags), ("--root", root)):
            if value is not None:
                _usage_error(ctx, f"{flag} is not compatible with --global")
        try:
            stats = core.rebuild_global_index(fill_local=not no_local)
        except (LigiError, ConfigurationError) as e:
            _handle_error(ctx, e)
        _echo_summary(
            ctx,
            f"indexed {stats.repos_processed} repositories: "
            f"{stats.tags_written} tags, {stats.files_indexed} entries",
        )
        return

    if no_local:
        _usage_error(ctx, "--no-local is only valid with --global")

    try:
        tag_list = parse_tag_list(tags) if tags is not None else None
        report = core.index_repo(root, file=file, tags=tag_list)
    except (LigiError, ConfigurationError) as e:
        _handle_error(ctx, e)

    if report.tags_added:
        _echo_summary(ctx, f"added {report.tags_added} tag(s) to {file}")
    _echo_summary(
        ctx,
        f"indexed {report.tags_found} tags ({report.files_indexed} entries) in {report.art_path}",
    )
    if report.links_filled:
        _echo_summary(ctx, f"filled {report.links_filled} tag link(s) in source files")

# ─────────────────────────────────────────────────────────────────────────────
# query
# ─────────────────────────────────────────────────────────────────────────────


@cli.group("query")
def query():
    """Query documents.

    \b
    Examples:
      ligi query t project
      ligi q t project \\& done -o json
    """


@query.command("t")
@click.argument("tokens", nargs=-1)
@click.option("--root", "-r", type=click.Path(file_okay=False, path_type=Path), help="Repository root")
@click.option("--global", "global_", is_flag=True, help="Search every registered repository")
@click.option("--absolute", "-a", is_flag=True, help="Output absolute paths")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.option(
    "--index",
    "auto_index",
    type=click.BOOL,
    default=True,
    show_default=True,
    help="Reindex first if the index is stale",
)
@click.pass_context
def query_tags_cmd(
    ctx: click.Context,
    tokens: tuple[str, ...],
    root: Path | None,
    global_: bool,
    absolute: bool,
    output: str,
    auto_index: bool,
):
    """Find documents by tag expression.

    Combine tags with & (and) and | (or), evaluated left to right. Quote or
    escape the operators for your shell. Put tags that start with "-" after
    a "--" separator so they are not read as options.

    \b
    Examples:
      ligi q t project
      ligi q t project '&' done
      ligi q t 'draft|review' --global
      ligi q t -r . -- -wip
    """
    try:
        result = core.query_tags(
            tokens,
            repo_root=root,
            search_global=global_,
            auto_index=auto_index,
            absolute=absolute,
        )
    except (LigiError, ConfigurationError) as e:
        _handle_error(ctx, e)

    if output == "json":
        click.echo(json.dumps({"tag": result.tag, "results": result.results}))
    else:
        for path in result.results:
            click.echo(path)


cli.add_command(query, name="q")


# ─────────────────────────────────────────────────────────────────────────────
# prune / check
# ─────────────────────────────────────────────────────────────────────────────


@cli.command("prune")
@click.option("--root", "-r", type=click.Path(file_okay=False, path_type=Path), help="Repository root")
@click.option("--global", "global_", is_flag=True, help="Also prune the registry and global index")
@click.pass_context
def prune_cmd(ctx: click.Context, root: Path | None, global_: bool):
    """Remove index entries for deleted documents.

    \b
    Examples:
      ligi prune
      ligi prune --global
    """
    try:
        report = core.prune(root, include_global=global_)
    except (LigiError, ConfigurationError) as e:
        _handle_error(ctx, e)

    if report.local is not None:
        _echo_summary(
            ctx,
            f"local: pruned {report.local.pruned_entries} entries, "
            f"{report.local.pruned_tags} tags",
        )
    if report.global_index is not None:
        _echo_summary(ctx, f"registry: pruned {report.repos_pruned} repositories")
        _echo_summary(
            ctx,
            f"global: pruned {report.global_index.pruned_entries} entries, "
            f"{report.global_index.pruned_tags} tags",
        )


@cli.command("check")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.pass_context
def check_cmd(ctx: click.Context, output: str):
    """Check that registered repositories still exist.

    Exits with status 1 if any repository is BROKEN or MISSING_ART.
    """
    try:
        results = core.check_repos()
    except (LigiError, ConfigurationError) as e:
        _handle_error(ctx, e)

    if output == "json":
        click.echo(json.dumps({"results": [r.model_dump() for r in results]}))
    elif not results:
        click.echo("No repositories registered in global index.")
    else:
        for result in results:
            click.echo(f"{result.status:<12} {result.path}")

    if any(result.status != "OK" for result in results):
        sys.exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    """Entry point for ligi CLI."""
    from ._logging import configure_logging

    configure_logging()
    cli()


if __name__ == "__main__":
    main()
