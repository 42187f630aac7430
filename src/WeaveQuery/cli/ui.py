"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their runners.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from WeaveQuery.cli.commands import SearchRequest, parse_tag_option
from WeaveQuery.cli.runner import CommandRunner
from WeaveQuery.config import DEFAULT_CONFIG_PATH, load_config_with_defaults
from WeaveQuery.core.query import SearchKind, SortOrder
from WeaveQuery.renderers import OUTPUT_FORMATS


def _parse_tags(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> tuple[tuple[str, str], ...]:
    try:
        return tuple(parse_tag_option(raw) for raw in value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from None


@click.group(help="WeaveQuery: search ledger transactions and blocks through a GraphQL gateway.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="YAML config file, merged over the defaults.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()
    ctx.obj = load_config_with_defaults(config_path)


@cli.command("search")
@click.argument("kind", type=click.Choice([kind.value for kind in SearchKind], case_sensitive=False))
@click.option("--id", "ids", multiple=True, help="Entry id (repeatable).")
@click.option("--tag", "tags", multiple=True, callback=_parse_tags, metavar="NAME=VALUE", help="Tag filter (repeatable).")
@click.option("--app-name", help="Shortcut for --tag App-Name=VALUE.")
@click.option("--content-type", help="Shortcut for --tag Content-Type=VALUE.")
@click.option("--owner", "owners", multiple=True, help="Owner address (repeatable).")
@click.option("--recipient", "recipients", multiple=True, help="Recipient address (repeatable).")
@click.option("--min", "min_height", type=int, help="Minimum block height.")
@click.option("--max", "max_height", type=int, help="Maximum block height.")
@click.option("--limit", type=int, help="Page size (1-100).")
@click.option("--sort", type=click.Choice([order.value for order in SortOrder], case_sensitive=False))
@click.option("--cursor", default="", help="Continue after this cursor.")
@click.option("--only", multiple=True, help="Return only these transaction fields (repeatable).")
@click.option("--exclude", multiple=True, help="Do not return these transaction fields (repeatable).")
@click.option("--all", "fetch_all", is_flag=True, help="Follow cursors until the last page.")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="text", show_default=True)
@click.pass_context
def search_cmd(
    ctx: click.Context,
    kind: str,
    ids: tuple[str, ...],
    tags: tuple[tuple[str, str], ...],
    app_name: Optional[str],
    content_type: Optional[str],
    owners: tuple[str, ...],
    recipients: tuple[str, ...],
    min_height: Optional[int],
    max_height: Optional[int],
    limit: Optional[int],
    sort: Optional[str],
    cursor: str,
    only: tuple[str, ...],
    exclude: tuple[str, ...],
    fetch_all: bool,
    output_format: str,
) -> None:
    """Search KIND (transaction, transactions, block or blocks) and print the result.

    Raises:
        click.Abort: When the search fails.
    """
    request = SearchRequest(
        kind=kind.lower(),
        ids=ids,
        tags=tags,
        app_name=app_name,
        content_type=content_type,
        owners=owners,
        recipients=recipients,
        min_height=min_height,
        max_height=max_height,
        limit=limit,
        sort=sort.upper() if sort else None,
        cursor=cursor,
        only=only,
        exclude=exclude,
        fetch_all=fetch_all,
        output_format=output_format,
    )
    CommandRunner(ctx.obj).run_search(action=ctx.command.name, request=request)
