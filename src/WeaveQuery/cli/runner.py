"""Command runner for coordinating CLI execution.

Manages logging configuration, the gateway client lifecycle and error
handling for command execution.
"""

from __future__ import annotations

import click

from WeaveQuery.cli.commands import SearchCommand, SearchRequest
from WeaveQuery.config import AppConfig
from WeaveQuery.gql.client import GatewayClient
from WeaveQuery.query.builder import LedgerQuery
from WeaveQuery.utils.log import configure_logging, log


def create_gateway_client(config: AppConfig) -> GatewayClient:
    """Create a gateway client from the `gateway` config section."""
    return GatewayClient(
        config.gateway.url,
        timeout=config.gateway.timeout,
        max_attempts=config.gateway.max_attempts,
        api_key=config.gateway.api_key(),
    )


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run_search(self, action: str, request: SearchRequest) -> None:
        """Execute the search command and print its output.

        Args:
            action: The CLI command name (e.g., 'search').
            request: Parsed search options.

        Raises:
            click.Abort: When the search fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            with create_gateway_client(self.config) as client:
                command = SearchCommand(
                    config=self.config,
                    ledger=LedgerQuery(client, default_limit=self.config.query.default_limit),
                    request=request,
                )
                output = command.execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Search failed: %s", e)
            raise click.Abort from e

        click.echo(output, nl=False)
