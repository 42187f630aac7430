"""Gateway configuration: where and how to reach the ledger gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from WeaveQuery.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class GatewayConfig:
    """Validated gateway settings.

    Attributes:
        url: Gateway base URL; GraphQL is served under `/graphql`.
        timeout: Per-request timeout in seconds.
        max_attempts: Attempts per request, including the first one.
        api_key_env: Environment variable holding an optional API key.
    """

    url: str
    timeout: float
    max_attempts: int
    api_key_env: str = ""

    def api_key(self) -> str:
        """Read the API key from the environment, empty when unset."""
        if not self.api_key_env:
            return ""
        return os.getenv(self.api_key_env, "")


def load_gateway(raw: Mapping[str, Any]) -> GatewayConfig:
    """Load the `gateway` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "gateway", required=True)
    return GatewayConfig(
        url=expect_str(get_required_value(section, "url", "gateway.url"), "gateway.url").rstrip("/"),
        timeout=expect_float(get_required_value(section, "timeout", "gateway.timeout"), "gateway.timeout"),
        max_attempts=expect_int(
            get_required_value(section, "max_attempts", "gateway.max_attempts"), "gateway.max_attempts"
        ),
        api_key_env=expect_str(get_optional_value(section, "api_key_env", ""), "gateway.api_key_env"),
    )


def check_gateway(config: GatewayConfig) -> None:
    """Validate gateway domain constraints.

    Args:
        config: Parsed gateway configuration.

    Raises:
        ValueError: If a value is out of range.
    """
    if not config.url.startswith(("http://", "https://")):
        raise ValueError("gateway.url must be an http(s) URL")
    if config.timeout <= 0:
        raise ValueError("gateway.timeout must be positive")
    if config.max_attempts < 1:
        raise ValueError("gateway.max_attempts must be >= 1")
