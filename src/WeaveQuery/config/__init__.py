"""Public configuration API for WeaveQuery."""

from __future__ import annotations

from WeaveQuery.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
    parse_yaml,
)
from WeaveQuery.config.gateway import GatewayConfig
from WeaveQuery.config.query import QueryConfig
from WeaveQuery.config.runtime import RuntimeConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AppConfig",
    "GatewayConfig",
    "QueryConfig",
    "RuntimeConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
    "parse_yaml",
]
