"""Tests for layered config parsing and validation."""

import os
import sys
import tempfile
import unittest
from copy import deepcopy
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from WeaveQuery.config import (
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
    parse_yaml,
)

DEFAULT_CONFIG = REPO_ROOT / "config" / "default.yml"


def _base_raw_config() -> dict:
    return {
        "log": {"level": "info", "to_file": False, "dir": "log"},
        "gateway": {"url": "https://gateway.example/", "timeout": 10, "max_attempts": 2, "api_key_env": "GW_KEY"},
        "query": {"default_limit": 25, "sort": "height_asc"},
    }


class TestConfigParsing(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.gateway.url, "https://gateway.example")
        self.assertEqual(cfg.gateway.timeout, 10.0)
        self.assertEqual(cfg.query.default_limit, 25)
        self.assertEqual(cfg.query.sort, "HEIGHT_ASC")

    def test_query_section_is_optional(self) -> None:
        raw = _base_raw_config()
        del raw["query"]
        cfg = parse_config_dict(raw)
        self.assertEqual(cfg.query.default_limit, 10)
        self.assertEqual(cfg.query.sort, "")

    def test_missing_gateway_section(self) -> None:
        raw = _base_raw_config()
        del raw["gateway"]
        with self.assertRaisesRegex(ValueError, "gateway"):
            parse_config_dict(raw)

    def test_type_errors_name_the_key(self) -> None:
        raw = deepcopy(_base_raw_config())
        raw["gateway"]["max_attempts"] = "3"
        with self.assertRaisesRegex(TypeError, "gateway.max_attempts"):
            parse_config_dict(raw)

    def test_domain_checks(self) -> None:
        cases = [
            ("log", "level", "LOUD", "log.level"),
            ("gateway", "url", "ftp://x", "gateway.url"),
            ("gateway", "timeout", 0, "gateway.timeout"),
            ("query", "default_limit", 101, "query.default_limit"),
            ("query", "sort", "newest", "query.sort"),
        ]
        for section, key, value, message in cases:
            with self.subTest(key=f"{section}.{key}"):
                raw = deepcopy(_base_raw_config())
                raw[section][key] = value
                with self.assertRaisesRegex(ValueError, message):
                    parse_config_dict(raw)

    def test_api_key_read_from_environment(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        with patch.dict(os.environ, {"GW_KEY": "secret"}):
            self.assertEqual(cfg.gateway.api_key(), "secret")
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(cfg.gateway.api_key(), "")


class TestConfigFiles(unittest.TestCase):
    def test_default_config_is_valid(self) -> None:
        cfg = load_config(DEFAULT_CONFIG)
        self.assertEqual(cfg.gateway.url, "https://arweave.net")
        self.assertEqual(cfg.query.default_limit, 10)

    def test_override_is_merged_over_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            override = Path(tmp) / "override.yml"
            override.write_text("gateway:\n  url: https://other.example\nquery:\n  sort: HEIGHT_DESC\n", encoding="utf-8")

            cfg = load_config_with_defaults(override, default_path=DEFAULT_CONFIG)

        self.assertEqual(cfg.gateway.url, "https://other.example")
        self.assertEqual(cfg.gateway.max_attempts, 4)
        self.assertEqual(cfg.query.sort, "HEIGHT_DESC")

    def test_merge_and_yaml_helpers(self) -> None:
        merged = merge_config_dicts({"a": {"b": 1, "c": 2}, "d": 1}, {"a": {"c": 3}, "d": {"x": 1}})
        self.assertEqual(merged, {"a": {"b": 1, "c": 3}, "d": {"x": 1}})
        self.assertEqual(parse_yaml(""), {})
        with self.assertRaises(ValueError):
            parse_yaml("- 1\n- 2\n")


if __name__ == "__main__":
    unittest.main()
