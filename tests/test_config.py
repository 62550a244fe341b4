"""Tests for settings and CLI-facing parsing helpers."""

import logging

import pytest

from common.config import (
    DEFAULT_DISH_ADDR,
    DEFAULT_LISTEN_ADDR,
    get_settings,
    parse_listen_address,
    parse_log_level,
)
from starlink_exporter.cli import build_parser


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in (
        "EXPORTER_LISTEN_ADDR",
        "DISH_ADDR",
        "LOG_LEVEL",
        "POLL_INTERVAL_SECONDS",
        "DEVICE_TIMEOUT_SECONDS",
        "METRICS_NAMESPACE",
    ):
        # undo also removes values loaded from an env file
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("STARLINK_ENV_FILE", str(tmp_path / "missing.env"))
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        s = get_settings()
        assert s.listen_addr == DEFAULT_LISTEN_ADDR == ":9999"
        assert s.dish_addr == DEFAULT_DISH_ADDR == "192.168.100.1:9200"
        assert s.log_level == "info"
        assert s.poll_interval_seconds == 1.0
        assert s.device_timeout_seconds == 10.0
        assert s.metrics_namespace == "starlink"

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("DISH_ADDR", "10.0.0.5:9200")
        clean_env.setenv("DEVICE_TIMEOUT_SECONDS", "2.5")

        s = get_settings()

        assert s.dish_addr == "10.0.0.5:9200"
        assert s.device_timeout_seconds == 2.5

    def test_env_file_does_not_override_environment(self, clean_env, tmp_path):
        env_file = tmp_path / "exporter.env"
        env_file.write_text("LOG_LEVEL=debug\nEXPORTER_LISTEN_ADDR=127.0.0.1:9100\n")
        clean_env.setenv("STARLINK_ENV_FILE", str(env_file))
        clean_env.setenv("LOG_LEVEL", "error")

        s = get_settings()

        assert s.log_level == "error"
        assert s.listen_addr == "127.0.0.1:9100"


class TestParsing:

    @pytest.mark.parametrize(
        "addr, expected",
        [
            (":9999", ("0.0.0.0", 9999)),
            ("127.0.0.1:9100", ("127.0.0.1", 9100)),
            ("[::1]:9999", ("::1", 9999)),
        ],
    )
    def test_listen_address(self, addr, expected):
        assert parse_listen_address(addr) == expected

    @pytest.mark.parametrize("addr", ["9999", "host:", "host:http"])
    def test_invalid_listen_address(self, addr):
        with pytest.raises(ValueError):
            parse_listen_address(addr)

    @pytest.mark.parametrize(
        "name, level",
        [
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            ("warn", logging.WARNING),
            ("error", logging.ERROR),
            ("verbose", logging.INFO),
            ("", logging.INFO),
        ],
    )
    def test_log_level(self, name, level):
        assert parse_log_level(name) == level


class TestCliParser:

    def test_flags_default_to_settings(self, clean_env):
        clean_env.setenv("DISH_ADDR", "10.0.0.5:9200")

        args = build_parser().parse_args([])

        assert args.listen == ":9999"
        assert args.dish == "10.0.0.5:9200"
        assert args.log_level == "info"

    def test_flags_override(self, clean_env):
        args = build_parser().parse_args(["--listen", ":9100", "--dish", "dishy:9200", "--log-level", "debug"])

        assert args.listen == ":9100"
        assert args.dish == "dishy:9200"
        assert args.log_level == "debug"
