"""Tests for environment-backed configuration and call logging."""

import json
from unittest.mock import patch

import pytest

from git_kimai_mcp.config import AppConfig, KimaiConfig, load_config
from git_kimai_mcp.utils.logging import ToolCallLogger

ENV_KEYS = (
    "KIMAI_API_URL",
    "KIMAI_API_TOKEN",
    "KIMAI_TIMEOUT",
    "GIT_TIMEOUT",
    "GIT_MAX_OUTPUT_BYTES",
    "LOG_LEVEL",
    "LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    with patch("git_kimai_mcp.config.load_dotenv"):
        yield monkeypatch


class TestLoadConfig:
    """Test load_config."""

    def test_defaults(self, clean_env):
        """Without environment the Kimai settings are unset."""
        config = load_config()
        assert config.kimai.base_url is None
        assert config.kimai.api_token is None
        assert config.git.timeout == 30
        assert config.git.max_output_bytes == 1024 * 1024
        assert config.server.log_level == "INFO"

    def test_reads_environment(self, clean_env):
        """Values come from the environment."""
        clean_env.setenv("KIMAI_API_URL", "https://kimai.example.com/api")
        clean_env.setenv("KIMAI_API_TOKEN", "secret")
        clean_env.setenv("GIT_TIMEOUT", "5")
        clean_env.setenv("LOG_DIR", "/tmp/logs")

        config = load_config()

        assert config.kimai.is_configured
        assert config.git.timeout == 5
        assert config.server.log_dir == "/tmp/logs"

    def test_invalid_integer_falls_back(self, clean_env):
        """Unparsable numbers keep the default."""
        clean_env.setenv("KIMAI_TIMEOUT", "soon")
        assert load_config().kimai.timeout == 30


class TestAppConfigValidate:
    """Test AppConfig.validate."""

    def test_missing_kimai(self):
        is_valid, errors = AppConfig().validate()
        assert not is_valid
        assert errors == ["KIMAI_API_URL is not set", "KIMAI_API_TOKEN is not set"]

    def test_valid(self):
        config = AppConfig(kimai=KimaiConfig(base_url="https://k/api", api_token="t"))
        assert config.validate() == (True, [])

    def test_token_is_masked(self):
        config = AppConfig(kimai=KimaiConfig(base_url="https://k/api", api_token="t"))
        assert config.to_dict()["kimai"]["api_token"] == "***"


class TestToolCallLogger:
    """Test ToolCallLogger file output."""

    def test_writes_jsonl(self, tmp_path):
        """Completed calls are appended as JSON lines."""
        call_logger = ToolCallLogger(str(tmp_path / "logs"))
        call_logger.log_call_complete("get_git_log", 12)
        call_logger.log_call_complete("push_kimai_entries", 3, status="error", error="boom")

        lines = (tmp_path / "logs" / "tool_calls.jsonl").read_text().splitlines()
        records = [json.loads(line) for line in lines]
        assert [r["tool"] for r in records] == ["get_git_log", "push_kimai_entries"]
        assert records[1]["status"] == "error"
        assert records[1]["error"] == "boom"

    def test_no_log_dir(self, tmp_path):
        """Without a log dir nothing is written."""
        call_logger = ToolCallLogger()
        call_logger.log_call_complete("get_git_log", 1)
        assert call_logger.log_file is None
