"""Environment-backed configuration for the git-kimai MCP server."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024


@dataclass
class KimaiConfig:
    base_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_token)


@dataclass
class GitConfig:
    timeout: int = DEFAULT_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES


@dataclass
class ServerConfig:
    log_level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass
class AppConfig:
    kimai: KimaiConfig = field(default_factory=KimaiConfig)
    git: GitConfig = field(default_factory=GitConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration fields.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors: list[str] = []

        if not self.kimai.base_url:
            errors.append("KIMAI_API_URL is not set")
        if not self.kimai.api_token:
            errors.append("KIMAI_API_TOKEN is not set")
        if self.git.max_output_bytes <= 0:
            errors.append("GIT_MAX_OUTPUT_BYTES must be positive")
        if self.server.log_level.upper() not in logging.getLevelNamesMapping():
            errors.append(f"LOG_LEVEL '{self.server.log_level}' is not a valid level")

        return len(errors) == 0, errors

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary with the token masked."""
        return {
            "kimai": {
                "base_url": self.kimai.base_url,
                "api_token": "***" if self.kimai.api_token else None,
                "timeout": self.kimai.timeout,
            },
            "git": {
                "timeout": self.git.timeout,
                "max_output_bytes": self.git.max_output_bytes,
            },
            "server": {
                "log_level": self.server.log_level,
                "log_dir": self.server.log_dir,
            },
        }


def _int_from_env(env_key: str, default: int) -> int:
    value = os.getenv(env_key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {env_key}={value!r}, expected an integer (using {default})")
        return default


def load_config(dotenv_path: Optional[str] = None) -> AppConfig:
    """Load configuration from the environment and an optional .env file.

    Args:
        dotenv_path: Explicit .env file; searched upwards from cwd when None

    Returns:
        Populated application configuration
    """
    load_dotenv(dotenv_path)

    return AppConfig(
        kimai=KimaiConfig(
            base_url=os.getenv("KIMAI_API_URL") or None,
            api_token=os.getenv("KIMAI_API_TOKEN") or None,
            timeout=_int_from_env("KIMAI_TIMEOUT", DEFAULT_TIMEOUT),
        ),
        git=GitConfig(
            timeout=_int_from_env("GIT_TIMEOUT", DEFAULT_TIMEOUT),
            max_output_bytes=_int_from_env("GIT_MAX_OUTPUT_BYTES", DEFAULT_MAX_OUTPUT_BYTES),
        ),
        server=ServerConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=os.getenv("LOG_DIR") or None,
        ),
    )
