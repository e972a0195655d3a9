#!/usr/bin/env python3
"""Main entrypoint for the git-kimai MCP server."""

import asyncio
import logging
import sys

from git_kimai_mcp.cli.console import StartupConsole
from git_kimai_mcp.config import load_config
from git_kimai_mcp.server.app import SERVER_NAME, SERVER_VERSION, run_stdio
from git_kimai_mcp.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    config = load_config()
    setup_logging(config.server.log_level)

    console = StartupConsole()
    console.show_banner(SERVER_NAME, SERVER_VERSION)

    # Missing Kimai settings only disable the push tool
    _, errors = config.validate()
    console.show_config_warnings(errors)

    logger.info(f"Starting {SERVER_NAME} on stdio...")
    try:
        asyncio.run(run_stdio(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.error(f"Server stopped with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
