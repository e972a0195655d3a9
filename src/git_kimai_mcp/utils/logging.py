"""Structured logging setup for tool calls."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


class ToolCallLogger:
    """Handles structured JSON logging for tool invocations."""

    def __init__(self, log_dir: Optional[str] = None):
        self.log_file: Optional[Path] = None
        if log_dir:
            path = Path(log_dir)
            path.mkdir(parents=True, exist_ok=True)
            self.log_file = path / "tool_calls.jsonl"

        self.logger = structlog.get_logger("git_kimai_mcp.tools")

    def log_call_start(self, tool: str, arguments: Dict[str, Any]) -> None:
        """Log tool call start."""
        self.logger.info(
            "tool_call_started",
            tool=tool,
            arguments=sorted(arguments),
            timestamp=datetime.now().isoformat(),
        )

    def log_call_complete(
        self,
        tool: str,
        duration_ms: int,
        status: str = "success",
        error: Optional[str] = None,
    ) -> None:
        """Log tool call completion."""
        log_entry: Dict[str, Any] = {
            "tool": tool,
            "status": status,
            "duration_ms": duration_ms,
            "timestamp": datetime.now().isoformat(),
        }

        if error:
            log_entry["error"] = error
            self.logger.error("tool_call_completed", **log_entry)
        else:
            self.logger.info("tool_call_completed", **log_entry)

        self._write_to_file(log_entry)

    def _write_to_file(self, log_entry: Dict[str, Any]) -> None:
        """Append log entry to the JSONL file, if one is configured."""
        if self.log_file is None:
            return
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
        except OSError as e:
            # A broken log file must not fail the tool call
            logging.getLogger(__name__).warning(f"Failed to write to log file: {e}")


def setup_logging(level: str = "INFO") -> None:
    """Send stdlib and structlog output to stderr.

    stdout carries the MCP stdio transport and must stay clean.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
