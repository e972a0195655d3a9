"""Routes tool calls to capabilities and classifies their failures."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from mcp import types
from mcp.shared.exceptions import McpError

from ..domain.models import DEFAULT_COMMIT_LIMIT, LogQueryRequest, parse_time_entries
from ..errors import InvalidArguments, ToolError, UnknownOperation
from ..git.log_query import GitLogService
from ..services.timesheet_pusher import TimesheetPusher
from ..utils.logging import ToolCallLogger

logger = logging.getLogger(__name__)

GET_GIT_LOG = "get_git_log"
PUSH_KIMAI_ENTRIES = "push_kimai_entries"

GIT_LOG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "repo_path": {
            "type": "string",
            "description": "Path to the Git repository (defaults to current directory)",
        },
        "number": {
            "type": "integer",
            "minimum": 1,
            "description": f"Number of commits to retrieve (default: {DEFAULT_COMMIT_LIMIT})",
            "default": DEFAULT_COMMIT_LIMIT,
        },
        "author": {"type": "string", "description": "Filter commits by author name"},
        "since": {
            "type": "string",
            "description": 'Show commits since date (e.g., "2024-01-01", "1 week ago")',
        },
        "until": {
            "type": "string",
            "description": 'Show commits until date (e.g., "2024-12-31", "yesterday")',
        },
        "branch": {
            "type": "string",
            "description": "Single branch to read (defaults to the checked-out branch)",
        },
        "branches": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Branches to read, one report section per branch, in order",
        },
        "detailed": {
            "type": "boolean",
            "description": "Include commit hash and author in each entry",
            "default": False,
        },
    },
    "required": [],
}

KIMAI_ENTRIES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "entries": {
            "type": "array",
            "minItems": 1,
            "description": "Timesheet entries to create in Kimai",
            "items": {
                "type": "object",
                "properties": {
                    "begin": {"type": "string", "description": "Start, e.g. 2024-05-01T09:00:00"},
                    "end": {"type": "string", "description": "End, e.g. 2024-05-01T12:30:00"},
                    "project": {"type": "integer", "description": "Kimai project ID"},
                    "activity": {"type": "integer", "description": "Kimai activity ID"},
                    "description": {"type": "string", "description": "Work description"},
                },
                "required": ["begin", "end", "project", "activity", "description"],
            },
        },
    },
    "required": ["entries"],
}


def _error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


class ToolDispatcher:
    """Registry of the server's tools.

    Arguments are validated into typed requests once, here, before any
    capability code runs. Each failure kind maps to exactly one MCP error
    code: unknown tools to METHOD_NOT_FOUND, bad arguments to
    INVALID_PARAMS, everything else to INTERNAL_ERROR.
    """

    def __init__(
        self,
        git_service: GitLogService,
        timesheet_pusher: TimesheetPusher,
        call_logger: Optional[ToolCallLogger] = None,
    ) -> None:
        self.git_service = git_service
        self.timesheet_pusher = timesheet_pusher
        self.call_logger = call_logger or ToolCallLogger()
        self._tools: Dict[str, types.Tool] = {}
        self._handlers: Dict[str, Callable[[Dict[str, Any]], str]] = {}

        self.register(
            types.Tool(
                name=GET_GIT_LOG,
                description="Get git log of repository",
                inputSchema=GIT_LOG_SCHEMA,
            ),
            self._get_git_log,
        )
        self.register(
            types.Tool(
                name=PUSH_KIMAI_ENTRIES,
                description="Create timesheet entries in Kimai, reporting success per entry",
                inputSchema=KIMAI_ENTRIES_SCHEMA,
            ),
            self._push_kimai_entries,
        )

    def register(self, tool: types.Tool, handler: Callable[[Dict[str, Any]], str]) -> None:
        """Register a tool and the handler that implements it."""
        self._tools[tool.name] = tool
        self._handlers[tool.name] = handler

    def list_tools(self) -> List[types.Tool]:
        return list(self._tools.values())

    def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        """Execute a tool by name.

        Args:
            name: Tool name
            arguments: Raw argument object (None is treated as empty)

        Returns:
            A single text content block

        Raises:
            McpError: With the error code matching the failure kind
        """
        arguments = arguments or {}
        start = time.monotonic()
        self.call_logger.log_call_start(name, arguments)

        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownOperation(name)
            text = handler(arguments)
        except UnknownOperation as e:
            self._log_failure(name, start, e)
            raise _error(types.METHOD_NOT_FOUND, str(e)) from e
        except InvalidArguments as e:
            self._log_failure(name, start, e)
            raise _error(types.INVALID_PARAMS, f"{name}: invalid arguments: {e}") from e
        except ToolError as e:
            self._log_failure(name, start, e)
            raise _error(types.INTERNAL_ERROR, f"{name} failed: {e}") from e
        except Exception as e:
            logger.exception(f"Unexpected error in {name}")
            self._log_failure(name, start, e)
            raise _error(
                types.INTERNAL_ERROR, f"{name} failed: {type(e).__name__}: {e}"
            ) from e

        self.call_logger.log_call_complete(name, self._elapsed_ms(start))
        return [types.TextContent(type="text", text=text)]

    def _get_git_log(self, arguments: Dict[str, Any]) -> str:
        request = LogQueryRequest.from_arguments(arguments)
        logger.info(f"Reading git log of {request.repo_path}")
        return self.git_service.get_log(request)

    def _push_kimai_entries(self, arguments: Dict[str, Any]) -> str:
        entries = parse_time_entries(arguments)
        outcomes = self.timesheet_pusher.push(entries)
        return self.timesheet_pusher.render(outcomes)

    def _log_failure(self, name: str, start: float, error: Exception) -> None:
        self.call_logger.log_call_complete(
            name, self._elapsed_ms(start), status="error", error=str(error)
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
