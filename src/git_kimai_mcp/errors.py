"""Error types raised by the git and Kimai tools."""

from typing import Any


class ToolError(Exception):
    """Base class for all tool failures."""


class InvalidArguments(ToolError):
    """Tool arguments failed validation."""


class UnknownOperation(ToolError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class GitLogError(ToolError):
    """Any failure while querying commit history."""


class NotAGitRepository(GitLogError):
    """Target path has no .git metadata."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a Git repository: {path}")
        self.path = path


class CommandExecutionFailure(GitLogError):
    """The git binary could not be run or exited non-zero."""


class OutputTooLarge(GitLogError):
    """git produced more output than the configured ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"git output too large: {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class ConfigurationMissing(ToolError):
    """Required Kimai configuration is not set."""


class RemoteRejection(ToolError):
    """Kimai answered a timesheet POST with a non-success status."""

    def __init__(self, status_code: int, body: Any) -> None:
        super().__init__(f"Kimai returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class TransportException(ToolError):
    """Network failure or unparsable response for a single request."""
