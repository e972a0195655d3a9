"""Domain models and value objects for tool invocations."""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..errors import InvalidArguments

DEFAULT_COMMIT_LIMIT = 25

TIME_ENTRY_FIELDS = ("begin", "end", "project", "activity", "description")


def _optional_str(arguments: Dict[str, Any], key: str) -> Optional[str]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArguments(f"'{key}' must be a string")
    return value


def _as_int(value: Any, name: str) -> int:
    # JSON "number" may arrive as 5.0
    if isinstance(value, bool):
        raise InvalidArguments(f"'{name}' must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise InvalidArguments(f"'{name}' must be an integer")
    return value


def _check_branch_name(branch: str) -> None:
    if branch.startswith("-") or any(ch.isspace() for ch in branch):
        raise InvalidArguments(f"Invalid branch name: {branch}")


@dataclass(frozen=True)
class LogQueryRequest:
    """Request object for commit history queries."""

    repo_path: str
    number: int = DEFAULT_COMMIT_LIMIT
    author: Optional[str] = None
    since: Optional[str] = None
    until: Optional[str] = None
    branch: Optional[str] = None
    branches: Optional[Tuple[str, ...]] = None
    detailed: bool = False

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "LogQueryRequest":
        """Build a request from raw tool arguments.

        Args:
            arguments: Argument object as received from the client

        Returns:
            Validated request

        Raises:
            InvalidArguments: If a field has the wrong type or value
        """
        repo_path = _optional_str(arguments, "repo_path") or os.getcwd()

        number = arguments.get("number")
        limit = DEFAULT_COMMIT_LIMIT if number is None else _as_int(number, "number")
        if limit < 1:
            raise InvalidArguments("'number' must be a positive integer")

        branch = _optional_str(arguments, "branch")
        if branch:
            _check_branch_name(branch)

        branches: Optional[Tuple[str, ...]] = None
        raw_branches = arguments.get("branches")
        if isinstance(raw_branches, list) and all(isinstance(b, str) for b in raw_branches):
            for name in raw_branches:
                _check_branch_name(name)
            branches = tuple(raw_branches) or None

        detailed = arguments.get("detailed", False)
        if not isinstance(detailed, bool):
            raise InvalidArguments("'detailed' must be a boolean")

        return cls(
            repo_path=repo_path,
            number=limit,
            author=_optional_str(arguments, "author"),
            since=_optional_str(arguments, "since"),
            until=_optional_str(arguments, "until"),
            branch=branch,
            branches=branches,
            detailed=detailed,
        )


@dataclass(frozen=True)
class CommitRecord:
    """A single commit as reported by git log."""

    hash: str
    author_name: str
    author_email: str
    date: str
    message: str


@dataclass(frozen=True)
class TimeEntry:
    """Timesheet entry in the shape Kimai expects."""

    begin: str
    end: str
    project: int
    activity: int
    description: str

    @classmethod
    def from_dict(cls, data: Any, index: int = 1) -> "TimeEntry":
        """Build an entry from a raw argument object.

        Args:
            data: Raw entry object
            index: 1-based position used in error messages

        Raises:
            InvalidArguments: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise InvalidArguments(f"Entry {index}: must be an object")

        missing = [name for name in TIME_ENTRY_FIELDS if data.get(name) is None]
        if missing:
            raise InvalidArguments(f"Entry {index}: missing field(s): {', '.join(missing)}")

        for name in ("begin", "end", "description"):
            if not isinstance(data[name], str):
                raise InvalidArguments(f"Entry {index}: '{name}' must be a string")

        return cls(
            begin=data["begin"],
            end=data["end"],
            project=_as_int(data["project"], f"entries[{index}].project"),
            activity=_as_int(data["activity"], f"entries[{index}].activity"),
            description=data["description"],
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the flat JSON body for POST /timesheets."""
        return {
            "begin": self.begin,
            "end": self.end,
            "project": self.project,
            "activity": self.activity,
            "description": self.description,
        }


def parse_time_entries(arguments: Dict[str, Any]) -> List[TimeEntry]:
    """Validate the ``entries`` argument of the push tool."""
    entries = arguments.get("entries")
    if not isinstance(entries, list) or not entries:
        raise InvalidArguments("'entries' must be a non-empty list")
    return [TimeEntry.from_dict(entry, index) for index, entry in enumerate(entries, start=1)]


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of submitting one timesheet entry."""

    index: int
    success: bool
    remote_id: Any = None
    error: Any = None
    exception: bool = False

    def render(self) -> str:
        """Format the outcome as a single report line."""
        if self.success:
            return f"Entry {self.index}: ✅ Success - ID {self.remote_id}"
        if self.exception:
            return f"Entry {self.index}: ❌ Exception - {self.error}"
        return f"Entry {self.index}: ❌ Failed - {json.dumps(self.error)}"
