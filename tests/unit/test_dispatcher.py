"""Tests for ToolDispatcher routing and error classification."""

from unittest.mock import Mock

import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from git_kimai_mcp.config import AppConfig, KimaiConfig
from git_kimai_mcp.errors import ConfigurationMissing, NotAGitRepository
from git_kimai_mcp.git.log_query import GitLogService
from git_kimai_mcp.server.app import create_dispatcher
from git_kimai_mcp.server.dispatcher import ToolDispatcher
from git_kimai_mcp.services.timesheet_pusher import TimesheetPusher

ENTRY = {
    "begin": "2024-05-01T09:00:00",
    "end": "2024-05-01T10:00:00",
    "project": 1,
    "activity": 2,
    "description": "Standup",
}


@pytest.fixture
def git_service():
    service = Mock()
    service.get_log.return_value = "Git log for /repo :\n\n..."
    return service


@pytest.fixture
def pusher():
    return Mock()


@pytest.fixture
def dispatcher(git_service, pusher):
    return ToolDispatcher(git_service, pusher, call_logger=Mock())


class TestToolDispatcher:
    """Test ToolDispatcher.call and list_tools."""

    def test_lists_both_tools(self, dispatcher):
        """Both tools are advertised with schemas."""
        tools = {tool.name: tool for tool in dispatcher.list_tools()}
        assert set(tools) == {"get_git_log", "push_kimai_entries"}
        assert tools["push_kimai_entries"].inputSchema["required"] == ["entries"]
        assert tools["get_git_log"].inputSchema["properties"]["number"]["default"] == 25

    def test_get_git_log_returns_text_block(self, dispatcher, git_service):
        """Arguments are parsed into a typed request."""
        result = dispatcher.call("get_git_log", {"repo_path": "/repo", "number": 3})

        assert len(result) == 1
        assert result[0].type == "text"
        assert result[0].text.startswith("Git log for /repo")
        request = git_service.get_log.call_args.args[0]
        assert request.repo_path == "/repo"
        assert request.number == 3

    def test_none_arguments(self, dispatcher, git_service):
        """Missing arguments are treated as empty."""
        dispatcher.call("get_git_log", None)
        assert git_service.get_log.call_args.args[0].number == 25

    def test_unknown_tool(self, dispatcher):
        """Unregistered names are METHOD_NOT_FOUND."""
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("rm_rf", {})
        assert exc_info.value.error.code == types.METHOD_NOT_FOUND
        assert "Unknown tool: rm_rf" in exc_info.value.error.message

    def test_invalid_arguments(self, dispatcher, git_service):
        """Validation failures are INVALID_PARAMS and never reach the service."""
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("get_git_log", {"number": -1})
        assert exc_info.value.error.code == types.INVALID_PARAMS
        git_service.get_log.assert_not_called()

    def test_capability_failure_is_internal_error(self, dispatcher, git_service):
        """Tool errors keep their message under INTERNAL_ERROR."""
        git_service.get_log.side_effect = NotAGitRepository("/nowhere")
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("get_git_log", {"repo_path": "/nowhere"})
        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert exc_info.value.error.message == "get_git_log failed: Not a Git repository: /nowhere"

    def test_unexpected_exception_is_classified(self, dispatcher, git_service):
        """Stray exceptions are still wrapped."""
        git_service.get_log.side_effect = KeyError("boom")
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("get_git_log", {})
        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert "KeyError" in exc_info.value.error.message

    def test_push_renders_outcomes(self, dispatcher, pusher):
        """The push tool returns the rendered report."""
        pusher.push.return_value = ["outcome"]
        pusher.render.return_value = "Entry 1: ✅ Success - ID 5"

        result = dispatcher.call("push_kimai_entries", {"entries": [ENTRY]})

        assert result[0].text == "Entry 1: ✅ Success - ID 5"
        assert pusher.push.call_args.args[0][0].description == "Standup"

    def test_push_configuration_missing(self, dispatcher, pusher):
        """Missing configuration aborts the whole call."""
        pusher.push.side_effect = ConfigurationMissing("KIMAI_API_URL not set")
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("push_kimai_entries", {"entries": [ENTRY]})
        assert exc_info.value.error.code == types.INTERNAL_ERROR

    def test_calls_are_logged(self, git_service, pusher):
        """Start and completion are recorded for every call."""
        call_logger = Mock()
        dispatcher = ToolDispatcher(git_service, pusher, call_logger=call_logger)

        dispatcher.call("get_git_log", {})
        with pytest.raises(McpError):
            dispatcher.call("missing", {})

        assert call_logger.log_call_start.call_count == 2
        statuses = [c.kwargs.get("status", "success") for c in call_logger.log_call_complete.call_args_list]
        assert statuses == ["success", "error"]


class TestDispatcherWiring:
    """Test the dispatcher built from configuration."""

    def test_not_a_repository_end_to_end(self, tmp_path):
        """A plain directory yields INTERNAL_ERROR naming the path."""
        dispatcher = create_dispatcher(AppConfig())
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("get_git_log", {"repo_path": str(tmp_path), "number": 1})
        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert str(tmp_path) in exc_info.value.error.message

    def test_unconfigured_kimai_end_to_end(self):
        """Pushing without Kimai settings fails before any request."""
        dispatcher = create_dispatcher(AppConfig(kimai=KimaiConfig()))
        with pytest.raises(McpError) as exc_info:
            dispatcher.call("push_kimai_entries", {"entries": [ENTRY]})
        assert exc_info.value.error.code == types.INTERNAL_ERROR
        assert "KIMAI_API_TOKEN" in exc_info.value.error.message

    def test_services_receive_config(self):
        """Configuration is injected at construction time."""
        config = AppConfig(kimai=KimaiConfig(base_url="https://k/api", api_token="t"))
        dispatcher = create_dispatcher(config)
        assert isinstance(dispatcher.git_service, GitLogService)
        assert dispatcher.git_service.config is config.git
        assert isinstance(dispatcher.timesheet_pusher, TimesheetPusher)
        assert dispatcher.timesheet_pusher.config is config.kimai
