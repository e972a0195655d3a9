"""Commit history queries backed by the git command line."""

import logging
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ..config import GitConfig
from ..domain.models import CommitRecord, LogQueryRequest
from ..errors import CommandExecutionFailure, GitLogError, NotAGitRepository, OutputTooLarge

logger = logging.getLogger(__name__)

FIELD_DELIMITER = "|"
LOG_FORMAT = FIELD_DELIMITER.join(["%H", "%an", "%ae", "%ad", "%s"])
RULE = "─" * 40
READ_CHUNK_SIZE = 64 * 1024


def _targets_branch(branch: Optional[str]) -> bool:
    return bool(branch) and branch != "HEAD"


def build_log_command(request: LogQueryRequest, branch: Optional[str] = None) -> str:
    """Build the git log command line for a request.

    This is the human-readable form used in logs and errors; execution uses
    the argument vector from ``build_log_args``.

    Args:
        request: Log query request
        branch: Branch to query; empty or "HEAD" means the checked-out branch

    Returns:
        Command string, identical for identical inputs
    """
    if not _targets_branch(branch):
        command = f'git log --oneline -n {request.number} --pretty=format:"{LOG_FORMAT}"'
    else:
        command = f'git log {branch} --oneline -n {request.number} --pretty=format:"{LOG_FORMAT}"'

    if request.author:
        command += f' --author="{request.author}"'
    if request.since:
        command += f' --since="{request.since}"'
    if request.until:
        command += f' --until="{request.until}"'

    return command


def build_log_args(request: LogQueryRequest, branch: Optional[str] = None) -> list[str]:
    """Build the argument vector that is actually executed.

    Every user-supplied value is one element, and the branch comes after
    ``--end-of-options``, so no value can add or split git options.
    """
    args = ["git", "log", "--oneline", "-n", str(request.number), f"--pretty=format:{LOG_FORMAT}"]

    if request.author:
        args.append(f"--author={request.author}")
    if request.since:
        args.append(f"--since={request.since}")
    if request.until:
        args.append(f"--until={request.until}")

    if _targets_branch(branch):
        args += ["--end-of-options", branch]

    return args


def parse_log_output(output: str) -> tuple[list[CommitRecord], int]:
    """Split git log output into commit records.

    The subject is the last field, so a delimiter inside it is kept as part
    of the message. Lines with fewer than five fields are skipped.

    Returns:
        Tuple of (commits, number of malformed lines skipped)
    """
    commits: list[CommitRecord] = []
    malformed = 0

    for line in output.strip().splitlines():
        if not line.strip():
            continue
        parts = line.split(FIELD_DELIMITER, 4)
        if len(parts) < 5:
            logger.warning(f"Skipping malformed git log line: {line!r}")
            malformed += 1
            continue
        commits.append(CommitRecord(*parts))

    return commits, malformed


def format_commits(commits: list[CommitRecord], detailed: bool = False) -> str:
    """Render commits as text blocks for the LLM."""
    blocks = []
    for commit in commits:
        lines = []
        if detailed:
            lines.append(f"Commit: {commit.hash}")
            lines.append(f"Author: {commit.author_name} <{commit.author_email}>")
        lines.append(f"Date: {commit.date}")
        lines.append(f"Message: {commit.message}")
        lines.append(RULE)
        blocks.append("\n".join(lines) + "\n")
    return "\n".join(blocks)


class GitLogService:
    """Runs read-only git log queries against local repositories."""

    def __init__(self, config: Optional[GitConfig] = None) -> None:
        """Initialize service.

        Args:
            config: Subprocess timeout and output ceiling
        """
        self.config = config or GitConfig()

    def get_log(self, request: LogQueryRequest) -> str:
        """Query commit history and return the formatted report.

        Args:
            request: Validated log query request

        Returns:
            Report text with one section per requested branch

        Raises:
            GitLogError: On any failure, carrying the original message
        """
        try:
            self._validate_repo(request.repo_path)

            response = ""
            if request.branches:
                for branch in request.branches:
                    result = self._get_and_format_logs(request, branch)
                    response += f"\n=== Branch: {branch} ===\n{result}"
            else:
                response += self._get_and_format_logs(request, request.branch)

            return f"Git log for {request.repo_path} :\n\n{response}"
        except GitLogError:
            raise
        except Exception as e:
            raise GitLogError(str(e)) from e

    def _validate_repo(self, repo_path: str) -> None:
        # .git is a directory in normal clones and a file in worktrees
        if not (Path(repo_path) / ".git").exists():
            raise NotAGitRepository(repo_path)

    def _get_and_format_logs(self, request: LogQueryRequest, branch: Optional[str]) -> str:
        command = build_log_command(request, branch)
        output = self._run(build_log_args(request, branch), command, request.repo_path)
        commits, malformed = parse_log_output(output)
        logger.debug(f"git log returned {len(commits)} commits ({malformed} malformed lines)")

        if not commits:
            text = "No commits found.\n"
        else:
            text = format_commits(commits, request.detailed)
        if malformed:
            text += f"\n(skipped {malformed} malformed line(s))\n"
        return text

    def _run(self, args: list[str], command: str, cwd: str) -> str:
        """Execute git without a shell and return its stdout.

        stdout is read in chunks and the process is killed as soon as it
        passes the output ceiling or the timeout.
        """
        limit = self.config.max_output_bytes
        logger.debug(f"Running {command} in {cwd}")

        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(
                    args, cwd=cwd, stdout=subprocess.PIPE, stderr=stderr_file
                )
            except FileNotFoundError as e:
                raise CommandExecutionFailure(f"git executable not found: {e}") from e
            except OSError as e:
                raise CommandExecutionFailure(f"Failed to run {command}: {e}") from e

            timed_out = threading.Event()

            def _kill_on_timeout() -> None:
                timed_out.set()
                process.kill()

            timer = threading.Timer(self.config.timeout, _kill_on_timeout)
            timer.start()
            chunks: list[bytes] = []
            size = 0
            try:
                while True:
                    chunk = process.stdout.read(READ_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > limit:
                        raise OutputTooLarge(size, limit)
                    chunks.append(chunk)
                returncode = process.wait()
            finally:
                timer.cancel()
                if process.poll() is None:
                    process.kill()
                    process.wait()
                process.stdout.close()

            if timed_out.is_set():
                raise CommandExecutionFailure(
                    f"Command timed out after {self.config.timeout}s: {command}"
                )

            if returncode != 0:
                stderr_file.seek(0)
                stderr = stderr_file.read().decode("utf-8", errors="replace").strip()
                raise CommandExecutionFailure(
                    f"Command failed: {command}\n{stderr or f'exit code {returncode}'}"
                )

        return b"".join(chunks).decode("utf-8", errors="replace")
