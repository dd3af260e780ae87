"""Git command runner interface.

Everything the preprocessor knows about the repository comes from running
the git executable. The runner is a narrow seam so the parsing logic can be
tested against canned output:

1. ``run(args, cwd)`` invokes git with an argument list in a directory
2. Zero exit status returns the trimmed stdout
3. Launch failures raise ``GitUnavailableError``
4. Non-zero exit raises ``GitCommandFailedError``
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


class GitUnavailableError(Exception):
    """Raised when the git executable cannot be launched."""

    def __init__(self, executable: str, message: str | None = None) -> None:
        self.executable = executable
        self.message = message or f"Git not available: {executable}"
        super().__init__(self.message)


class GitCommandFailedError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(
        self,
        args: Sequence[str],
        exit_code: int,
        stderr: str | None = None,
    ) -> None:
        self.args_list = list(args)
        self.exit_code = exit_code
        self.stderr = stderr
        full_message = f"Git command failed: git {' '.join(self.args_list)} (exit code: {exit_code})"
        if stderr:
            full_message += f" - {stderr.strip()}"
        super().__init__(full_message)


GitError = (GitUnavailableError, GitCommandFailedError)


class GitRunner(ABC):
    """Abstract interface for running git commands."""

    @abstractmethod
    def run(self, args: Sequence[str], cwd: Path) -> str:
        """Run git with ``args`` in ``cwd``.

        Args:
            args: Arguments after the executable (e.g. ["rev-parse", "HEAD"])
            cwd: Working directory

        Returns:
            Trimmed standard output

        Raises:
            GitUnavailableError: If git cannot be launched
            GitCommandFailedError: If git exits with a non-zero status
        """
        pass

    def try_run(self, args: Sequence[str], cwd: Path) -> str:
        """Run git, returning an empty string on any git failure."""
        try:
            return self.run(args, cwd)
        except GitError as e:
            logger.debug("%s", e)
            return ""

    def check_available(self, cwd: Path | None = None) -> bool:
        """Return True if ``git --version`` runs."""
        try:
            self.run(["--version"], cwd or Path.cwd())
            return True
        except GitError:
            return False

    def get_version(self, cwd: Path | None = None) -> str | None:
        """Return the git version string, if git is available."""
        try:
            output = self.run(["--version"], cwd or Path.cwd())
        except GitError:
            return None
        # "git version 2.43.0"
        parts = output.split()
        return parts[-1] if parts else None


class SubprocessGitRunner(GitRunner):
    """Runs the real git executable.

    There is no timeout: a hung git process hangs the build.
    """

    def __init__(self, executable: str = "git") -> None:
        """Initialize the runner.

        Args:
            executable: git binary name or path
        """
        self.executable = executable

    def run(self, args: Sequence[str], cwd: Path) -> str:
        try:
            result = subprocess.run(
                [self.executable, *args],
                capture_output=True,
                cwd=cwd,
            )
        except (FileNotFoundError, OSError) as e:
            raise GitUnavailableError(self.executable, f"Git command failed to launch: {e}") from e

        if result.returncode != 0:
            raise GitCommandFailedError(
                args,
                result.returncode,
                result.stderr.decode("utf-8", errors="replace"),
            )

        return result.stdout.decode("utf-8", errors="replace").strip()

