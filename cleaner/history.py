"""Version-control history lookups.

Commit timestamps per file come from `git log`. Any failure (no git, not
a repository, untracked file) is treated as "no history".
"""

import subprocess
import time
from pathlib import Path

import structlog

logger = structlog.get_logger()

SECONDS_PER_DAY = 86400


class GitHistory:
    """Commit timestamps for files under a repository root.

    Results are cached per path for the lifetime of the instance, which is
    one run.
    """

    def __init__(self, root_dir: str | Path, git_executable: str = "git"):
        self.root_dir = Path(root_dir)
        self.git_executable = git_executable
        self._cache: dict[str, list[int]] = {}
        self._logger = logger.bind(component="GitHistory")

    def commit_timestamps(self, relative_path: str) -> list[int]:
        """Unix timestamps of every commit touching a file, newest first."""
        if relative_path in self._cache:
            return self._cache[relative_path]

        timestamps: list[int] = []
        try:
            completed = subprocess.run(
                [self.git_executable, "log", "--follow", "--format=%ct", "--", relative_path],
                cwd=self.root_dir,
                capture_output=True,
                text=True,
                check=True,
            )
            timestamps = [int(line) for line in completed.stdout.split() if line.strip()]
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            self._logger.debug("No history available", path=relative_path, error=str(e))

        self._cache[relative_path] = timestamps
        return timestamps


def days_since(timestamp: int, now: float | None = None) -> float:
    """Days elapsed since a unix timestamp."""
    now = time.time() if now is None else now
    return max(0.0, (now - timestamp) / SECONDS_PER_DAY)
