"""
vcs.py - Git Adapter

Wraps the git commands the renamer needs as blocking subprocess calls.
Every call returns the exit code and combined output; callers decide what
a non-zero exit means.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging
import subprocess

logger = logging.getLogger(__name__)


@dataclass
class GitResult:
    """Result of a git invocation"""
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitAdapter:
    """Git commands run inside a working directory"""

    def __init__(self, cwd: Path, executable: str = "git"):
        self.cwd = Path(cwd)
        self.executable = executable
        self._available: Optional[bool] = None

    def _run(self, *args: str) -> GitResult:
        cmd: List[str] = [self.executable, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            # git executable missing or not runnable
            return GitResult(returncode=127, output=str(e))
        return GitResult(returncode=proc.returncode, output=(proc.stdout + proc.stderr).strip())

    def is_available(self) -> bool:
        """Whether git runs and the working directory is inside a work tree"""
        if self._available is None:
            self._available = self._run("rev-parse", "--is-inside-work-tree").ok
        return self._available

    def move(self, src: Path, dst: Path) -> GitResult:
        """git mv src dst"""
        return self._run("mv", str(src), str(dst))

    def add(self, path: Path) -> GitResult:
        """git add path"""
        return self._run("add", str(path))

    def status_short(self) -> GitResult:
        """git status --short"""
        return self._run("status", "--short")
