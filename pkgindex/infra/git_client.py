"""
Git client infrastructure for pkgindex.

Provides a clean abstraction over the git commands used to tag package
versions. All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from typing import Optional, List, Tuple
from pathlib import Path
import logging

from ..exit_codes import TagError

logger = logging.getLogger(__name__)


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        client.tag("/path/to/package", "1.2.0")
    """

    def __init__(self, timeout: int = 30, remote: str = "origin"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
            remote: Remote that tags are pushed to
        """
        self.timeout = timeout
        self.remote = remote

    def _run(self, args: List[str], cwd: str) -> Tuple[Optional[str], int, str]:
        """
        Run a git command.

        Args:
            args: Arguments after 'git'
            cwd: Working directory

        Returns:
            Tuple of (stdout, returncode, stderr)
        """
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
            output = result.stdout.strip() if result.stdout else None
            return output, result.returncode, (result.stderr or "").strip()

        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return None, -1, "timed out"
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return None, -1, str(e)

    def is_git_repo(self, path: str) -> bool:
        """Check if path is inside a git work tree."""
        if (Path(path) / ".git").exists():
            return True
        output, code, _ = self._run(["rev-parse", "--is-inside-work-tree"], cwd=path)
        return code == 0 and output == "true"

    def tag_exists(self, path: str, tag: str) -> bool:
        output, code, _ = self._run(["tag", "--list", tag], cwd=path)
        return code == 0 and bool(output)

    def tag(self, path: str, version: str, push: bool = True) -> None:
        """
        Tag HEAD with version and push the tag.

        An existing tag of the same name is deleted locally and on the
        remote first, so re-running for the same version moves the tag.

        Raises:
            TagError: if any git step fails
        """
        path = str(path)
        if not self.is_git_repo(path):
            raise TagError(version, f"{path} is not a git repository")

        if self.tag_exists(path, version):
            logger.info(f"Tag {version} exists; recreating it")
            self._check(["tag", "-d", version], path, version)
            if push:
                self._check(["push", self.remote, f":refs/tags/{version}"], path, version)

        self._check(["tag", version], path, version)
        if push:
            self._check(["push", self.remote, version], path, version)
        logger.info(f"Tagged {path} as {version}")

    def _check(self, args: List[str], path: str, version: str) -> None:
        _, code, stderr = self._run(args, cwd=path)
        if code != 0:
            raise TagError(version, f"'git {' '.join(args)}' failed: {stderr or f'exit {code}'}")
