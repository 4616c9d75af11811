"""
Package manager client for pkgindex.

All checkout/install/test/uninstall work is delegated to an external
package-manager executable. This client builds its command lines and
runs them, making them:
- Easy to mock for testing
- Consistent in error handling and logging
- Deterministic: every call carries the same override definitions

Command contract of the external tool:

    <tool> checkout <name> <version> --dir <dest>   [--define K=V ...]
    <tool> install --bin-dir <bin>                  [--define K=V ...]
    <tool> test [--stats-file <file>]               [--define K=V ...]
    <tool> uninstall <name>                         [--define K=V ...]
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
import logging

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = -1
NOT_EXECUTABLE_EXIT_CODE = 126
NOT_FOUND_EXIT_CODE = 127


class PackageManagerClient:
    """
    Abstraction over the external package-manager command.

    Example:
        client = PackageManagerClient("pkgtool", overrides=(("prefix", "/opt/pkg"),))
        code = client.checkout("parser-kit", "1.2.0", Path("/tmp/work/src"))
    """

    def __init__(
        self,
        command: str = "pkgtool",
        overrides: Sequence[Tuple[str, str]] = (),
        timeout: Optional[int] = None,
    ):
        """
        Initialize PackageManagerClient.

        Args:
            command: Executable to invoke
            overrides: Key/value definitions appended to every invocation
            timeout: Per-command timeout in seconds (None waits forever)
        """
        self.command = command
        self.overrides = tuple(overrides)
        self.timeout = timeout

    def override_args(self) -> List[str]:
        args = []
        for key, value in self.overrides:
            args.extend(["--define", f"{key}={value}"])
        return args

    def run(self, verb: str, args: Sequence[str] = (), cwd: Optional[Union[str, Path]] = None) -> int:
        """
        Run one package-manager verb.

        Args:
            verb: Sub-command (checkout, install, test, uninstall)
            args: Arguments after the verb
            cwd: Working directory

        Returns:
            Exit code of the command; TIMEOUT_EXIT_CODE on timeout,
            NOT_FOUND_EXIT_CODE or NOT_EXECUTABLE_EXIT_CODE when it cannot start
        """
        cmd = [self.command, verb, *args, *self.override_args()]
        cmd_str = ' '.join(cmd)
        logger.debug(f"Running command in '{cwd or '.'}': {cmd_str}")

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {self.timeout}s: {cmd_str}")
            return TIMEOUT_EXIT_CODE
        except FileNotFoundError:
            logger.error(f"Package manager not found: {self.command}")
            return NOT_FOUND_EXIT_CODE
        except OSError as e:
            logger.error(f"Could not run {self.command}: {e}")
            return NOT_EXECUTABLE_EXIT_CODE

        if result.stdout and result.stdout.strip():
            logger.debug(result.stdout.strip())

        # Log stderr only if the command failed
        if result.returncode != 0:
            logger.error(f"Command failed with exit code {result.returncode}: {cmd_str}")
            if result.stderr and result.stderr.strip():
                logger.error(result.stderr.strip())

        return result.returncode

    def checkout(self, name: str, version: str, dest: Path) -> int:
        return self.run("checkout", [name, version, "--dir", str(dest)], cwd=dest.parent)

    def install(self, source: Path, bin_dir: Path) -> int:
        return self.run("install", ["--bin-dir", str(bin_dir)], cwd=source)

    def test(self, source: Path, stats_file: Optional[Path] = None) -> int:
        args = ["--stats-file", str(stats_file)] if stats_file else []
        return self.run("test", args, cwd=source)

    def uninstall(self, source: Path, name: str) -> int:
        return self.run("uninstall", [name], cwd=source)
