"""
Standard exit codes and error types for pkgindex commands.

Following Unix/POSIX conventions for command-line tools: every verb
exits 0 on full success and 1 when any constituent package or pipeline
failed. Usage errors are reported by click with 2.
"""
from typing import Iterable, Optional, Sequence

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors, including any failed package
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message)


class SpecInvalid(CommandError):
    """Raised when a package specification is absent or malformed."""
    def __init__(self, location: str, reason: str):
        super().__init__(f"Invalid package specification in {location}: {reason}")
        self.location = location
        self.reason = reason


class DuplicateVersion(CommandError):
    """Raised when an identity is already present in the index."""
    def __init__(self, identity: str):
        super().__init__(f"{identity} is already in the index")
        self.identity = identity


class PackageNotFound(CommandError):
    """Raised when a package name is not present in the index."""
    def __init__(self, name: str):
        super().__init__(f"No package named '{name}' in the index")
        self.name = name


class TagError(CommandError):
    """Raised when tagging or pushing a version tag fails."""
    def __init__(self, tag: str, detail: str = ""):
        message = f"Could not tag version {tag}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.tag = tag


class PipelineStepFailed(CommandError):
    """Raised when a release pipeline step exits non-zero."""
    def __init__(self, package_id: str, step: str, returncode: int):
        super().__init__(f"{package_id}: {step} failed with exit code {returncode}")
        self.package_id = package_id
        self.step = step
        self.returncode = returncode


class MalformedStatsRow(CommandError):
    """Raised when a statistics file does not have the expected shape."""
    def __init__(self, source: str, detail: str):
        super().__init__(f"Malformed statistics in {source}: {detail}")
        self.source = source


class CompensationFailed(CommandError):
    """
    Raised when rolling back a failed admission did not complete.

    The index may now be inconsistent; `failed_parts` names each
    compensation step that did not finish so an operator can repair it.
    """
    def __init__(self, package_id: str, failed_parts: Sequence[str],
                 cause: Optional[Exception] = None):
        parts = ", ".join(failed_parts)
        super().__init__(
            f"Rollback of {package_id} incomplete ({parts}); "
            "the index needs manual repair"
        )
        self.package_id = package_id
        self.failed_parts = tuple(failed_parts)
        self.cause = cause


class PartialSuccessError(CommandError):
    """Raised when some packages succeed and some fail."""
    def __init__(self, failed: Iterable[str], succeeded: int = 0):
        failed = list(failed)
        super().__init__(f"{len(failed)} package(s) failed: {', '.join(failed)}")
        self.failed = failed
        self.succeeded = succeeded
