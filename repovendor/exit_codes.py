"""
Standard exit codes and error types for repovendor commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Repository could not be resolved
DATA_ERROR = 70          # Data format or validation error
PARTIAL_SUCCESS = 71     # Some operations succeeded, some failed
ALREADY_VENDORED = 72    # Requested import path is already vendored
CHECKOUT_ERROR = 73      # VCS checkout failed
NOT_FOUND = 74           # Manifest or dependency not found
INTERNAL_ERROR = 75      # Invariant violated inside repovendor
FILESYSTEM_ERROR = 76    # Copy or remove in the vendor tree failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class UserInputError(CommandError):
    """Raised for conflicting flags or missing arguments."""
    def __init__(self, message: str):
        super().__init__(message, USAGE_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class AlreadyVendoredError(CommandError):
    """Raised when a root-level fetch targets a path the manifest already covers."""
    def __init__(self, import_path: str, vendored_as: Optional[str] = None):
        if vendored_as and vendored_as != import_path:
            message = f"{import_path} is already vendored (as part of {vendored_as})"
        else:
            message = f"{import_path} is already vendored"
        super().__init__(message, ALREADY_VENDORED)
        self.import_path = import_path
        self.vendored_as = vendored_as or import_path


class RepositoryResolutionError(CommandError):
    """Raised when the VCS kind or repository URL cannot be deduced."""
    def __init__(self, message: str, import_path: Optional[str] = None):
        super().__init__(message, NETWORK_ERROR)
        self.import_path = import_path


class CheckoutError(CommandError):
    """Raised when a VCS command fails while producing a working copy."""
    def __init__(self, message: str):
        super().__init__(message, CHECKOUT_ERROR)


class ManifestError(CommandError):
    """Base class for manifest load and mutation failures."""


class ManifestNotFoundError(ManifestError):
    """Raised when the manifest file does not exist."""
    def __init__(self, path: str):
        super().__init__(f"manifest not found: {path}", NOT_FOUND)
        self.path = path


class ManifestCorruptError(ManifestError):
    """Raised when the manifest file cannot be decoded."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"manifest {path} is corrupt: {reason}", DATA_ERROR)
        self.path = path


class DependencyConflictError(ManifestError):
    """Raised when adding a dependency would break the non-overlap invariant."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class DependencyNotFoundError(ManifestError):
    """Raised when no dependency matches an import path."""
    def __init__(self, import_path: str):
        super().__init__(f"dependency {import_path!r} not found in manifest", NOT_FOUND)
        self.import_path = import_path


class ManifestConsistencyError(CommandError):
    """Raised when the fetcher produces a dependency the manifest rejects."""
    def __init__(self, message: str):
        super().__init__(message, INTERNAL_ERROR)


class DerivationError(CommandError):
    """Raised when a dependency's subpath is not a suffix of its import path."""
    def __init__(self, import_path: str, subpath: str):
        super().__init__(
            f"unable to derive the root repo import path of {import_path!r} "
            f"from subpath {subpath!r}",
            INTERNAL_ERROR,
        )


class FilesystemError(CommandError):
    """Raised when staging or removing files in the vendor tree fails."""
    def __init__(self, message: str):
        super().__init__(message, FILESYSTEM_ERROR)


class ImportScanError(CommandError):
    """Raised when a source file's import block cannot be parsed."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class DependencyFetchError(CommandError):
    """
    A failure inside a recursive fetch, tagged with the import path that failed.

    Wrapping happens once: an error that is already a DependencyFetchError is
    propagated unchanged by the levels above it.
    """
    def __init__(self, import_path: str, cause: Exception):
        super().__init__(
            f"{import_path}: {cause}",
            get_exit_code_for_exception(cause),
        )
        self.import_path = import_path
        self.cause = cause


class PartialSuccessError(CommandError):
    """Raised when some operations succeed and some fail."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed
