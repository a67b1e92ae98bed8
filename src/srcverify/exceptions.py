"""srcverify exception hierarchy.

All public exceptions inherit from SrcVerifyError, giving callers a single
base class to catch when they want to handle any verification failure
without swallowing unrelated errors.

The verification pipeline treats every ``SrcVerifyError`` raised after an
identifier has been resolved as a *domain* failure: it is recorded in the
``VerificationResult`` instead of propagating. Anything else is an internal
fault and propagates to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence


class SrcVerifyError(Exception):
    """Base exception for all srcverify errors."""


class ConfigError(SrcVerifyError):
    """Raised when a configuration file is missing or malformed."""


class MissingVersion(SrcVerifyError):
    """Raised when an operation requires a resolved ``name@version``."""


class RegistryError(SrcVerifyError):
    """Raised for non-success registry responses.

    Covers HTTP errors, timeouts, transport failures and empty or
    non-JSON bodies returned by the package registry.
    """


class NotFound(RegistryError):
    """Raised when the registry reports that a package or version does not exist."""


class SourceError(SrcVerifyError):
    """Base class for failures locating a package's source revision."""


class MissingRepository(SourceError):
    """Raised when package metadata declares no source repository."""


class UnsupportedRepositoryKind(SourceError):
    """Raised when the declared repository is not a git repository."""


class SourceFetchError(SourceError):
    """Raised when cloning or fetching the source mirror fails."""


class NoMatchingRevision(SourceError):
    """Raised when none of the candidate revisions exist in the mirror."""


class BuildError(SrcVerifyError):
    """Base class for build lifecycle failures."""


class LifecycleScriptFailure(BuildError):
    """A declared lifecycle script failed.

    Non-fatal: the builder records its message and carries on packing.
    """


class FallbackBuildFailure(BuildError):
    """The guessed build script failed, so the package cannot be rebuilt."""


class PackagingError(SrcVerifyError):
    """Raised when packing, unpacking or rewriting the manifest fails."""


class WorkspacePathError(SrcVerifyError):
    """Raised when a package name or version cannot name a workspace path."""


class DependencyResolutionError(SrcVerifyError):
    """Raised when the dependency tree tool fails or prints malformed output."""


class CommandError(SrcVerifyError):
    """Raised when an external command exits with a non-zero status.

    Attributes:
        argv: The command line that was executed.
        returncode: Process exit status (``None`` if it never finished).
        stderr: Captured standard error, possibly truncated.
    """

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int | None,
        stderr: str = "",
        message: str | None = None,
    ) -> None:
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            message = f"Command failed with exit code {returncode}: {' '.join(self.argv)}"
            tail = stderr.strip()
            if tail:
                message = f"{message}\n{tail}"
        super().__init__(message)


class CommandTimeout(CommandError):
    """Raised when an external command exceeds its wall-clock timeout."""

    def __init__(self, argv: Sequence[str], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            argv,
            None,
            message=f"Command timed out after {timeout:g}s: {' '.join(argv)}",
        )
