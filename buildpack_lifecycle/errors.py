"""
Error taxonomy for the buildpack lifecycle.

Every failure the builder or launcher can report is a LifecycleError
subclass. Each class carries the process exit code the CLI uses when the
error aborts a run, so callers never need a lookup table of their own.

Exit codes:
    1   argument, validation and unexpected failures
    3   runtime environment assembly (platform options, secret store)
    4   process replacement failure
    222 detect failed
    223 compile/finalize failed
    224 release failed or emitted invalid output
    225 every supply buildpack failed
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base exception for lifecycle errors."""

    exit_code: int = 1

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


# =============================================================================
# Invocation
# =============================================================================


class ConfigError(LifecycleError):
    """Raised when invocation parameters are missing or invalid."""


class UsageError(LifecycleError):
    """Raised when the launcher receives too few positional arguments."""


# =============================================================================
# Builder
# =============================================================================


class AcquireError(LifecycleError):
    """Raised when a remote buildpack cannot be downloaded or cloned."""

    def __init__(self, ref: str, cause: BaseException | None = None):
        super().__init__(f"Failed to acquire buildpack '{ref}'", cause=cause)
        self.ref = ref


class MalformedLayout(LifecycleError):
    """Raised when a buildpack directory does not contain a bin/ dir."""

    def __init__(self, ref: str, path: str = ""):
        message = f"malformed buildpack does not contain a /bin dir: {ref}"
        super().__init__(message)
        self.ref = ref
        self.path = path


class DetectFailed(LifecycleError):
    """Raised when no buildpack's detect hook succeeds."""

    exit_code = 222

    def __init__(self, message: str = "None of the buildpacks detected a compatible application", **kwargs):
        super().__init__(message, **kwargs)


class CompileFailed(LifecycleError):
    """Raised when the final buildpack's compile or finalize hook fails."""

    exit_code = 223

    def __init__(self, message: str = "Failed to compile droplet", **kwargs):
        super().__init__(message, **kwargs)


class ReleaseFailed(LifecycleError):
    """Raised when the release hook exits nonzero."""

    exit_code = 224

    def __init__(self, message: str = "Failed to build droplet release", **kwargs):
        super().__init__(message, **kwargs)


class ReleaseInvalid(ReleaseFailed):
    """Raised when the release hook's output cannot be parsed."""

    def __init__(self, message: str = "buildpack's release output invalid", **kwargs):
        super().__init__(message, **kwargs)


class SupplyFailed(LifecycleError):
    """Raised when every supply buildpack failed."""

    exit_code = 225

    def __init__(self, message: str = "Failed to run all supply scripts", **kwargs):
        super().__init__(message, **kwargs)


class ProcfileInvalid(LifecycleError):
    """Raised when a Procfile exists but is not a process mapping."""

    def __init__(self, message: str = "Failed to read command from Procfile", **kwargs):
        super().__init__(message, **kwargs)


class AssembleError(LifecycleError):
    """Raised on filesystem or archive failures while building the droplet."""


# =============================================================================
# Launcher
# =============================================================================


class StagingInfoError(LifecycleError):
    """Raised when staging_info.yml exists but cannot be parsed."""


class NoStartCommandError(LifecycleError):
    """Raised when neither the caller nor the droplet supplies a start command."""

    def __init__(self, message: str = "no start command specified or detected in droplet", **kwargs):
        super().__init__(message, **kwargs)


class EnvironmentAssemblyError(LifecycleError):
    """Raised when the runtime environment cannot be computed."""

    exit_code = 3


class ClientConfigError(EnvironmentAssemblyError):
    """Raised when the secret-store client lacks its mTLS materials."""

    def __init__(self, message: str, **kwargs):
        super().__init__(f"Unable to set up credhub client: {message}", **kwargs)


class InterpolationError(EnvironmentAssemblyError):
    """Raised when the secret store cannot interpolate service bindings."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.retryable = retryable

    def __str__(self) -> str:
        text = super().__str__()
        if self.status_code:
            text = f"{text} (status={self.status_code})"
        return text


class ExecError(LifecycleError):
    """Raised when the start command cannot replace the launcher process."""

    exit_code = 4


def exit_code_for(exc: BaseException) -> int:
    """Exit code for an exception that aborted a run."""
    if isinstance(exc, LifecycleError):
        return exc.exit_code
    return 1
