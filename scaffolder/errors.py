"""
Scaffolder error taxonomy.

Every failure the engine reports to the command-line front end derives from
ScaffolderError, so the top-level flow can turn it into a diagnostic instead
of a traceback.
"""


class ScaffolderError(Exception):
    """Base exception for scaffolder errors."""

    pass


class ConfigError(ScaffolderError):
    """Raised when persisted configuration is invalid."""

    pass


class RemoteUnavailable(ScaffolderError):
    """Raised when the hosting service cannot be reached or answers with an error."""

    pass


class RateLimited(ScaffolderError):
    """Raised when the hosting service keeps signaling quota exhaustion."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class RepositoryNotFound(ScaffolderError):
    """Raised when a repository or owner does not exist."""

    pass


class BranchNotFound(RepositoryNotFound):
    """Raised when the default branch of a repository does not exist."""

    pass


class PluginNotFound(ScaffolderError):
    """Raised when no plugin can be selected from the catalog."""

    pass


class DownloadFailed(ScaffolderError):
    """Raised when an archive snapshot cannot be downloaded."""

    pass


class ExtractionError(ScaffolderError):
    """Raised when an archive is corrupt or tries to escape its destination."""

    pass


class CacheError(ScaffolderError):
    """Raised when a cache entry cannot be evicted or marked."""

    pass


class FilesystemPermissionDenied(CacheError):
    """Raised when a cache root is not readable and writable."""

    pass


class InstallFailed(ScaffolderError):
    """Raised when the dependency install command exits with a non-zero code."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class SpawnError(InstallFailed):
    """Raised when the dependency install command cannot be started."""

    pass


class NoSubModulesAvailable(ScaffolderError):
    """Raised when a plugin exposes no visible sub-modules."""

    pass


class SubcommandNotFound(ScaffolderError):
    """Raised when a requested subcommand does not match exactly one sub-module."""

    pass
