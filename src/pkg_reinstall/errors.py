"""Error types for pkg-reinstall.

All errors inherit from ReinstallError for easy catching at the caller's level.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkg_reinstall.types import PackageIdentity


class ReinstallError(Exception):
    """Base class for all pkg-reinstall errors."""

    pass


class PackageNotFoundError(ReinstallError):
    """Raised when the target package is not installed in the project."""

    def __init__(self, identity: PackageIdentity, project_name: str | None = None) -> None:
        self.identity = identity
        self.project_name = project_name
        msg = f"Package '{identity}' is not installed"
        if project_name:
            msg += f" in project '{project_name}'"
        super().__init__(msg)


class DependencyRemovalError(ReinstallError):
    """Raised when other installed packages depend on the package being removed."""

    def __init__(
        self, identity: PackageIdentity, dependents: list[PackageIdentity]
    ) -> None:
        self.identity = identity
        self.dependents = list(dependents)
        names = ", ".join(str(d) for d in self.dependents[:5])
        msg = f"Unable to remove '{identity}' because it is required by {names}"
        if len(self.dependents) > 5:
            msg += f" (and {len(self.dependents) - 5} more)"
        super().__init__(msg)


class InstallResolutionError(ReinstallError):
    """Raised when package content cannot be resolved from the project's source."""

    def __init__(self, identity: PackageIdentity, source: str | None = None) -> None:
        self.identity = identity
        self.source = source
        msg = f"Unable to find package '{identity}'"
        if source:
            msg += f" in source {source}"
        super().__init__(msg)


class SubscriberError(ReinstallError):
    """Raised when an event handler fails during dispatch."""

    def __init__(self, event_kind: str, cause: Exception) -> None:
        self.event_kind = event_kind
        self.cause = cause
        super().__init__(f"Handler for '{event_kind}' failed: {cause}")


class TrackingFileError(ReinstallError):
    """Error reading project files (corruption, permission, deserialization)."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class SourceReadError(ReinstallError):
    """Error reading a package manifest from a source."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class ConfigurationError(ReinstallError):
    """Error in configuration (unknown keys, invalid values)."""

    pass
