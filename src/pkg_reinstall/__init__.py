"""pkg-reinstall: forced package reinstall that keeps project state intact."""

# Core entry point
from pkg_reinstall.config import ReinstallConfig

# All errors (foundational)
from pkg_reinstall.errors import (
    ConfigurationError,
    DependencyRemovalError,
    InstallResolutionError,
    PackageNotFoundError,
    ReinstallError,
    SourceReadError,
    SubscriberError,
    TrackingFileError,
)
from pkg_reinstall.events import EventBus, Subscription
from pkg_reinstall.orchestrator import ReinstallOrchestrator, ReinstallSession, reinstall_package

# Project model and sources (commonly needed at top level)
from pkg_reinstall.project import (
    DiskFileRemover,
    MemoryFileRemover,
    FileProject,
    FileRemover,
    MemoryProject,
    PackageProject,
)
from pkg_reinstall.sources import (
    FilePackageSource,
    MemoryPackageSource,
    PackageSource,
    RedisPackageSource,
    open_source,
)
from pkg_reinstall.steps import InstallStep, UninstallStep

# Core types (foundational, used everywhere)
from pkg_reinstall.types import (
    FileRemovalRequest,
    PackageContent,
    PackageFile,
    PackageIdentity,
    ReferenceDescriptor,
    ReferenceKind,
    ReinstallState,
    UninstallOutcome,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ReinstallOrchestrator",
    "ReinstallSession",
    "reinstall_package",
    "ReinstallConfig",
    "EventBus",
    "Subscription",
    "InstallStep",
    "UninstallStep",
    # Types
    "PackageIdentity",
    "PackageContent",
    "PackageFile",
    "ReferenceDescriptor",
    "ReferenceKind",
    "FileRemovalRequest",
    "UninstallOutcome",
    "ReinstallState",
    # Project model
    "PackageProject",
    "MemoryProject",
    "FileProject",
    "FileRemover",
    "DiskFileRemover",
    "MemoryFileRemover",
    # Sources
    "PackageSource",
    "MemoryPackageSource",
    "FilePackageSource",
    "RedisPackageSource",
    "open_source",
    # Errors
    "ReinstallError",
    "PackageNotFoundError",
    "DependencyRemovalError",
    "InstallResolutionError",
    "SubscriberError",
    "TrackingFileError",
    "SourceReadError",
    "ConfigurationError",
]
