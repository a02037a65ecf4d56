"""Core type definitions for pkg-reinstall."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from packaging.version import Version


@dataclass(frozen=True)
class PackageIdentity:
    """A package id paired with an exact version.

    Two identities with the same id and version are interchangeable.
    Versions are parsed with packaging, so four-part versions such as
    ``1.2.3.4`` are accepted.
    """

    id: str
    version: Version

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("Invalid package id: empty or whitespace-only")
        if not isinstance(self.version, Version):
            object.__setattr__(self, "version", Version(str(self.version)))

    @classmethod
    def parse(cls, package_id: str, version: str | Version) -> PackageIdentity:
        """Create an identity from an id and a version string."""
        return cls(package_id, version if isinstance(version, Version) else Version(version))

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


class ReferenceKind(Enum):
    """Kind of project reference."""

    ASSEMBLY = "assembly"
    PROJECT = "project"
    PACKAGE = "package"


@dataclass(eq=False)
class ReferenceDescriptor:
    """A reference held by a project.

    Instances are owned by the project model. Matching across an uninstall
    and a later install is done by name, never by object identity.
    """

    kind: ReferenceKind
    name: str
    local_copy: bool = True

    def __repr__(self) -> str:
        return (
            f"ReferenceDescriptor(kind={self.kind.value}, name={self.name!r}, "
            f"local_copy={self.local_copy})"
        )


@dataclass(frozen=True)
class FileRemovalRequest:
    """Payload of a cancellable file-removing notification."""

    path: Path


@dataclass
class UninstallOutcome:
    """Local-copy flags of references observed removed during an uninstall.

    Keyed by reference name; consumed once by the following install.
    """

    removed_references: dict[str, bool] = field(default_factory=dict)

    def record(self, reference: ReferenceDescriptor) -> None:
        self.removed_references[reference.name] = reference.local_copy

    def local_copy_for(self, name: str) -> bool | None:
        return self.removed_references.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.removed_references

    def __len__(self) -> int:
        return len(self.removed_references)


@dataclass(frozen=True)
class PackageFile:
    """A content file shipped by a package, relative to the project root."""

    path: str
    text: str = ""


@dataclass(frozen=True)
class PackageContent:
    """Resolved content of a single package.

    Contains everything the install and uninstall steps need:
    - dependencies: ids of packages this package requires
    - references: assembly names added to the project
    - files: content files copied into the project
    - readme: optional project-relative path of a readme to display
    """

    identity: PackageIdentity
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    references: tuple[str, ...] = field(default_factory=tuple)
    files: tuple[PackageFile, ...] = field(default_factory=tuple)
    readme: str | None = None

    def to_dict(self, include_text: bool = True) -> dict[str, Any]:
        """Convert to a manifest dict.

        With include_text=False the files are written as a plain list of
        paths, which is what the project tracking file stores.
        """
        result: dict[str, Any] = {
            "id": self.identity.id,
            "version": str(self.identity.version),
        }

        if self.dependencies:
            result["dependencies"] = list(self.dependencies)

        if self.references:
            result["references"] = list(self.references)

        if self.files:
            if include_text:
                result["files"] = {f.path: f.text for f in self.files}
            else:
                result["files"] = [f.path for f in self.files]

        if self.readme:
            result["readme"] = self.readme

        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageContent:
        """Create PackageContent from a manifest dict.

        Raises:
            KeyError: If id or version is missing.
            ValueError: If id or version is invalid.
        """
        raw_files = data.get("files") or {}
        if isinstance(raw_files, dict):
            files = tuple(PackageFile(str(p), str(t or "")) for p, t in raw_files.items())
        else:
            files = tuple(PackageFile(str(p)) for p in raw_files)

        return cls(
            identity=PackageIdentity.parse(str(data["id"]), str(data["version"])),
            dependencies=tuple(str(d) for d in data.get("dependencies") or ()),
            references=tuple(str(r) for r in data.get("references") or ()),
            files=files,
            readme=data.get("readme"),
        )


class ReinstallState(Enum):
    """Lifecycle of a single reinstall execution."""

    IDLE = "idle"
    UNINSTALL_RUNNING = "uninstall_running"
    INSTALL_RUNNING = "install_running"
    COMPLETE = "complete"
    FAILED = "failed"
