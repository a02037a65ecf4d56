"""Project model protocols and implementations.

A project records which packages are installed (the package-tracking file),
which references it holds, and where package content files live. It also
classifies paths: whether a given path is its package-tracking file.
"""

from __future__ import annotations

__all__ = [
    "PackageProject",
    "FileRemover",
    "DiskFileRemover",
    "MemoryFileRemover",
    "MemoryProject",
    "FileProject",
]

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import yaml

from pkg_reinstall.config import DEFAULT_TRACKING_FILE, ReinstallConfig
from pkg_reinstall.errors import TrackingFileError
from pkg_reinstall.types import (
    PackageContent,
    PackageIdentity,
    ReferenceDescriptor,
    ReferenceKind,
)

if TYPE_CHECKING:
    from pkg_reinstall.sources import PackageSource

logger = logging.getLogger(__name__)


def _same_path(a: str | Path, b: str | Path) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


def _dependents(
    packages: Iterable[PackageContent], package_id: str
) -> list[PackageIdentity]:
    """Identities of packages that declare a dependency on package_id."""
    return [
        p.identity
        for p in packages
        if p.identity.id != package_id and package_id in p.dependencies
    ]


@runtime_checkable
class FileRemover(Protocol):
    """Performs the actual deletion of a file."""

    def remove(self, path: Path) -> None:
        ...


class DiskFileRemover:
    """Deletes files from disk. Missing files are ignored."""

    def remove(self, path: Path) -> None:
        path = Path(path)
        path.unlink(missing_ok=True)
        logger.debug("Removed file: %s", path)


@runtime_checkable
class PackageProject(Protocol):
    """Protocol for the host project model used by install and uninstall steps."""

    name: str
    root: Path
    source: PackageSource

    @property
    def tracking_file(self) -> Path:
        """Path of the file recording installed packages."""
        ...

    def installed_packages(self) -> list[PackageContent]:
        ...

    def find_installed(self, identity: PackageIdentity) -> PackageContent | None:
        ...

    def dependents_of(self, package_id: str) -> list[PackageIdentity]:
        """Return installed packages that depend on package_id."""
        ...

    def record_installed(self, package: PackageContent) -> None:
        ...

    def forget_installed(self, identity: PackageIdentity) -> None:
        ...

    def references(self) -> list[ReferenceDescriptor]:
        ...

    def find_reference(self, name: str) -> ReferenceDescriptor | None:
        ...

    def add_reference(self, reference: ReferenceDescriptor) -> None:
        """Add a reference, replacing any existing reference with the same name."""
        ...

    def remove_reference(self, name: str) -> ReferenceDescriptor | None:
        ...

    def write_file(self, relative_path: str, text: str) -> Path:
        """Write a package content file into the project and return its path."""
        ...

    def is_package_tracking_file(self, path: str | Path) -> bool:
        ...

    def save(self) -> None:
        """Persist reference state changed in place (e.g. local_copy)."""
        ...


class MemoryProject:
    """In-memory project. Nothing touches the disk."""

    def __init__(
        self,
        name: str,
        source: PackageSource,
        root: Path | None = None,
        tracking_file_name: str = DEFAULT_TRACKING_FILE,
    ) -> None:
        self.name = name
        self.source = source
        self.root = Path(root) if root is not None else Path("/projects") / name
        self._tracking_file = self.root / tracking_file_name
        self._packages: dict[PackageIdentity, PackageContent] = {}
        self._references: dict[str, ReferenceDescriptor] = {}
        self.files: dict[str, str] = {}

    @property
    def tracking_file(self) -> Path:
        return self._tracking_file

    def installed_packages(self) -> list[PackageContent]:
        return list(self._packages.values())

    def find_installed(self, identity: PackageIdentity) -> PackageContent | None:
        return self._packages.get(identity)

    def dependents_of(self, package_id: str) -> list[PackageIdentity]:
        return _dependents(self._packages.values(), package_id)

    def record_installed(self, package: PackageContent) -> None:
        self._packages[package.identity] = package

    def forget_installed(self, identity: PackageIdentity) -> None:
        self._packages.pop(identity, None)

    def references(self) -> list[ReferenceDescriptor]:
        return list(self._references.values())

    def find_reference(self, name: str) -> ReferenceDescriptor | None:
        return self._references.get(name)

    def add_reference(self, reference: ReferenceDescriptor) -> None:
        self._references[reference.name] = reference

    def remove_reference(self, name: str) -> ReferenceDescriptor | None:
        return self._references.pop(name, None)

    def write_file(self, relative_path: str, text: str) -> Path:
        self.files[relative_path] = text
        return self.root / relative_path

    def is_package_tracking_file(self, path: str | Path) -> bool:
        return _same_path(path, self._tracking_file)

    def save(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<MemoryProject {self.name}: {len(self._packages)} package(s)>"


class MemoryFileRemover:
    """Deletes content files written into a MemoryProject.

    Paths outside the project root are ignored, like missing files on disk.
    """

    def __init__(self, project: MemoryProject) -> None:
        self._project = project

    def remove(self, path: Path) -> None:
        try:
            relative = Path(path).relative_to(self._project.root)
        except ValueError:
            return
        if self._project.files.pop(relative.as_posix(), None) is not None:
            logger.debug("Removed file: %s", path)


class FileProject:
    """Project stored in a directory.

    Layout:
        {root}/{tracking_file_name} - installed package records (YAML list)
        {root}/{project_file_name}  - references and their local-copy flags (YAML)
        {root}/<content files>      - files written by installed packages
    """

    def __init__(
        self,
        root: Path,
        source: PackageSource,
        config: ReinstallConfig | None = None,
    ) -> None:
        """Initialize file project.

        Args:
            root: Project directory.
            source: Package source used by installs.
            config: File naming configuration. Defaults to ReinstallConfig().

        Raises:
            TrackingFileError: If an existing project file cannot be parsed.
        """
        config = config or ReinstallConfig()
        self.root = Path(root) if isinstance(root, str) else root
        self.name = self.root.name
        self.source = source
        self._tracking_file = self.root / config.tracking_file_name
        self._project_file = self.root / config.project_file_name
        self._packages: dict[PackageIdentity, PackageContent] = {}
        self._references: dict[str, ReferenceDescriptor] = {}
        self._load()

    @property
    def tracking_file(self) -> Path:
        return self._tracking_file

    def _read_yaml(self, path: Path) -> Any:
        try:
            return yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise TrackingFileError(f"Failed to parse {path}: {e}", path=str(path)) from e
        except OSError as e:
            raise TrackingFileError(f"Failed to read {path}: {e}", path=str(path)) from e

    def _load(self) -> None:
        """Load packages and references if the files exist."""
        if self._tracking_file.exists():
            entries = self._read_yaml(self._tracking_file) or []
            try:
                for entry in entries:
                    package = PackageContent.from_dict(entry)
                    self._packages[package.identity] = package
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise TrackingFileError(
                    f"Invalid package record in {self._tracking_file}: {e}",
                    path=str(self._tracking_file),
                ) from e

        if self._project_file.exists():
            data = self._read_yaml(self._project_file) or {}
            try:
                for entry in data.get("references", []):
                    reference = ReferenceDescriptor(
                        kind=ReferenceKind(entry.get("kind", "assembly")),
                        name=str(entry["name"]),
                        local_copy=bool(entry.get("local_copy", True)),
                    )
                    self._references[reference.name] = reference
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise TrackingFileError(
                    f"Invalid reference in {self._project_file}: {e}",
                    path=str(self._project_file),
                ) from e

    def _save_packages(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        entries = [p.to_dict(include_text=False) for p in self._packages.values()]
        self._tracking_file.write_text(yaml.safe_dump(entries, sort_keys=False))

    def _save_references(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        data = {
            "name": self.name,
            "references": [
                {"kind": r.kind.value, "name": r.name, "local_copy": r.local_copy}
                for r in self._references.values()
            ],
        }
        self._project_file.write_text(yaml.safe_dump(data, sort_keys=False))

    def installed_packages(self) -> list[PackageContent]:
        return list(self._packages.values())

    def find_installed(self, identity: PackageIdentity) -> PackageContent | None:
        return self._packages.get(identity)

    def dependents_of(self, package_id: str) -> list[PackageIdentity]:
        return _dependents(self._packages.values(), package_id)

    def record_installed(self, package: PackageContent) -> None:
        self._packages[package.identity] = package
        self._save_packages()

    def forget_installed(self, identity: PackageIdentity) -> None:
        if self._packages.pop(identity, None) is not None:
            self._save_packages()

    def references(self) -> list[ReferenceDescriptor]:
        return list(self._references.values())

    def find_reference(self, name: str) -> ReferenceDescriptor | None:
        return self._references.get(name)

    def add_reference(self, reference: ReferenceDescriptor) -> None:
        self._references[reference.name] = reference
        self._save_references()

    def remove_reference(self, name: str) -> ReferenceDescriptor | None:
        reference = self._references.pop(name, None)
        if reference is not None:
            self._save_references()
        return reference

    def save(self) -> None:
        """Persist current reference flags.

        References are mutable; call this after changing local_copy on a
        reference that is already part of the project.
        """
        self._save_references()

    def write_file(self, relative_path: str, text: str) -> Path:
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path

    def is_package_tracking_file(self, path: str | Path) -> bool:
        return _same_path(path, self._tracking_file)

    def __repr__(self) -> str:
        return f"<FileProject {self.root}: {len(self._packages)} package(s)>"
