"""InstallStep for adding a package to a project."""

from __future__ import annotations

__all__ = ["InstallStep"]

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from pkg_reinstall.errors import InstallResolutionError
from pkg_reinstall.types import ReferenceDescriptor, ReferenceKind

if TYPE_CHECKING:
    from pkg_reinstall.events import EventBus
    from pkg_reinstall.project import PackageProject
    from pkg_reinstall.types import PackageContent, PackageIdentity

logger = logging.getLogger(__name__)

ReadmeViewer = Callable[[Path], None]


def _log_readme(path: Path) -> None:
    logger.info("Package readme available: %s", path)


class InstallStep:
    """Resolves a package from the project's source and adds it to the project.

    New assembly references are created with local_copy=True. Each one is
    announced on the event bus after it has been added.
    """

    def __init__(self, events: EventBus, readme_viewer: ReadmeViewer | None = None) -> None:
        self._events = events
        self._readme_viewer = readme_viewer or _log_readme
        self.executed = False
        self.preserve_local_copy_references = False
        self.skip_readme_display = False
        self.readme_opened: Path | None = None
        self.package: PackageContent | None = None

    def execute(
        self,
        project: PackageProject,
        identity: PackageIdentity,
        preserve_local_copy_references: bool = False,
        skip_readme_display: bool = False,
    ) -> PackageContent:
        """Install identity into project.

        Args:
            project: Project to install into.
            identity: Package to install.
            preserve_local_copy_references: The caller manages local_copy flags.
                When False, an existing reference with the same name keeps its
                flag on the new reference.
            skip_readme_display: Do not open the package readme.

        Returns:
            The installed package content.

        Raises:
            InstallResolutionError: If the source has no such package.
        """
        self.preserve_local_copy_references = preserve_local_copy_references
        self.skip_readme_display = skip_readme_display

        package = project.source.find(identity)
        if package is None:
            raise InstallResolutionError(identity, repr(project.source))
        self.package = package

        logger.info("Installing %s into %s", identity, project.name)

        for package_file in package.files:
            project.write_file(package_file.path, package_file.text)

        project.record_installed(package)

        for name in package.references:
            reference = ReferenceDescriptor(ReferenceKind.ASSEMBLY, name)
            if not preserve_local_copy_references:
                existing = project.find_reference(name)
                if existing is not None:
                    reference.local_copy = existing.local_copy
            project.add_reference(reference)
            self._events.notify_reference_adding(reference)

        # Handlers may have changed local_copy on the new references
        project.save()

        if package.readme and not skip_readme_display:
            self.readme_opened = project.root / package.readme
            self._readme_viewer(self.readme_opened)

        self.executed = True
        return package
