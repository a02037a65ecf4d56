"""UninstallStep for removing a package from a project."""

from __future__ import annotations

__all__ = ["UninstallStep"]

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pkg_reinstall.errors import DependencyRemovalError, PackageNotFoundError

if TYPE_CHECKING:
    from pkg_reinstall.events import EventBus
    from pkg_reinstall.project import FileRemover, PackageProject
    from pkg_reinstall.types import PackageContent, PackageIdentity

logger = logging.getLogger(__name__)


class UninstallStep:
    """Removes an installed package, its references and its content files.

    Every reference is announced on the event bus before it is detached and
    every file is proposed for removal through a cancellable notification.
    A cancelled file is left on disk.
    """

    def __init__(self, events: EventBus, file_remover: FileRemover) -> None:
        self._events = events
        self._file_remover = file_remover
        self.executed = False
        self.force_remove = False
        self.package: PackageContent | None = None

    def execute(
        self,
        project: PackageProject,
        identity: PackageIdentity,
        force_remove: bool = False,
    ) -> PackageContent:
        """Uninstall identity from project.

        Args:
            project: Project to remove the package from.
            identity: Installed package to remove.
            force_remove: Skip the check for installed packages that depend on it.

        Returns:
            The removed package content.

        Raises:
            PackageNotFoundError: If the package is not installed.
            DependencyRemovalError: If not forced and other packages depend on it.
        """
        self.force_remove = force_remove

        package = project.find_installed(identity)
        if package is None:
            raise PackageNotFoundError(identity, project.name)
        self.package = package

        dependents = project.dependents_of(identity.id)
        if dependents:
            if not force_remove:
                raise DependencyRemovalError(identity, dependents)
            logger.info(
                "Forcing removal of %s required by %s",
                identity,
                ", ".join(str(d) for d in dependents),
            )

        logger.info("Uninstalling %s from %s", identity, project.name)

        for name in package.references:
            reference = project.find_reference(name)
            if reference is None:
                continue
            self._events.notify_reference_removing(reference)
            project.remove_reference(name)

        for package_file in package.files:
            self._remove_file(project.root / package_file.path)

        project.forget_installed(identity)

        # Removing the last package removes the tracking file as well
        if not project.installed_packages():
            self._remove_file(project.tracking_file)

        self.executed = True
        return package

    def _remove_file(self, path: Path) -> bool:
        if self._events.notify_file_removing(path):
            logger.debug("Keeping %s, removal cancelled", path)
            return False
        self._file_remover.remove(path)
        return True
