"""ReinstallOrchestrator - forced uninstall followed by install of the same package.

The uninstall and install steps know nothing about each other. The
orchestrator links them through the event bus:

- while uninstalling it records the local_copy flag of every removed
  reference and cancels removal of the project's package-tracking file;
- while installing it copies the recorded flags onto new references of the
  same name.

All subscriptions are scoped to one execute() call.
"""

from __future__ import annotations

__all__ = [
    "ReinstallOrchestrator",
    "ReinstallSession",
    "reinstall_package",
]

import logging
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from packaging.version import Version

from pkg_reinstall.events import EventBus
from pkg_reinstall.project import DiskFileRemover
from pkg_reinstall.steps import InstallStep, UninstallStep
from pkg_reinstall.types import (
    FileRemovalRequest,
    PackageIdentity,
    ReferenceDescriptor,
    ReinstallState,
    UninstallOutcome,
)

if TYPE_CHECKING:
    from pkg_reinstall.project import FileRemover, PackageProject
    from pkg_reinstall.types import PackageContent

logger = logging.getLogger(__name__)

UninstallStepFactory = Callable[[EventBus, "FileRemover"], UninstallStep]
InstallStepFactory = Callable[[EventBus], InstallStep]


@dataclass
class ReinstallSession:
    """Transient state of one reinstall execution. Never reused."""

    identity: PackageIdentity
    project: PackageProject
    events: EventBus
    file_remover: FileRemover
    outcome: UninstallOutcome = field(default_factory=UninstallOutcome)
    state: ReinstallState = ReinstallState.IDLE

    def capture_reference(self, reference: ReferenceDescriptor) -> None:
        self.outcome.record(reference)

    def should_cancel_file_removal(self, request: FileRemovalRequest) -> bool:
        return self.project.is_package_tracking_file(request.path)

    def restore_local_copy(self, reference: ReferenceDescriptor) -> None:
        local_copy = self.outcome.local_copy_for(reference.name)
        if local_copy is not None:
            reference.local_copy = local_copy


class ReinstallOrchestrator:
    """Reinstalls a package in a project.

    Usage:
        orchestrator = ReinstallOrchestrator(project, events)
        orchestrator.execute(PackageIdentity.parse("MyPackage", "1.2.3.4"))
    """

    def __init__(
        self,
        project: PackageProject,
        events: EventBus | None = None,
        file_remover: FileRemover | None = None,
        *,
        uninstall_step_factory: UninstallStepFactory = UninstallStep,
        install_step_factory: InstallStepFactory = InstallStep,
    ) -> None:
        """Initialize orchestrator.

        Args:
            project: Project holding the package.
            events: Event bus shared with the steps. A new one if omitted.
            file_remover: Performs file deletions. DiskFileRemover if omitted.
            uninstall_step_factory: Builds the uninstall step from (events, file_remover).
            install_step_factory: Builds the install step from (events,).
        """
        self.project = project
        self.events = events if events is not None else EventBus()
        self.file_remover = file_remover if file_remover is not None else DiskFileRemover()
        self._uninstall_step_factory = uninstall_step_factory
        self._install_step_factory = install_step_factory
        self._session: ReinstallSession | None = None

    @property
    def state(self) -> ReinstallState:
        """State of the current or most recent execution."""
        if self._session is None:
            return ReinstallState.IDLE
        return self._session.state

    def execute(self, identity: PackageIdentity) -> PackageContent:
        """Uninstall identity with forced removal, then install it again.

        Errors from either step propagate unchanged. No rollback is attempted.

        Returns:
            The reinstalled package content.
        """
        session = ReinstallSession(identity, self.project, self.events, self.file_remover)
        self._session = session

        try:
            with ExitStack() as subscriptions:
                session.state = ReinstallState.UNINSTALL_RUNNING
                subscriptions.enter_context(
                    self.events.on_reference_removing(session.capture_reference)
                )
                subscriptions.enter_context(
                    self.events.on_file_removing(session.should_cancel_file_removal)
                )
                uninstall = self._uninstall_step_factory(self.events, self.file_remover)
                removed = uninstall.execute(self.project, identity, force_remove=True)

                session.state = ReinstallState.INSTALL_RUNNING
                subscriptions.enter_context(
                    self.events.on_reference_adding(session.restore_local_copy)
                )
                install = self._install_step_factory(self.events)
                # 1.0 and 1.0.0 compare equal; install the spelling that was recorded
                package = install.execute(
                    self.project,
                    removed.identity,
                    preserve_local_copy_references=True,
                    skip_readme_display=True,
                )
        except Exception as e:
            logger.warning(
                "Reinstall of %s failed during %s: %s", identity, session.state.value, e
            )
            session.state = ReinstallState.FAILED
            raise

        session.state = ReinstallState.COMPLETE
        logger.info(
            "Reinstalled %s (%d reference flag(s) captured)", identity, len(session.outcome)
        )
        return package


def reinstall_package(
    project: PackageProject,
    package_id: str,
    version: str | Version,
    *,
    events: EventBus | None = None,
    file_remover: FileRemover | None = None,
) -> PackageContent:
    """Reinstall package_id at version in project."""
    orchestrator = ReinstallOrchestrator(project, events, file_remover)
    return orchestrator.execute(PackageIdentity.parse(package_id, version))
