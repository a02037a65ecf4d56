"""EventBus for package lifecycle notifications.

Synchronous, in-process publication of file and reference events. Handlers
run on the calling thread in subscription order, and each one completes
before the emitting step continues.
"""

from __future__ import annotations

__all__ = [
    "EventBus",
    "Subscription",
    "FILE_REMOVING",
    "REFERENCE_REMOVING",
    "REFERENCE_ADDING",
]

import logging
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Any

from pkg_reinstall.errors import SubscriberError
from pkg_reinstall.types import FileRemovalRequest, ReferenceDescriptor

logger = logging.getLogger(__name__)

FILE_REMOVING = "file_removing"
REFERENCE_REMOVING = "reference_removing"
REFERENCE_ADDING = "reference_adding"

_EVENT_KINDS = (FILE_REMOVING, REFERENCE_REMOVING, REFERENCE_ADDING)

FileRemovingHandler = Callable[[FileRemovalRequest], bool]
ReferenceHandler = Callable[[ReferenceDescriptor], None]


class Subscription:
    """Handle for one registered handler.

    Usable as a context manager so a caller can scope the registration:

        with events.on_reference_adding(handler):
            step.execute(...)
    """

    def __init__(self, bus: EventBus, kind: str, handler: Callable[[Any], Any]) -> None:
        self._bus = bus
        self.kind = kind
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Detach the handler. Closing twice is a no-op."""
        if self._active:
            self._bus.unsubscribe(self.kind, self.handler)
            self._active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class EventBus:
    """Notification hub shared by the uninstall step, install step and orchestrator.

    Handler failures are re-raised as SubscriberError and abort the emitting
    operation; nothing is swallowed.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[Any], Any]]] = {
            kind: [] for kind in _EVENT_KINDS
        }

    def _handlers(self, kind: str) -> list[Callable[[Any], Any]]:
        try:
            return self._subscribers[kind]
        except KeyError:
            raise ValueError(
                f"Unknown event kind: {kind}. Supported: {', '.join(_EVENT_KINDS)}"
            ) from None

    def subscribe(self, kind: str, handler: Callable[[Any], Any]) -> Subscription:
        """Register a handler for an event kind.

        Raises:
            ValueError: If kind is not a known event kind.
        """
        self._handlers(kind).append(handler)
        return Subscription(self, kind, handler)

    def unsubscribe(self, kind: str, handler: Callable[[Any], Any]) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        handlers = self._handlers(kind)
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        return True

    def subscriber_count(self, kind: str) -> int:
        return len(self._handlers(kind))

    def on_file_removing(self, handler: FileRemovingHandler) -> Subscription:
        return self.subscribe(FILE_REMOVING, handler)

    def on_reference_removing(self, handler: ReferenceHandler) -> Subscription:
        return self.subscribe(REFERENCE_REMOVING, handler)

    def on_reference_adding(self, handler: ReferenceHandler) -> Subscription:
        return self.subscribe(REFERENCE_ADDING, handler)

    def notify_file_removing(self, path: str | Path) -> bool:
        """Announce that a file is about to be removed.

        Every handler is called, in order. A handler cancels the removal by
        returning a truthy value.

        Returns:
            True if any handler cancelled the removal, False otherwise.
        """
        request = FileRemovalRequest(Path(path))
        results = self._dispatch(FILE_REMOVING, request)
        cancelled = any(results)
        logger.debug("File removal %s: %s", "cancelled" if cancelled else "allowed", request.path)
        return cancelled

    def notify_reference_removing(self, reference: ReferenceDescriptor) -> None:
        """Announce that a reference is about to be detached from the project."""
        self._dispatch(REFERENCE_REMOVING, reference)

    def notify_reference_adding(self, reference: ReferenceDescriptor) -> None:
        """Announce that a reference has just been added to the project."""
        self._dispatch(REFERENCE_ADDING, reference)

    def _dispatch(self, kind: str, payload: Any) -> list[Any]:
        # Snapshot so handlers can (un)subscribe while we iterate
        handlers = list(self._handlers(kind))
        logger.debug("Dispatching %s to %d handler(s)", kind, len(handlers))

        results = []
        for handler in handlers:
            try:
                results.append(handler(payload))
            except SubscriberError:
                raise
            except Exception as e:
                raise SubscriberError(kind, e) from e
        return results

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={len(v)}" for k, v in self._subscribers.items())
        return f"<EventBus: {counts}>"
