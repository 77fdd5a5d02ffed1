"""User-facing notifications and navigation seams."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Surfaces non-blocking messages (toasts) to the operator."""

    def notify(self, title: str, description: str, *, destructive: bool = False) -> None:
        """Show a notification."""


class Navigator(Protocol):
    """Moves the UI to another entry point."""

    def navigate(self, path: str) -> None:
        """Navigate to a path."""


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    destructive: bool = False


@dataclass
class NotificationLog(Notifier):
    """Keeps notifications in order for the UI layer to render."""

    notifications: list[Notification] = field(default_factory=list)

    def notify(self, title: str, description: str, *, destructive: bool = False) -> None:
        self.notifications.append(Notification(title, description, destructive))
        level = logging.WARNING if destructive else logging.INFO
        _logger.log(level, "%s: %s", title, description)

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None


@dataclass
class NavigationHistory(Navigator):
    """Records navigation targets; the last one is the current location."""

    history: list[str] = field(default_factory=list)

    def navigate(self, path: str) -> None:
        self.history.append(path)

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None
