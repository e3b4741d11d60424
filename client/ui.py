"""User-facing side effects the sync layer triggers: notifications and navigation.

The HTTP core never prints or redirects on its own; it calls a notifier and a
navigator it was given. The defaults log, which is what a CLI wants. Tests
pass recording implementations.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: str = "default"


class LogNotifier:
    """Notifier that writes toasts to the log."""

    def notify(self, notification: Notification) -> None:
        level = logging.ERROR if notification.variant == "destructive" else logging.INFO
        if notification.description:
            logger.log(level, "%s: %s", notification.title, notification.description)
        else:
            logger.log(level, "%s", notification.title)


class Navigator:
    """Tracks the current location and records redirects.

    ``location`` is a path plus query string, like a browser's
    ``pathname + search``.
    """

    def __init__(self, location: str = "/") -> None:
        self.location = location
        self.history: list[str] = []

    def navigate(self, target: str) -> None:
        logger.info("Navigating to %s", target)
        self.history.append(target)
        self.location = target

    @property
    def last_redirect(self) -> Optional[str]:
        return self.history[-1] if self.history else None


def login_redirect(login_path: str, location: str) -> str:
    """Build ``<login_path>?returnTo=<encoded location>``."""
    return f"{login_path}?returnTo={quote(location, safe='')}"
