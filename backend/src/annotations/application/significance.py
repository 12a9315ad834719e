"""Decide whether a commit counts as a significant, tool-authored insertion.

The gate is an explicit state object owned by the application (created at
startup, disposed at shutdown). The transform core only ever sees the boolean
it produces.
"""

import logging
import time
from collections.abc import Callable

from annotations.domain.entities import EditOperation
from shared.config import Settings

logger = logging.getLogger(__name__)

# Commands that rewrite files wholesale; tracking pauses until resumed.
SUSPENDING_COMMANDS = (
    "git checkout",
    "git merge",
    "git pull",
    "git rebase",
    "git reset",
    "git stash pop",
    "git stash apply",
    "git cherry-pick",
    "git revert",
)


class RecentActionWindow:
    """Tags of user actions seen within the last ``window_seconds``.

    Every ``mark`` restarts the window; all tags expire together.
    """

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._tags: set[str] = set()
        self._expires_at: float | None = None

    def mark(self, tag: str) -> None:
        self._tags.add(tag)
        self._expires_at = self._clock() + self.window_seconds

    def active(self) -> set[str]:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self.clear()
        return set(self._tags)

    def clear(self) -> None:
        self._tags.clear()
        self._expires_at = None


class SignificanceGate:
    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic):
        self._settings = settings
        self._actions = RecentActionWindow(settings.SIGNIFICANCE_ACTION_WINDOW_SECONDS, clock)
        self._suspended_by: str | None = None
        self._active = False

    def init(self) -> None:
        self._active = True
        logger.info(
            "Significance gate ready (action window %.3fs, min chars %d)",
            self._settings.SIGNIFICANCE_ACTION_WINDOW_SECONDS,
            self._settings.MIN_SIGNIFICANT_CHARS,
        )

    def refresh(self, settings: Settings) -> None:
        self._settings = settings
        self._actions.window_seconds = settings.SIGNIFICANCE_ACTION_WINDOW_SECONDS
        logger.info("Significance gate settings refreshed")

    def dispose(self) -> None:
        self._actions.clear()
        self._suspended_by = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_suspended(self) -> bool:
        return self._suspended_by is not None

    @property
    def suspended_by(self) -> str | None:
        return self._suspended_by

    def recent_actions(self) -> set[str]:
        return self._actions.active()

    def mark_user_action(self, tag: str) -> None:
        self._actions.mark(tag)

    def observe_command(self, command_line: str) -> bool:
        """Suspend tracking if the command rewrites files. Returns True if it did."""
        if any(cmd in command_line for cmd in SUSPENDING_COMMANDS):
            self.suspend(command_line)
            return True
        return False

    def suspend(self, reason: str) -> None:
        if self._suspended_by is None:
            logger.info("Tracking suspended: %s", reason)
            self._suspended_by = reason

    def resume(self) -> None:
        if self._suspended_by is not None:
            logger.info("Tracking resumed")
        self._suspended_by = None

    def is_significant(self, edits: list[EditOperation], reason: str | None = None) -> bool:
        # The editor only reports a reason (undo, redo, ...) for replayed history.
        if not edits or reason:
            return False

        if self.is_suspended:
            logger.debug("Commit filtered: tracking suspended")
            return False

        actions = self.recent_actions()
        if actions:
            logger.debug("Commit filtered by recent actions: %s", sorted(actions))
            return False

        return any(self._passes_basic_check(edit.inserted_text) for edit in edits)

    def _passes_basic_check(self, text: str) -> bool:
        stripped = text.strip()
        return len(stripped) >= self._settings.MIN_SIGNIFICANT_CHARS
