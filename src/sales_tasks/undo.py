"""
Single-slot undo for deletes.

UndoBuffer is a two-state machine:

    UndoEmpty --hold(task)--> UndoHolding(task)
    UndoHolding --hold(other)--> UndoHolding(other)   (previous task is lost)
    UndoHolding --take()/clear()--> UndoEmpty
    UndoEmpty --take()/clear()--> UndoEmpty           (no-op)

UndoNotice is the controller behind the "Task deleted / Undo" notification.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .schema import Task

logger = logging.getLogger(__name__)

CLICKAWAY = "clickaway"
TIMEOUT = "timeout"


@dataclass(frozen=True)
class UndoEmpty:
    pass


@dataclass(frozen=True)
class UndoHolding:
    task: Task


UndoState = Union[UndoEmpty, UndoHolding]


class UndoBuffer:
    def __init__(self) -> None:
        self._state: UndoState = UndoEmpty()

    @property
    def state(self) -> UndoState:
        return self._state

    @property
    def task(self) -> Optional[Task]:
        state = self._state
        if isinstance(state, UndoHolding):
            return state.task
        return None

    def hold(self, task: Task) -> None:
        previous = self.task
        if previous is not None:
            logger.debug("Undo buffer overwritten; dropping task id=%s", previous.id)
        self._state = UndoHolding(task)

    def take(self) -> Optional[Task]:
        """Return the held task and go empty. None when already empty."""
        state = self._state
        if isinstance(state, UndoEmpty):
            return None
        self._state = UndoEmpty()
        return state.task

    def clear(self) -> None:
        self._state = UndoEmpty()


class UndoNotice:
    """
    Notification contract for the undo prompt.

    - open while a deleted task is buffered
    - outside clicks ("clickaway") never dismiss it
    - auto-dismisses after `auto_hide_seconds` by calling on_close
    - the Undo action only calls on_undo; the exit animation may still call
      on_close afterwards, which must be harmless (clearing an empty buffer
      is a no-op)
    """

    def __init__(
        self,
        *,
        is_open: Callable[[], bool],
        on_close: Callable[[], None],
        on_undo: Callable[[], Any],
        auto_hide_seconds: float = 4.0,
    ) -> None:
        self._is_open = is_open
        self._on_close = on_close
        self._on_undo = on_undo
        self.auto_hide_seconds = auto_hide_seconds
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def open(self) -> bool:
        return self._is_open()

    def handle_close(self, reason: Optional[str] = None) -> bool:
        """Returns True if the close was honoured."""
        if reason == CLICKAWAY:
            logger.debug("Ignoring clickaway dismissal of undo notice")
            return False
        self.disarm()
        self._on_close()
        return True

    def handle_undo(self) -> Any:
        """Returns whatever on_undo returns (the restored task for a store)."""
        self.disarm()
        return self._on_undo()

    def handle_exited(self) -> None:
        self._on_close()

    def arm(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """(Re)start the auto-dismiss timer on the running loop."""
        self.disarm()
        loop = loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self.auto_hide_seconds, self.handle_close, TIMEOUT)

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
