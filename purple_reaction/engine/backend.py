"""
Display and input backend interface.

A backend shows the wait and stimulus screens and delivers timestamped input
events through an asyncio queue. The monitor only talks to this interface,
so the pygame window and the simulated participant are interchangeable.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..core.logger import get_logger
from .errors import AbortReason


class InputKind(Enum):
    PRESS = 'press'   # qualifying response input
    ABORT = 'abort'   # Escape or an external abort request
    QUIT = 'quit'     # window closed


@dataclass(frozen=True)
class InputEvent:
    kind: InputKind
    timestamp_ns: int
    source: str = ''

    @property
    def abort_reason(self) -> Optional[AbortReason]:
        if self.kind is InputKind.ABORT:
            return AbortReason.ABORT
        if self.kind is InputKind.QUIT:
            return AbortReason.QUIT
        return None


class Backend(ABC):
    """
    Base class for stimulus/input backends.

    Subclasses implement the screen transitions. Input arrives through
    post_event(), which is safe to call from other threads once the backend
    is open.
    """

    name = 'backend'

    def __init__(self, clock):
        self.clock = clock
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: Optional[asyncio.Queue] = None
        self._early_events: List[InputEvent] = []
        self._is_open = False

    async def open(self):
        """Bind to the running loop and acquire display resources."""
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        for event in self._early_events:
            self._events.put_nowait(event)
        self._early_events.clear()
        await self._open()
        self._is_open = True
        self.logger.debug(f"{self.name} backend opened")

    async def close(self):
        """Release display resources. Safe to call more than once."""
        if not self._is_open:
            return
        self._is_open = False
        try:
            await self._close()
        finally:
            self.logger.debug(f"{self.name} backend closed")

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _open(self):
        pass

    async def _close(self):
        pass

    def is_open(self) -> bool:
        return self._is_open

    def post_event(self, event: InputEvent):
        """Queue an input event. Thread-safe."""
        if self._loop is None or self._events is None:
            self._early_events.append(event)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._events.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._events.put_nowait, event)

    def request_abort(self, reason: AbortReason = AbortReason.ABORT):
        kind = InputKind.QUIT if reason is AbortReason.QUIT else InputKind.ABORT
        self.post_event(InputEvent(kind, self.clock.now_ns(), source='request'))

    async def next_event(self) -> InputEvent:
        """Wait for the next input event."""
        return await self._events.get()

    def discard_pending_presses(self) -> int:
        """
        Drop presses queued before the current trial was armed.

        Abort and quit events are kept so a pending abort still ends the
        next trial.

        Returns:
            Number of presses discarded
        """
        kept = []
        discarded = 0
        while not self._events.empty():
            event = self._events.get_nowait()
            if event.kind is InputKind.PRESS:
                discarded += 1
            else:
                kept.append(event)
        for event in kept:
            self._events.put_nowait(event)
        if discarded:
            self.logger.debug(f"Discarded {discarded} stale press(es)")
        return discarded

    @abstractmethod
    async def present_wait_screen(self, planned_delay_seconds: float):
        """Show the pre-stimulus screen for a trial about to be armed."""

    @abstractmethod
    async def present_stimulus(self) -> int:
        """
        Show the go-cue.

        Returns:
            Monotonic timestamp (ns) at which the stimulus became visible
        """

