"""
Stimulus & input monitor: runs the timing window of a single trial.

States::

    ARMED_WAIT --input--> FALSE_START
    ARMED_WAIT --timer--> STIMULUS_PRESENTED --input--> COMPLETED
    ARMED_WAIT | STIMULUS_PRESENTED --abort/quit--> ABORTED

During ARMED_WAIT the wait timer and the input listener run as two tasks and
the first one to finish wins; the other is cancelled. The reaction clock
starts at the onset timestamp the backend reports once the stimulus frame is
visible.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.logger import get_logger
from .backend import Backend, InputEvent, InputKind
from .clock import ns_to_ms, seconds_to_ns
from .errors import TrialAborted

logger = get_logger(__name__)


class TrialState(Enum):
    IDLE = 'idle'
    ARMED_WAIT = 'armed_wait'
    FALSE_START = 'false_start'
    STIMULUS_PRESENTED = 'stimulus_presented'
    COMPLETED = 'completed'
    ABORTED = 'aborted'

    @property
    def is_terminal(self) -> bool:
        return self in (TrialState.FALSE_START, TrialState.COMPLETED, TrialState.ABORTED)


@dataclass(frozen=True)
class TrialOutcome:
    """What the monitor observed in one trial."""

    state: TrialState
    reaction_ms: Optional[float] = None
    armed_at_ns: int = 0
    onset_ns: Optional[int] = None
    response_ns: Optional[int] = None

    @property
    def false_start(self) -> bool:
        return self.state is TrialState.FALSE_START


class StimulusMonitor:
    """
    Runs one trial against a backend.

    Args:
        backend: Display/input backend, already open
        false_start_grace_ms: Presses within this many milliseconds after
            arming are ignored instead of counting as false starts. 0 means
            any press before the stimulus is a false start.
    """

    def __init__(self, backend: Backend, false_start_grace_ms: float = 0.0):
        self.backend = backend
        self.clock = backend.clock
        self.false_start_grace_ns = int(round(false_start_grace_ms * 1000000))
        self.state = TrialState.IDLE
        self.ignored_presses = 0

    async def run_trial(self, planned_delay_seconds: float, trial_index: Optional[int] = None) -> TrialOutcome:
        """
        Run a trial: wait planned_delay_seconds, show the stimulus, time the
        response.

        Returns:
            TrialOutcome in state FALSE_START or COMPLETED

        Raises:
            TrialAborted: the trial was torn down before a terminal state
        """
        self.ignored_presses = 0
        self.backend.discard_pending_presses()
        await self.backend.present_wait_screen(planned_delay_seconds)

        armed_at = self.clock.now_ns()
        deadline = armed_at + seconds_to_ns(planned_delay_seconds)
        self._enter(TrialState.ARMED_WAIT, trial_index)

        try:
            event = await self._wait_phase(armed_at, deadline)
            if event is not None:
                self._check_abort(event, trial_index)
                self._enter(TrialState.FALSE_START, trial_index)
                return TrialOutcome(TrialState.FALSE_START, armed_at_ns=armed_at, response_ns=event.timestamp_ns)

            onset = await self.backend.present_stimulus()
            self._enter(TrialState.STIMULUS_PRESENTED, trial_index)

            event = await self.backend.next_event()
            self._check_abort(event, trial_index)
            if event.timestamp_ns < onset:
                # Registered while the stimulus frame was still being flipped
                self._enter(TrialState.FALSE_START, trial_index)
                return TrialOutcome(TrialState.FALSE_START, armed_at_ns=armed_at, onset_ns=onset,
                                    response_ns=event.timestamp_ns)

            reaction_ms = ns_to_ms(event.timestamp_ns - onset)
            self._enter(TrialState.COMPLETED, trial_index)
            return TrialOutcome(TrialState.COMPLETED, reaction_ms=reaction_ms, armed_at_ns=armed_at,
                                onset_ns=onset, response_ns=event.timestamp_ns)
        except asyncio.CancelledError:
            self._enter(TrialState.ABORTED, trial_index)
            raise

    async def _wait_phase(self, armed_at: int, deadline: int) -> Optional[InputEvent]:
        """
        Race the wait timer against the input listener.

        Returns:
            The event that ended the wait, or None if the timer expired first
        """
        while True:
            remaining = max(0, deadline - self.clock.now_ns())
            timer = asyncio.ensure_future(self.clock.sleep(remaining / 1e9))
            listener = asyncio.ensure_future(self.backend.next_event())
            try:
                await asyncio.wait({timer, listener}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (timer, listener):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(timer, listener, return_exceptions=True)

            event = listener.result() if listener.done() and not listener.cancelled() else None
            if event is None:
                return None
            if event.kind is not InputKind.PRESS:
                return event
            # A press that ties with the timer still precedes the stimulus.
            if event.timestamp_ns - armed_at < self.false_start_grace_ns:
                self.ignored_presses += 1
                logger.debug(f"Ignored press {ns_to_ms(event.timestamp_ns - armed_at):.3f} ms after arming (grace window)")
                continue
            return event

    def _check_abort(self, event: InputEvent, trial_index: Optional[int]):
        reason = event.abort_reason
        if reason is not None:
            self._enter(TrialState.ABORTED, trial_index)
            raise TrialAborted(reason, trial_index)

    def _enter(self, state: TrialState, trial_index: Optional[int]):
        logger.debug(f"Trial {trial_index}: {self.state.value} -> {state.value}")
        self.state = state
