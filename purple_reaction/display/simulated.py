"""
Simulated participant backends.

SimulatedBackend stands in for the stimulus window. Instead of reading a
keyboard it asks a participant object how to respond to each trial and
queues the matching input events with virtual timestamps. Runs driven by a
VirtualClock finish instantly and their reaction times are exact, which is
what the tests and the ``--simulate`` command-line mode rely on.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..engine.backend import Backend, InputEvent, InputKind
from ..engine.clock import VirtualClock, seconds_to_ns

REACT = 'react'
FALSE_START = 'false_start'
ABORT = 'abort'
ABORT_AFTER_STIMULUS = 'abort_after_stimulus'
QUIT = 'quit'


@dataclass(frozen=True)
class SimulatedResponse:
    """How the simulated participant behaves in one trial."""

    kind: str
    reaction_ms: Optional[float] = None
    after_ms: Optional[float] = None

    @classmethod
    def react(cls, reaction_ms: float) -> 'SimulatedResponse':
        return cls(REACT, reaction_ms=reaction_ms)

    @classmethod
    def false_start(cls, after_ms: Optional[float] = None) -> 'SimulatedResponse':
        """Press during the wait, after_ms after arming (default: halfway)."""
        return cls(FALSE_START, after_ms=after_ms)

    @classmethod
    def abort(cls) -> 'SimulatedResponse':
        return cls(ABORT)

    @classmethod
    def abort_after_stimulus(cls) -> 'SimulatedResponse':
        return cls(ABORT_AFTER_STIMULUS)

    @classmethod
    def quit(cls) -> 'SimulatedResponse':
        return cls(QUIT)


class ScriptedParticipant:
    """Responds with a fixed list of responses, one per trial."""

    def __init__(self, responses: Iterable[SimulatedResponse]):
        self._responses = deque(responses)

    def next_response(self, planned_delay_seconds: float) -> SimulatedResponse:
        if not self._responses:
            raise RuntimeError("Scripted participant has no responses left")
        return self._responses.popleft()

    def remaining(self) -> int:
        return len(self._responses)


class RandomParticipant:
    """
    Participant with normally distributed reaction times and occasional
    false starts.
    """

    def __init__(
        self,
        mean_reaction_ms: float = 250.0,
        sd_reaction_ms: float = 40.0,
        min_reaction_ms: float = 100.0,
        false_start_probability: float = 0.05,
        seed: Optional[int] = None,
    ):
        if not 0.0 <= false_start_probability <= 1.0:
            raise ValueError(f"false_start_probability must be in [0, 1], got {false_start_probability}")
        self.mean_reaction_ms = mean_reaction_ms
        self.sd_reaction_ms = sd_reaction_ms
        self.min_reaction_ms = min_reaction_ms
        self.false_start_probability = false_start_probability
        self._rng = np.random.default_rng(seed)

    def next_response(self, planned_delay_seconds: float) -> SimulatedResponse:
        if self._rng.random() < self.false_start_probability:
            after_ms = float(self._rng.uniform(0.0, planned_delay_seconds * 1000.0))
            return SimulatedResponse.false_start(after_ms)
        reaction = float(self._rng.normal(self.mean_reaction_ms, self.sd_reaction_ms))
        return SimulatedResponse.react(max(self.min_reaction_ms, reaction))


class SimulatedBackend(Backend):
    """
    Backend driven by a simulated participant.

    The participant is asked for a response when a trial is armed. Presses
    and aborts that belong to the wait phase are queued right away,
    reactions are queued when the stimulus appears. Delivering an event
    moves the virtual clock to the event's timestamp.
    """

    name = 'simulated'

    def __init__(self, participant, clock=None):
        super().__init__(clock if clock is not None else VirtualClock())
        self.participant = participant
        self.wait_screens = 0
        self.stimuli_presented = 0
        self._pending: Optional[SimulatedResponse] = None

    async def next_event(self) -> InputEvent:
        event = await super().next_event()
        if isinstance(self.clock, VirtualClock):
            self.clock.advance_to(event.timestamp_ns)
        return event

    async def present_wait_screen(self, planned_delay_seconds: float):
        self.wait_screens += 1
        armed_at = self.clock.now_ns()
        response = self.participant.next_response(planned_delay_seconds)
        self._pending = None

        if response.kind == FALSE_START:
            after_ms = response.after_ms
            if after_ms is None or after_ms >= planned_delay_seconds * 1000.0:
                after_ms = planned_delay_seconds * 500.0
            self._queue(InputKind.PRESS, armed_at + seconds_to_ns(after_ms / 1000.0), 'simulated:false_start')
        elif response.kind == ABORT:
            self._queue(InputKind.ABORT, armed_at, 'simulated:escape')
        elif response.kind == QUIT:
            self._queue(InputKind.QUIT, armed_at, 'simulated:close')
        else:
            self._pending = response

    async def present_stimulus(self) -> int:
        self.stimuli_presented += 1
        onset = self.clock.now_ns()
        response = self._pending
        self._pending = None
        if response is None:
            # The wait-phase response was used up (e.g. a press inside the
            # grace window), so the participant responds afresh.
            response = self.participant.next_response(0.0)

        if response.kind == REACT:
            self._queue(InputKind.PRESS, onset + seconds_to_ns(response.reaction_ms / 1000.0), 'simulated:react')
        elif response.kind == FALSE_START:
            after_ms = response.after_ms or 0.0
            self._queue(InputKind.PRESS, onset + seconds_to_ns(after_ms / 1000.0), 'simulated:react')
        elif response.kind == QUIT:
            self._queue(InputKind.QUIT, onset, 'simulated:close')
        else:
            self._queue(InputKind.ABORT, onset, 'simulated:escape')
        return onset

    def _queue(self, kind: InputKind, timestamp_ns: int, source: str):
        self.post_event(InputEvent(kind, timestamp_ns, source))
