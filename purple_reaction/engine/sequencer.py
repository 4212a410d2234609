"""
Trial sequencer: runs the trials of a run one after another.
"""

from typing import Callable, Optional

from ..core.logger import get_logger
from .aggregator import ResultAggregator
from .delay import DelayGenerator
from .models import TrialRecord
from .monitor import StimulusMonitor

logger = get_logger(__name__)

TrialCallback = Callable[[TrialRecord, int], None]


class TrialSequencer:
    """
    Drives trial_count trials strictly in sequence.

    Trial k+1 is armed only after trial k reached a terminal state. False
    starts are completed trials and are never retried. The aggregator is
    only touched from here.
    """

    def __init__(
        self,
        monitor: StimulusMonitor,
        delays: DelayGenerator,
        aggregator: ResultAggregator,
        on_trial_start: Optional[Callable[[int, int, float], None]] = None,
        on_trial_done: Optional[TrialCallback] = None,
    ):
        self.monitor = monitor
        self.delays = delays
        self.aggregator = aggregator
        self.on_trial_start = on_trial_start
        self.on_trial_done = on_trial_done
        self.current_trial = 0

    async def run(self, trial_count: int, min_delay: float, max_delay: float) -> ResultAggregator:
        """
        Run all trials.

        Raises:
            TrialAborted: propagated from the monitor; no further trial starts
        """
        for index in range(1, trial_count + 1):
            self.current_trial = index
            delay = self.delays.next(min_delay, max_delay)
            logger.info(f"Trial {index}/{trial_count}: waiting {delay:.3f} s")
            if self.on_trial_start:
                self.on_trial_start(index, trial_count, delay)

            outcome = await self.monitor.run_trial(delay, trial_index=index)

            if outcome.false_start:
                record = TrialRecord.false_started(index, delay)
                logger.info(f"Trial {index}: false start, input before stimulus")
            else:
                record = TrialRecord.valid(index, delay, outcome.reaction_ms)
                logger.info(f"Trial {index}: reaction {outcome.reaction_ms:.3f} ms")

            self.aggregator.add(record)
            if self.on_trial_done:
                self.on_trial_done(record, trial_count)

        return self.aggregator
