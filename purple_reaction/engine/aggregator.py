"""
Result aggregation for a run.
"""

from typing import List, Optional

import numpy as np

from .models import RunResult, RunSummary, TrialRecord


class ResultAggregator:
    """
    Collects trial records in chronological order and summarizes them.

    The aggregator only reflects the records it has been given; deciding
    when a run is complete is the controller's job.
    """

    def __init__(self):
        self._records: List[TrialRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> List[TrialRecord]:
        return list(self._records)

    def add(self, record: TrialRecord):
        expected = len(self._records) + 1
        if record.index != expected:
            raise ValueError(f"Expected trial {expected}, got trial {record.index}")
        self._records.append(record)

    def summarize(self) -> RunSummary:
        valid_times = [r.reaction_ms for r in self._records if not r.false_start]
        trial_count = len(self._records)
        valid_count = len(valid_times)
        average: Optional[float] = float(np.mean(valid_times)) if valid_times else None
        return RunSummary(
            trial_count=trial_count,
            valid_count=valid_count,
            false_start_count=trial_count - valid_count,
            average_reaction_ms=average,
        )

    def finalize(self) -> RunResult:
        """Build the immutable run result from the records collected so far."""
        summary = self.summarize()
        return RunResult(
            trial_count=summary.trial_count,
            valid_count=summary.valid_count,
            false_start_count=summary.false_start_count,
            average_reaction_ms=summary.average_reaction_ms,
            trials=tuple(self._records),
        )
