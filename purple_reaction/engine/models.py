"""
Data model for a reaction-time run.

TrialRecord holds one trial's outcome, RunResult the finalized run and
RunParameters the validated run configuration. The dictionary layout
produced by RunResult.to_dict() is the output record read by the control
panel.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError

MAX_TRIAL_COUNT = 1000000


@dataclass(frozen=True)
class TrialRecord:
    """Outcome of a single trial."""

    index: int
    planned_delay_seconds: float
    reaction_ms: Optional[float] = None
    false_start: bool = False

    def __post_init__(self):
        if self.index < 1:
            raise ValueError(f"Trial index must be 1-based, got {self.index}")
        if self.false_start and self.reaction_ms is not None:
            raise ValueError(f"Trial {self.index}: a false start has no reaction time")
        if not self.false_start and self.reaction_ms is None:
            raise ValueError(f"Trial {self.index}: a valid trial needs a reaction time")

    @property
    def is_valid(self) -> bool:
        return not self.false_start

    @classmethod
    def valid(cls, index: int, planned_delay_seconds: float, reaction_ms: float) -> 'TrialRecord':
        return cls(index, planned_delay_seconds, reaction_ms=reaction_ms, false_start=False)

    @classmethod
    def false_started(cls, index: int, planned_delay_seconds: float) -> 'TrialRecord':
        return cls(index, planned_delay_seconds, reaction_ms=None, false_start=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trial': self.index,
            'random_delay_seconds': self.planned_delay_seconds,
            'reaction_ms': self.reaction_ms,
            'false_start': self.false_start,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrialRecord':
        """
        Parse one entry of the output record's ``trials`` list.

        Raises:
            ValueError: if the entry is not an object or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Trial entry must be a JSON object, got {data!r}")
        false_start = data['false_start']
        if not isinstance(false_start, bool):
            raise ValueError(f"false_start must be true or false, got {false_start!r}")
        reaction = data.get('reaction_ms')
        return cls(
            index=int(data['trial']),
            planned_delay_seconds=float(data['random_delay_seconds']),
            reaction_ms=float(reaction) if reaction is not None else None,
            false_start=false_start,
        )


@dataclass(frozen=True)
class RunSummary:
    """Summary statistics over the trials of a run."""

    trial_count: int
    valid_count: int
    false_start_count: int
    average_reaction_ms: Optional[float]


@dataclass(frozen=True)
class RunResult:
    """A finalized run. Built once by the aggregator and never mutated."""

    trial_count: int
    valid_count: int
    false_start_count: int
    average_reaction_ms: Optional[float]
    trials: Tuple[TrialRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.trial_count != len(self.trials):
            raise ValueError(f"trial_count {self.trial_count} does not match {len(self.trials)} trials")
        if self.valid_count + self.false_start_count != self.trial_count:
            raise ValueError("valid_count + false_start_count must equal trial_count")
        valid_times = [t.reaction_ms for t in self.trials if t.is_valid]
        if self.valid_count != len(valid_times):
            raise ValueError(f"valid_count {self.valid_count} does not match {len(valid_times)} valid trials")
        if (self.average_reaction_ms is None) != (self.valid_count == 0):
            raise ValueError("average_reaction_ms must be absent exactly when there are no valid trials")
        if valid_times:
            mean = math.fsum(valid_times) / len(valid_times)
            if not math.isclose(self.average_reaction_ms, mean, rel_tol=1e-9, abs_tol=1e-9):
                raise ValueError(f"average_reaction_ms {self.average_reaction_ms} is not the mean of the valid trials ({mean})")
        for expected, trial in enumerate(self.trials, start=1):
            if trial.index != expected:
                raise ValueError(f"Trial indices must run 1..N in order, found {trial.index} at position {expected}")

    @property
    def summary(self) -> RunSummary:
        return RunSummary(self.trial_count, self.valid_count, self.false_start_count, self.average_reaction_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Output record layout consumed by the control panel."""
        return {
            'trial_count': self.trial_count,
            'valid_count': self.valid_count,
            'false_start_count': self.false_start_count,
            'average_reaction_ms': self.average_reaction_ms,
            'trials': [trial.to_dict() for trial in self.trials],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RunResult':
        """
        Parse and validate an output record.

        Raises:
            ValueError: if fields are missing, mistyped or inconsistent
        """
        if not isinstance(data, dict):
            raise ValueError("Result record must be a JSON object")
        try:
            trials = tuple(TrialRecord.from_dict(entry) for entry in data['trials'])
            average = data.get('average_reaction_ms')
            return cls(
                trial_count=int(data['trial_count']),
                valid_count=int(data['valid_count']),
                false_start_count=int(data['false_start_count']),
                average_reaction_ms=float(average) if average is not None else None,
                trials=trials,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed result record: {e}") from e


@dataclass
class RunParameters:
    """Parameters of one run, as given on the command line or in config."""

    min_delay: float
    max_delay: float
    trial_count: int
    json_out: Optional[Path] = None
    csv_out: Optional[Path] = None
    seed: Optional[int] = None
    false_start_grace_ms: float = 0.0

    def validate(self) -> 'RunParameters':
        """
        Check the parameters before any trial runs.

        Raises:
            ConfigurationError: listing every violated constraint
        """
        problems: List[str] = []
        if not _is_finite(self.min_delay) or self.min_delay <= 0:
            problems.append(f"min delay must be > 0 (got {self.min_delay})")
        if not _is_finite(self.max_delay) or self.max_delay <= 0:
            problems.append(f"max delay must be > 0 (got {self.max_delay})")
        if _is_finite(self.min_delay) and _is_finite(self.max_delay) and self.min_delay >= self.max_delay:
            problems.append(f"min delay must be < max delay (got {self.min_delay} >= {self.max_delay})")
        if isinstance(self.trial_count, bool) or not isinstance(self.trial_count, int):
            problems.append(f"trial count must be an integer (got {self.trial_count!r})")
        elif self.trial_count <= 0:
            problems.append(f"trial count must be > 0 (got {self.trial_count})")
        elif self.trial_count > MAX_TRIAL_COUNT:
            problems.append(f"trial count must be <= {MAX_TRIAL_COUNT} (got {self.trial_count})")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0):
            problems.append(f"seed must be a non-negative integer (got {self.seed!r})")
        if not _is_finite(self.false_start_grace_ms) or self.false_start_grace_ms < 0:
            problems.append(f"false start grace must be >= 0 ms (got {self.false_start_grace_ms})")

        if problems:
            raise ConfigurationError("Invalid run parameters: " + "; ".join(problems))
        return self


def _is_finite(value) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False
