"""
Trial run engine for the purple-reaction package.

The engine conducts a sequence of reaction-time trials and produces one
structured result record:

- delay: randomized inter-trial delays
- monitor: one trial's wait/stimulus/response timing window
- sequencer: strictly serial trial execution
- aggregator: per-trial records and summary statistics
- controller: parameter validation, run orchestration, exit codes
- serializer: atomic JSON and CSV output
"""

from .aggregator import ResultAggregator
from .backend import Backend, InputEvent, InputKind
from .clock import MonotonicClock, VirtualClock
from .controller import RunController
from .delay import DelayGenerator
from .errors import (
    AbortReason,
    ConfigurationError,
    ExitCode,
    OutputWriteError,
    ReactionEngineError,
    TrialAborted,
)
from .models import RunParameters, RunResult, RunSummary, TrialRecord
from .monitor import StimulusMonitor, TrialOutcome, TrialState
from .sequencer import TrialSequencer
from .serializer import render_csv, render_json, write_csv, write_json

__all__ = [
    'AbortReason',
    'Backend',
    'ConfigurationError',
    'DelayGenerator',
    'ExitCode',
    'InputEvent',
    'InputKind',
    'MonotonicClock',
    'OutputWriteError',
    'ReactionEngineError',
    'ResultAggregator',
    'RunController',
    'RunParameters',
    'RunResult',
    'RunSummary',
    'StimulusMonitor',
    'TrialAborted',
    'TrialOutcome',
    'TrialRecord',
    'TrialSequencer',
    'TrialState',
    'VirtualClock',
    'render_csv',
    'render_json',
    'write_csv',
    'write_json',
]
