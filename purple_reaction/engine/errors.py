"""
Error taxonomy and process exit codes for the trial run engine.

Errors travel as exceptions inside the engine. RunController.execute() and
the command-line entry point turn them into exit codes.
"""

from enum import Enum, IntEnum


class ExitCode(IntEnum):
    """Process exit codes consumed by the control panel."""

    OK = 0
    CONFIG_ERROR = 1
    OUTPUT_ERROR = 2
    ABORTED = 3
    QUIT = 4
    INTERNAL_ERROR = 5


class AbortReason(Enum):
    """Why a trial was torn down before reaching a terminal state."""

    ABORT = 'abort'  # Escape key or an abort request
    QUIT = 'quit'    # the stimulus window was closed


class ReactionEngineError(Exception):
    """Base class for engine errors."""

    exit_code = ExitCode.INTERNAL_ERROR


class ConfigurationError(ReactionEngineError, ValueError):
    """Invalid run parameters, detected before any trial starts."""

    exit_code = ExitCode.CONFIG_ERROR


class TrialAborted(ReactionEngineError):
    """The current trial was cancelled externally; the run is incomplete."""

    def __init__(self, reason: AbortReason = AbortReason.ABORT, trial_index: int = None):
        self.reason = reason
        self.trial_index = trial_index
        where = f" during trial {trial_index}" if trial_index is not None else ""
        super().__init__(f"Run aborted ({reason.value}){where}")

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.QUIT if self.reason is AbortReason.QUIT else ExitCode.ABORTED


class OutputWriteError(ReactionEngineError):
    """The result record could not be written to its destination."""

    exit_code = ExitCode.OUTPUT_ERROR
