"""
Run controller: validates the parameters, drives the trials and hands the
finalized result to the serializer.
"""

import asyncio
import signal
import time
from typing import Any, Callable, Dict, Optional

from ..core.logger import get_logger
from ..core.utils import format_duration
from .aggregator import ResultAggregator
from .backend import Backend
from .delay import DelayGenerator
from .errors import AbortReason, ConfigurationError, ExitCode, OutputWriteError, TrialAborted
from .models import RunParameters, RunResult, TrialRecord
from .monitor import StimulusMonitor
from .sequencer import TrialSequencer
from .serializer import write_csv, write_json


class RunController:
    """
    Owns one run from parameter validation to the written result record.

    The run result is built only after every trial reached a terminal
    state. An aborted run produces no result and no output files.
    """

    def __init__(
        self,
        params: RunParameters,
        backend: Backend,
        delays: Optional[DelayGenerator] = None,
        on_trial_start: Optional[Callable[[int, int, float], None]] = None,
        on_trial_done: Optional[Callable[[TrialRecord, int], None]] = None,
        csv_precision: int = 6,
    ):
        self.params = params
        self.backend = backend
        self.delays = delays
        self.on_trial_start = on_trial_start
        self.on_trial_done = on_trial_done
        self.csv_precision = csv_precision
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

        self._sequencer: Optional[TrialSequencer] = None
        self._is_running = False
        self._abort_requested = False
        self._start_time = None
        self.result: Optional[RunResult] = None

    async def run(self) -> RunResult:
        """
        Validate the parameters and run every trial.

        Raises:
            ConfigurationError: before any trial, if the parameters are invalid
            TrialAborted: if the run was cancelled; no result is produced
        """
        params = self.params.validate()
        if self.delays is None:
            self.delays = DelayGenerator(seed=params.seed)
        self.logger.info(
            f"Starting run: {params.trial_count} trials, delay {params.min_delay:.3f}-{params.max_delay:.3f} s"
        )

        aggregator = ResultAggregator()
        self._is_running = True
        self._start_time = time.monotonic()
        try:
            async with self.backend:
                monitor = StimulusMonitor(self.backend, params.false_start_grace_ms)
                self._sequencer = TrialSequencer(
                    monitor, self.delays, aggregator,
                    on_trial_start=self.on_trial_start,
                    on_trial_done=self.on_trial_done,
                )
                await self._sequencer.run(params.trial_count, params.min_delay, params.max_delay)
        except TrialAborted as e:
            self.logger.warning(f"{e}; {len(aggregator)} of {params.trial_count} trials finished, discarding run")
            raise
        finally:
            self._is_running = False
            elapsed = time.monotonic() - self._start_time
            self.logger.info(f"Run finished after {format_duration(elapsed)}")

        self.result = aggregator.finalize()
        summary = self.result.summary
        average = "N/A" if summary.average_reaction_ms is None else f"{summary.average_reaction_ms:.3f} ms"
        self.logger.info(
            f"Valid trials: {summary.valid_count}, false starts: {summary.false_start_count}, average: {average}"
        )
        return self.result

    def abort(self, reason: AbortReason = AbortReason.ABORT):
        """Abort the current trial and stop the run. Thread-safe."""
        self._abort_requested = True
        self.logger.info(f"Run abort requested ({reason.value})")
        self.backend.request_abort(reason)

    def write_outputs(self, result: RunResult):
        """
        Write the requested output files.

        The JSON record is written last, so its presence implies every
        requested output was written. If a write fails, files already
        written for this run are removed again.

        Raises:
            OutputWriteError: on the first failed write
        """
        written = []
        try:
            if self.params.csv_out:
                written.append(write_csv(result, self.params.csv_out, self.csv_precision))
            if self.params.json_out:
                written.append(write_json(result, self.params.json_out))
        except OutputWriteError:
            for path in written:
                try:
                    path.unlink()
                    self.logger.info(f"Removed {path} after failed output write")
                except OSError as e:
                    self.logger.warning(f"Could not remove {path}: {e}")
            raise

    async def run_and_write(self) -> RunResult:
        result = await self.run()
        self.write_outputs(result)
        return result

    def execute(self) -> ExitCode:
        """
        Run synchronously and map the outcome to a process exit code.

        SIGINT and SIGTERM abort the run where the event loop supports
        signal handlers.
        """
        return asyncio.run(self._execute())

    async def _execute(self) -> ExitCode:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.abort)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                pass

        try:
            await self.run_and_write()
            return ExitCode.OK
        except ConfigurationError as e:
            self.logger.error(str(e))
            return e.exit_code
        except TrialAborted as e:
            self.logger.warning(f"Run incomplete, no results written: {e}")
            return e.exit_code
        except OutputWriteError as e:
            self.logger.error(str(e))
            return e.exit_code
        except Exception:
            self.logger.exception("Unexpected error during run")
            return ExitCode.INTERNAL_ERROR
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current run status.

        Returns:
            Dictionary containing run status information
        """
        elapsed = 0.0
        if self._start_time is not None:
            elapsed = time.monotonic() - self._start_time
        return {
            'is_running': self._is_running,
            'abort_requested': self._abort_requested,
            'current_trial': self._sequencer.current_trial if self._sequencer else 0,
            'total_trials': self.params.trial_count,
            'elapsed_time': elapsed,
        }
