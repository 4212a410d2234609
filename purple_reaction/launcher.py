"""
Control-panel side of the engine's process contract.

ReactionLauncher starts the engine as a separate process with a unique
temporary result path, waits for it to exit and reads the result record.
A non-zero exit code and a missing or unparsable record are equally fatal;
the temporary file is always removed afterwards.
"""

import argparse
import json
import shlex
import subprocess
import sys
import tempfile
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from .core.logger import get_logger, setup_logging
from .core.utils import timestamp_string
from .engine.errors import ConfigurationError, ExitCode, OutputWriteError
from .engine.models import RunResult
from .engine.serializer import write_csv

logger = get_logger(__name__)

EXIT_CODE_MESSAGES = {
    ExitCode.CONFIG_ERROR: "invalid run parameters",
    ExitCode.OUTPUT_ERROR: "result file could not be written",
    ExitCode.ABORTED: "run aborted",
    ExitCode.QUIT: "stimulus window closed",
    ExitCode.INTERNAL_ERROR: "unexpected engine error",
}


class LaunchError(Exception):
    """The engine run did not produce a usable result."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


def default_engine_command() -> List[str]:
    return [sys.executable, '-m', 'purple_reaction']


def summary_line(result: RunResult) -> str:
    """One-line summary as shown under the results list."""
    average = "N/A" if result.average_reaction_ms is None else f"{result.average_reaction_ms:.3f}"
    return (f"Trials: {result.trial_count}, Valid: {result.valid_count}, "
            f"False Starts: {result.false_start_count}, Average: {average} ms")


def format_trial_rows(result: RunResult) -> List[str]:
    """Rows of the results list: trial, delay, reaction, false start."""
    rows = [f"{'Trial':>5}  {'Delay (s)':>9}  {'Reaction (ms)':>13}  {'False start':>11}"]
    for trial in result.trials:
        reaction = "-" if trial.reaction_ms is None else f"{trial.reaction_ms:.3f}"
        rows.append(f"{trial.index:>5}  {trial.planned_delay_seconds:>9.3f}  {reaction:>13}  "
                    f"{'Yes' if trial.false_start else 'No':>11}")
    return rows


class ReactionLauncher:
    """
    Runs the engine executable and reads back its result record.

    Args:
        engine_command: Command that starts the engine; the run arguments
            are appended to it
        temp_dir: Directory for the temporary result file
        extra_args: Additional engine arguments (e.g. ``--simulate``)
        timeout: Optional limit in seconds for the engine process
    """

    def __init__(
        self,
        engine_command: Optional[Sequence[str]] = None,
        temp_dir: Optional[Path] = None,
        extra_args: Sequence[str] = (),
        timeout: Optional[float] = None,
    ):
        self.engine_command = list(engine_command) if engine_command else default_engine_command()
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.extra_args = list(extra_args)
        self.timeout = timeout

    @staticmethod
    def validate_settings(min_delay: float, max_delay: float, trials: int):
        if min_delay <= 0.0 or max_delay <= 0.0 or min_delay >= max_delay or trials <= 0:
            raise ConfigurationError("Settings out of range. Ensure min > 0, max > min, trials > 0.")

    def build_output_path(self) -> Path:
        name = f"PurpleReaction_{timestamp_string(utc=True)}_{uuid.uuid4().hex}.json"
        return self.temp_dir / name

    def build_command(self, min_delay: float, max_delay: float, trials: int, json_path: Path) -> List[str]:
        return self.engine_command + [
            '--run-once',
            '--min-delay', repr(float(min_delay)),
            '--max-delay', repr(float(max_delay)),
            '--trials', str(int(trials)),
            '--json-out', str(json_path),
        ] + self.extra_args

    def run(self, min_delay: float, max_delay: float, trials: int) -> RunResult:
        """
        Run the engine once and return its result.

        Raises:
            ConfigurationError: settings rejected before launching
            LaunchError: the engine could not be started, failed, or left no
                readable record
        """
        self.validate_settings(min_delay, max_delay, trials)
        json_path = self.build_output_path()
        command = self.build_command(min_delay, max_delay, trials, json_path)
        logger.info(f"Executing command: {' '.join(shlex.quote(part) for part in command)}")

        try:
            try:
                completed = subprocess.run(command, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE,
                                           text=True, timeout=self.timeout)
            except OSError as e:
                raise LaunchError(f"Failed to start test process: {e}") from e
            except subprocess.TimeoutExpired as e:
                raise LaunchError(f"Test process did not finish within {self.timeout} s") from e

            if completed.returncode != 0:
                reason = EXIT_CODE_MESSAGES.get(completed.returncode, "unknown failure")
                if completed.stderr:
                    logger.debug(f"Engine stderr: {completed.stderr.strip()}")
                raise LaunchError(f"Test process exited with code {completed.returncode} ({reason}).",
                                  exit_code=completed.returncode)

            if not json_path.exists():
                raise LaunchError("Run completed but JSON output is missing.")

            try:
                with open(json_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                result = RunResult.from_dict(data)
            except (OSError, ValueError) as e:
                raise LaunchError(f"Failed to parse JSON output: {e}") from e

            logger.info(f"Run completed. {summary_line(result)}")
            return result
        finally:
            try:
                json_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not delete temporary result file {json_path}: {e}")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='purple-reaction-launch',
        description='Launch the reaction-time engine, wait for it and show the results.',
    )
    parser.add_argument('--engine', type=str, help='Engine command line (default: this Python running purple_reaction)')
    parser.add_argument('--min-delay', type=float, default=2.0, help='Minimum random delay in seconds')
    parser.add_argument('--max-delay', type=float, default=5.0, help='Maximum random delay in seconds')
    parser.add_argument('--trials', type=int, default=10, help='Number of trials')
    parser.add_argument('--csv-out', type=str, help='Export the returned trials as CSV')
    parser.add_argument('--simulate', action='store_true', help='Run the engine with a simulated participant')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], default='WARNING')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, force_reconfigure=True)

    launcher = ReactionLauncher(
        engine_command=shlex.split(args.engine) if args.engine else None,
        extra_args=['--simulate'] if args.simulate else (),
    )
    print("Running fullscreen test...")
    try:
        result = launcher.run(args.min_delay, args.max_delay, args.trials)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return ExitCode.CONFIG_ERROR
    except LaunchError as e:
        print(f"Run failed: {e}", file=sys.stderr)
        # Signal deaths show up as negative return codes
        if e.exit_code is None or e.exit_code <= 0:
            return ExitCode.INTERNAL_ERROR
        return e.exit_code

    for row in format_trial_rows(result):
        print(row)
    print(summary_line(result))

    if args.csv_out:
        try:
            write_csv(result, args.csv_out)
        except OutputWriteError as e:
            print(str(e), file=sys.stderr)
            return ExitCode.OUTPUT_ERROR
        print(f"CSV exported: {args.csv_out}")

    print("Run completed.")
    return ExitCode.OK


if __name__ == '__main__':
    sys.exit(main())
