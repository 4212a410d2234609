"""
Interactive console menu for the purple-reaction engine.

Used when the engine is started without ``--run-once``: start test runs,
change the run settings, read the about page and export results as CSV.
"""

import asyncio
import math
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from . import __version__
from .core.logger import get_logger
from .core.utils import get_system_info, timestamp_string
from .engine.controller import RunController
from .engine.errors import AbortReason, OutputWriteError, TrialAborted
from .engine.models import MAX_TRIAL_COUNT, RunParameters, RunResult, TrialRecord
from .engine.serializer import write_csv

logger = get_logger("menu")

ABOUT_TEXT = """Purpose: measure human reaction time with low-latency timing.
Timing: monotonic high-resolution clock (perf_counter_ns) for stimulus and input timestamps.
Input: any keyboard key, mouse button or joystick button. Esc aborts a run.
Display: pygame fullscreen window, VSync flip.
Stimulus: black screen -> white screen only (no animations)."""


def default_csv_filename() -> str:
    return f"PurpleReaction_{timestamp_string()}.csv"


def format_results(result: RunResult) -> str:
    """Results table printed after a completed run."""
    lines = ["", "=== Results ==="]
    for trial in result.trials:
        if trial.false_start:
            lines.append(f"Trial {trial.index}: delay={trial.planned_delay_seconds:.3f} s, FALSE START")
        else:
            lines.append(f"Trial {trial.index}: delay={trial.planned_delay_seconds:.3f} s, "
                         f"reaction={trial.reaction_ms:.3f} ms")
    if result.average_reaction_ms is not None:
        lines.append(f"Average reaction (valid only): {result.average_reaction_ms:.3f} ms")
    lines.append(f"Valid trials: {result.valid_count}, false starts: {result.false_start_count}")
    lines.append("================")
    return "\n".join(lines)


class ConsoleMenu:
    """
    Text menu around the run controller.

    Args:
        config: Complete configuration dictionary
        params: Initial run parameters (already validated)
        simulate: Use a simulated participant instead of the stimulus window
        fullscreen: Override display.fullscreen
        backend_factory: Builds a fresh backend per run; defaults to
            display.create_backend
        input_func: Replaces input() (tests)
        print_func: Replaces print() (tests)
    """

    def __init__(
        self,
        config: Dict[str, Any],
        params: RunParameters,
        simulate: bool = False,
        fullscreen: Optional[bool] = None,
        backend_factory: Optional[Callable[[], Any]] = None,
        input_func: Optional[Callable[[str], str]] = None,
        print_func: Optional[Callable[..., None]] = None,
    ):
        self.config = config
        self.params = replace(params, json_out=None, csv_out=None)
        self.simulate = simulate
        self.fullscreen = fullscreen
        self.backend_factory = backend_factory or self._default_backend
        self.input = input_func or input
        self.print = print_func or print
        self.quit_requested = False
        self.last_result: Optional[RunResult] = None
        self.actions = [
            {"name": "Start test", "command": self.start_tests},
            {"name": "Settings", "command": self.show_settings},
            {"name": "About", "command": self.show_about},
            {"name": "Quit", "command": self.quit},
        ]

    def _default_backend(self):
        from .display import create_backend
        return create_backend(self.config, simulate=self.simulate, fullscreen=self.fullscreen,
                              seed=self.params.seed)

    def read_line(self, prompt: str) -> str:
        try:
            return self.input(prompt).strip()
        except EOFError:
            self.quit_requested = True
            return ""

    def prompt_choice(self, prompt: str, min_value: int, max_value: int) -> int:
        """Ask until a number in [min_value, max_value] is entered."""
        while True:
            line = self.read_line(prompt)
            if self.quit_requested:
                return max_value
            try:
                value = int(line)
            except ValueError:
                value = None
            if value is not None and min_value <= value <= max_value:
                return value
            self.print(f"Invalid selection. Enter {min_value}-{max_value}.")

    def run(self) -> int:
        """Main menu loop. Returns the process exit code."""
        self.print("PurpleReaction ready.")
        while not self.quit_requested:
            self.print("")
            self.print("=== PurpleReaction ===")
            self.print(f"Current settings: delay {self.params.min_delay:.3f}-{self.params.max_delay:.3f} s, "
                       f"trials {self.params.trial_count}")
            for i, action in enumerate(self.actions, 1):
                self.print(f"{i}. {action['name']}")
            choice = self.prompt_choice("Select option: ", 1, len(self.actions))
            if self.quit_requested:
                break
            self.actions[choice - 1]["command"]()
        logger.info("Menu closed")
        return 0

    def quit(self):
        self.quit_requested = True

    def start_tests(self):
        """Run tests until the user goes back to the menu or quits."""
        while not self.quit_requested:
            self.run_session(prompt_for_start=True)
            if self.quit_requested:
                return
            if self.last_result is not None:
                self.prompt_csv_export(self.last_result)

            self.print("")
            self.print("=== Next Action ===")
            self.print("1. Redo test")
            self.print("2. Back to main menu")
            self.print("3. Quit")
            choice = self.prompt_choice("Select option: ", 1, 3)
            if choice == 2:
                return
            if choice == 3:
                self.quit_requested = True

    def run_session(self, prompt_for_start: bool = True) -> Optional[RunResult]:
        """
        Run one test session.

        Returns:
            The run result, or None if the run was aborted or the window closed
        """
        self.last_result = None
        self.print("")
        self.print("=== Test Run ===")
        self.print("Wait for white screen, then press any key or mouse button as fast as possible.")
        self.print("Press Esc during a run to abort back to menu.")
        if prompt_for_start:
            self.print("Fullscreen starts after you press Enter.")
            self.read_line("Press Enter to begin...")
            if self.quit_requested:
                return None

        controller = RunController(
            self.params,
            self.backend_factory(),
            on_trial_start=self._on_trial_start,
            on_trial_done=self._on_trial_done,
        )
        try:
            result = asyncio.run(controller.run())
        except TrialAborted as e:
            if e.reason is AbortReason.QUIT:
                self.quit_requested = True
            else:
                self.print("")
                self.print("Run aborted.")
            return None

        self.print(format_results(result))
        self.last_result = result
        return result

    def _on_trial_start(self, index: int, total: int, delay: float):
        self.print(f"Trial {index}/{total}: waiting {delay:.3f} s")

    def _on_trial_done(self, record: TrialRecord, total: int):
        if record.false_start:
            self.print("  False start: input before stimulus.")
        else:
            self.print(f"  Reaction: {record.reaction_ms:.3f} ms")

    def prompt_csv_export(self, result: RunResult):
        """Offer to export the last run as CSV."""
        precision = self.config.get('output', {}).get('csv_precision', 6)
        export_dir = Path(self.config.get('output', {}).get('export_dir', '.'))
        while not self.quit_requested:
            self.print("")
            self.print("=== CSV Export ===")
            self.print("1. Export to default filename")
            self.print("2. Export to custom path")
            self.print("3. Skip")
            choice = self.prompt_choice("Select option: ", 1, 3)
            if choice == 3:
                return

            if choice == 1:
                path = export_dir / default_csv_filename()
            else:
                line = self.read_line("Enter CSV output path: ")
                if not line:
                    self.print("Path cannot be empty.")
                    continue
                path = Path(line)

            try:
                write_csv(result, path, precision)
            except OutputWriteError as e:
                self.print(f"Failed to write CSV: {e}")
                continue
            self.print(f"CSV exported: {path}")
            return

    def show_settings(self):
        """Edit min delay, max delay and trial count."""
        while not self.quit_requested:
            self.print("")
            self.print("=== Settings ===")
            self.print(f"1. Min random delay (seconds): {self.params.min_delay:.3f}")
            self.print(f"2. Max random delay (seconds): {self.params.max_delay:.3f}")
            self.print(f"3. Trial count: {self.params.trial_count}")
            self.print("4. Back")
            choice = self.prompt_choice("Select option: ", 1, 4)
            if choice == 4:
                return

            if choice == 1:
                value = _parse_float(self.read_line("New min delay (seconds): "))
                if value is None or value <= 0.0 or value >= self.params.max_delay:
                    self.print("Invalid value. Must be > 0 and < current max delay.")
                    continue
                self.params = replace(self.params, min_delay=value)
            elif choice == 2:
                value = _parse_float(self.read_line("New max delay (seconds): "))
                if value is None or value <= self.params.min_delay:
                    self.print("Invalid value. Must be > current min delay.")
                    continue
                self.params = replace(self.params, max_delay=value)
            else:
                value = _parse_int(self.read_line("New trial count: "))
                if value is None or not 1 <= value <= MAX_TRIAL_COUNT:
                    self.print("Invalid value. Must be a positive integer.")
                    continue
                self.params = replace(self.params, trial_count=value)
            logger.info(f"Settings changed: delay {self.params.min_delay}-{self.params.max_delay} s, "
                        f"trials {self.params.trial_count}")

    def show_about(self):
        self.print("")
        self.print("=== About PurpleReaction ===")
        self.print(ABOUT_TEXT)
        self.print(f"Version: {__version__}")
        for key, value in get_system_info().items():
            self.print(f"{key:15} {value}")
        self.print("============================")
        self.read_line("Press Enter to return to menu...")


def _parse_float(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None
