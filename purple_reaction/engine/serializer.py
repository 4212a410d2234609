"""
Writes run results to disk.

Both writers are all-or-nothing: the content is rendered in memory, written
to a temporary file beside the destination and renamed into place. A failed
write leaves no file a reader could mistake for a result.
"""

import csv
import io
import json
from pathlib import Path
from typing import Union

from ..core.logger import get_logger
from ..core.utils import atomic_write_text
from .errors import OutputWriteError
from .models import RunResult

logger = get_logger(__name__)

CSV_HEADER = ['trial', 'random_delay_seconds', 'reaction_ms', 'false_start']


def render_json(result: RunResult) -> str:
    return json.dumps(result.to_dict(), indent=2, allow_nan=False) + "\n"


def render_csv(result: RunResult, precision: int = 6) -> str:
    """
    Render the CSV export.

    One row per trial, false_start as 1/0 and an empty reaction time for
    false starts, followed by an ``average`` row. The average cell is empty
    when no trial was valid.
    """
    def fmt(value: float) -> str:
        return f"{value:.{precision}f}"

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for trial in result.trials:
        writer.writerow([
            trial.index,
            fmt(trial.planned_delay_seconds),
            '' if trial.reaction_ms is None else fmt(trial.reaction_ms),
            1 if trial.false_start else 0,
        ])
    average = result.average_reaction_ms
    writer.writerow(['average', '', '' if average is None else fmt(average), ''])
    return buffer.getvalue()


def write_json(result: RunResult, path: Union[str, Path]) -> Path:
    """Write the output record for the control panel."""
    return _write(path, render_json(result), 'JSON')


def write_csv(result: RunResult, path: Union[str, Path], precision: int = 6) -> Path:
    """Write the CSV export."""
    return _write(path, render_csv(result, precision), 'CSV')


def _write(path: Union[str, Path], text: str, kind: str) -> Path:
    path = Path(path)
    try:
        atomic_write_text(path, text, newline='')
    except OSError as e:
        logger.error(f"Failed to write {kind} output to {path}: {e}")
        raise OutputWriteError(f"Could not write {kind} output to {path}: {e}") from e
    logger.info(f"{kind} exported: {path}")
    return path
