"""
Utility functions for the purple-reaction package.

Provides common helper functions used throughout the package.
"""

import os
import platform
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from .logger import get_logger

logger = get_logger(__name__)

def timestamp_string(format_str: str = "%Y%m%d_%H%M%S", utc: bool = False) -> str:
    """
    Generate a timestamp string.

    Args:
        format_str: Format string for datetime.strftime
        utc: Use UTC instead of local time

    Returns:
        Formatted timestamp string
    """
    now = datetime.now(timezone.utc) if utc else datetime.now()
    return now.strftime(format_str)

def atomic_write_text(file_path: Union[str, Path], text: str, encoding: str = 'utf-8', newline: str = None) -> Path:
    """
    Write text to a file so that readers see either the old file or the
    complete new one.

    The text goes to a temporary file in the destination directory, is
    flushed to disk and then renamed over the destination. On any failure
    the temporary file is removed and the exception propagates. The new
    file gets the permissions a plain open() would have given it.

    Args:
        file_path: Destination path
        text: Complete file content
        encoding: Text encoding
        newline: Newline translation passed to open()

    Returns:
        The destination path
    """
    file_path = Path(file_path)
    directory = file_path.parent if str(file_path.parent) else Path('.')

    fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding=encoding, newline=newline) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600 files; give the result the usual umask-derived mode
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_name, 0o666 & ~umask)
        os.replace(tmp_name, file_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.debug(f"Wrote {len(text)} characters to {file_path}")
    return file_path

def format_duration(seconds: float) -> str:
    """
    Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.1f}s"

def get_system_info() -> Dict[str, Any]:
    """
    Get system information for the about page and debugging.

    Returns:
        Dictionary with system information
    """
    return {
        'platform': platform.platform(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'processor': platform.processor(),
    }
