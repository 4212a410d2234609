"""
Logging utilities for the purple-reaction package.

Provides centralized logging configuration for the engine, the display
backends and the command-line tools. Supports both file and console logging
with configurable levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = 'purple_reaction'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - %(message)s'

_logging_configured = False
_default_log_file = None

def default_log_file() -> Path:
    """Default log location: ~/.purple_reaction/purple_reaction.log"""
    return Path.home() / '.purple_reaction' / 'purple_reaction.log'

def setup_logging(
    log_file: Optional[Union[str, Path]] = None,
    log_level: str = "INFO",
    console_level: Optional[str] = None,
    file_level: str = "DEBUG",
    log_format: Optional[str] = None,
    console_stream=None,
    force_reconfigure: bool = False
) -> Optional[Path]:
    """
    Setup logging for the purple-reaction package.

    Only the package logger is configured, so embedding applications keep
    control of the root logger.

    Args:
        log_file: Path to log file. If None, uses the default location.
        log_level: Package logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_level: Console handler level, defaults to log_level
        file_level: File handler level
        log_format: Custom log format string
        console_stream: Stream for the console handler, defaults to stdout
        force_reconfigure: Force reconfiguration even if already configured

    Returns:
        Path to the log file being used, or None if the file handler
        could not be created
    """
    global _logging_configured, _default_log_file

    if _logging_configured and not force_reconfigure:
        return Path(_default_log_file) if _default_log_file else None

    log_file = Path(log_file) if log_file is not None else default_log_file()
    console_level = console_level or log_level

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    package_logger.propagate = False

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT)

    _default_log_file = None
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        package_logger.addHandler(file_handler)
        _default_log_file = str(log_file)
    except OSError as e:
        print(f"Warning: could not set up file logger at {log_file}: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler(console_stream or sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
    package_logger.addHandler(console_handler)

    _logging_configured = True

    setup_logger = logging.getLogger(f"{PACKAGE_LOGGER}.core.logger")
    setup_logger.debug(f"Logging configured. Level: {log_level}, File level: {file_level}, Console level: {console_level}")
    if _default_log_file:
        setup_logger.debug(f"Log file: {_default_log_file}")

    return Path(_default_log_file) if _default_log_file else None

def get_logger(name: str, auto_setup: bool = True) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name (typically module name)
        auto_setup: Automatically setup logging if not already configured

    Returns:
        Logger instance
    """
    if auto_setup and not _logging_configured:
        setup_logging()

    if not name.startswith(PACKAGE_LOGGER):
        name = f'{PACKAGE_LOGGER}.{name}'

    return logging.getLogger(name)

def get_log_file_path() -> Optional[Path]:
    """Get the current log file path."""
    return Path(_default_log_file) if _default_log_file else None

