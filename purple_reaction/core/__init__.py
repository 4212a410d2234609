"""
Core utilities for the purple-reaction package.

This module provides essential utilities used throughout the package:
- Logging configuration and management
- Configuration file loading and management
- Common utility functions
"""

from .logger import get_logger, setup_logging
from .config import load_config, get_config, ConfigManager
from .utils import atomic_write_text, timestamp_string, get_system_info

__all__ = [
    'get_logger',
    'setup_logging',
    'load_config',
    'get_config',
    'ConfigManager',
    'atomic_write_text',
    'timestamp_string',
    'get_system_info',
]
