"""
Purple Reaction - reaction-time tester with a monotonic-clock trial engine.

This package provides modular components for:
- Randomized wait delays and the stimulus/input race of a single trial
- Sequencing trials into a run and aggregating the results
- JSON/CSV result records and process exit codes for a control panel
- A pygame stimulus window and a simulated participant

Main modules:
- core: Core utilities (logging, configuration, etc.)
- engine: Trial run engine (delays, monitor, sequencer, aggregator, controller)
- display: Stimulus/input backends (pygame window, simulation)
- launcher: Control-panel side that runs the engine as a child process

Example usage:
    >>> from purple_reaction.engine import RunController, RunParameters
    >>> from purple_reaction.display import SimulatedBackend, RandomParticipant
    >>> params = RunParameters(min_delay=0.5, max_delay=1.5, trial_count=3)
    >>> controller = RunController(params, SimulatedBackend(RandomParticipant(seed=1)))
    >>> exit_code = controller.execute()
"""

__version__ = "0.1.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"

# Import main components for easy access
from .core.logger import get_logger, setup_logging
from .core.config import load_config, get_config

from .engine.errors import ExitCode, ReactionEngineError, ConfigurationError, TrialAborted, OutputWriteError
from .engine.models import RunParameters, RunResult, TrialRecord
from .engine.controller import RunController
from .display import SimulatedBackend, create_backend

# Define what gets imported with "from purple_reaction import *"
__all__ = [
    # Version info
    '__version__',
    '__author__',
    '__email__',

    # Core utilities
    'get_logger',
    'setup_logging',
    'load_config',
    'get_config',

    # Engine
    'ExitCode',
    'ReactionEngineError',
    'ConfigurationError',
    'TrialAborted',
    'OutputWriteError',
    'RunParameters',
    'RunResult',
    'TrialRecord',
    'RunController',
    'SimulatedBackend',
    'create_backend',
]

# Package metadata
__title__ = "purple-reaction"
__description__ = "Reaction-time tester with a monotonic-clock trial engine and JSON/CSV result records"
__license__ = "MIT"
