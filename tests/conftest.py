import asyncio
import os

import pytest

from purple_reaction.core import config as config_module
from purple_reaction.core.logger import setup_logging
from purple_reaction.display.simulated import ScriptedParticipant, SimulatedBackend, SimulatedResponse
from purple_reaction.engine import RunController, RunParameters


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path_factory, monkeypatch):
    """Keep test logs out of the home directory and clear env overrides."""
    for key in list(os.environ):
        if key.startswith(config_module.ENV_PREFIX):
            monkeypatch.delenv(key)
    setup_logging(log_file=tmp_path_factory.mktemp("logs") / "test.log", log_level="DEBUG", console_level="WARNING",
                  force_reconfigure=True)
    config_module.reset_config()
    yield
    config_module.reset_config()


def scripted_backend(*responses):
    return SimulatedBackend(ScriptedParticipant(responses))


def run_scripted(responses, trial_count=None, min_delay=0.5, max_delay=1.5, seed=7, **params):
    """Run a controller against a scripted participant and return the result."""
    params = RunParameters(min_delay=min_delay, max_delay=max_delay,
                           trial_count=trial_count or len(responses), seed=seed, **params)
    controller = RunController(params, scripted_backend(*responses))
    return asyncio.run(controller.run())


react = SimulatedResponse.react
false_start = SimulatedResponse.false_start
abort = SimulatedResponse.abort
abort_after_stimulus = SimulatedResponse.abort_after_stimulus
quit_window = SimulatedResponse.quit
