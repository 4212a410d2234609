"""
Stimulus/input backends for the trial run engine.

- SimulatedBackend: simulated participant, virtual clock, no window
- PygameBackend: full-screen pygame window (imported on demand)
"""

from typing import Any, Dict, Optional

from ..engine.delay import PARTICIPANT_STREAM, seed_stream
from .simulated import (
    RandomParticipant,
    ScriptedParticipant,
    SimulatedBackend,
    SimulatedResponse,
)


def create_backend(config: Dict[str, Any], simulate: bool = False, fullscreen: Optional[bool] = None,
                   seed: Optional[int] = None):
    """
    Build the backend selected by the command line and configuration.

    Args:
        config: Complete configuration dictionary
        simulate: Use a random simulated participant instead of a window
        fullscreen: Override display.fullscreen
        seed: Seed for the simulated participant
    """
    if simulate:
        sim = config.get('simulation', {})
        participant = RandomParticipant(
            mean_reaction_ms=sim.get('mean_reaction_ms', 250.0),
            sd_reaction_ms=sim.get('sd_reaction_ms', 40.0),
            min_reaction_ms=sim.get('min_reaction_ms', 100.0),
            false_start_probability=sim.get('false_start_probability', 0.05),
            seed=seed_stream(seed, PARTICIPANT_STREAM),
        )
        return SimulatedBackend(participant)

    from .pygame_backend import PygameBackend
    return PygameBackend.from_config(config.get('display', {}), config.get('input', {}), fullscreen=fullscreen)


__all__ = [
    'RandomParticipant',
    'ScriptedParticipant',
    'SimulatedBackend',
    'SimulatedResponse',
    'create_backend',
]
