"""
Cart-pole environment: dynamics, episode state machine and gymnasium adapter.

The gymnasium id is not registered on import. Call
`register_oscillatory_cartpole()` before `gym.make("OscillatoryCartPole-v0")`,
including inside subprocesses started with the 'spawn' method.
"""
from .dynamics import cartpole_derivative, dynamics_denominator
from .oscillatory_cartpole import (
    ENV_ID,
    CartPoleEpisode,
    EpisodeStatus,
    OscillatoryCartPoleEnv,
    compute_reward,
    is_terminal,
    make_env,
    register_oscillatory_cartpole,
    reward_components,
    sample_initial_state,
    validate_state,
)
