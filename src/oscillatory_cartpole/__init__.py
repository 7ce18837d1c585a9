"""
Oscillatory cart-pole: an inverted pendulum on a frictionless cart, simulated
as a discrete-time control / reinforcement-learning environment.
"""
from .errors import (
    CartPoleError,
    InvalidParameterError,
    InvalidStateError,
    NumericalDivergenceError,
    StepAfterTerminationError,
)
from .utils.parameters import PhysicalParameters, load_cartpole_params
from .environments.oscillatory_cartpole import CartPoleEpisode, EpisodeStatus, compute_reward

__version__ = "0.1.0"
