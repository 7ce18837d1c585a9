"""
Exceptions raised by the cart-pole environment.

All of them are local, synchronous failures: nothing is retried and a failed
call leaves the episode exactly as it was before the call.
"""


class CartPoleError(Exception):
    """Base class for all cart-pole environment errors."""


class InvalidParameterError(CartPoleError, ValueError):
    """A physical parameter or configuration value is unusable (non-finite, non-positive, unknown)."""


class InvalidStateError(CartPoleError, ValueError):
    """A state is not a finite, real 4-vector (theta, theta_dot, r, r_dot)."""


class NumericalDivergenceError(CartPoleError, ArithmeticError):
    """The integrator produced a non-finite state from finite inputs."""


class StepAfterTerminationError(CartPoleError, RuntimeError):
    """step() was called while the episode is not running (terminated or never reset)."""
