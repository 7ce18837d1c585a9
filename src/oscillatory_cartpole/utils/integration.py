# utils/integration.py
from typing import Any, Callable

INTEGRATION_METHODS = ("euler", "rk4")


def euler_step(ode_func: Callable[[Any, Any, Any], Any],
               x: Any,
               u: Any,
               dt: float,
               params: Any) -> Any:
    """
    Performs one forward-Euler integration step (one derivative evaluation).

    Args:
        ode_func: Function with signature f(x, u, params) -> x_dot.
        x: Current state vector (numpy array or CasADi SX/DM).
        u: Control input held constant over the step.
        dt: Time step duration.
        params: Parameters expected by ode_func.

    Returns:
        The next state vector.
    """
    return x + dt * ode_func(x, u, params)


def rk4_step(ode_func: Callable[[Any, Any, Any], Any],
             x: Any,
             u: Any,
             dt: float,
             params: Any) -> Any:
    """
    Performs one classical 4th-order Runge-Kutta step (four derivative evaluations).

    Args:
        ode_func: Function with signature f(x, u, params) -> x_dot.
        x: Current state vector (numpy array or CasADi SX/DM).
        u: Control input held constant over the step.
        dt: Time step duration.
        params: Parameters expected by ode_func.

    Returns:
        The next state vector.
    """
    k1 = dt * ode_func(x, u, params)
    k2 = dt * ode_func(x + 0.5 * k1, u, params)
    k3 = dt * ode_func(x + 0.5 * k2, u, params)
    k4 = dt * ode_func(x + k3, u, params)
    return x + (k1 + 2 * k2 + 2 * k3 + k4) / 6


def integrate(ode_func, x, u, dt, params, method="euler"):
    """Advances x by one step of dt using the named method ('euler' or 'rk4')."""
    if method == "euler":
        return euler_step(ode_func, x, u, dt, params)
    elif method == "rk4":
        return rk4_step(ode_func, x, u, dt, params)
    else:
        raise ValueError(f"Unknown integration method: {method}")
