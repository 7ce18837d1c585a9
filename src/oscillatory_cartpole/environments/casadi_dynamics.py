# casadi_dynamics.py
"""
Symbolic (CasADi) version of the cart-pole model.

Mirrors `dynamics.cartpole_derivative` so the same equations can be used by
gradient-based tools: a compiled discrete step function and the linearization
about the upright equilibrium.
"""
import casadi as ca
import numpy as np

from ..utils.integration import integrate


def cartpole_ode(x: ca.SX, u: ca.SX, params) -> ca.SX:
    """
    State derivative [theta_dot, theta_ddot, r_dot, r_ddot] for state
    [theta, theta_dot, r, r_dot] and horizontal force u.
    """
    phi, phidot, rdot = x[0], x[1], x[3]
    F = u[0]

    g = params.gravity
    M = params.cart_mass
    m = params.pole_mass
    l = params.pole_length

    cphi = ca.cos(phi)
    sphi = ca.sin(phi)
    s2phi = ca.sin(2 * phi)
    D = m * ca.cos(2 * phi) - m - 2 * M

    r_ddot = (-m * g * s2phi + 2 * l * m * sphi * phidot ** 2 - 2 * F) / D
    phi_ddot = 2 * (-g * (m + M) * sphi + l * m * cphi * sphi * phidot ** 2 - F * cphi) / (l * D)

    return ca.vertcat(phidot, phi_ddot, rdot, r_ddot)


def build_step_function(params, integration_method: str = "rk4") -> ca.Function:
    """
    Compiles x_next = step(x, u) for one time step of params.dt.

    Args:
        params (PhysicalParameters): Physical constants.
        integration_method (str): 'euler' or 'rk4'.

    Returns:
        ca.Function named 'cartpole_step' with inputs (x[4], u[1]).
    """
    x = ca.SX.sym("x", 4)
    u = ca.SX.sym("u", 1)
    x_next = integrate(cartpole_ode, x, u, params.dt, params, method=integration_method)
    return ca.Function("cartpole_step", [x, u], [x_next], ["x", "u"], ["x_next"])


def linearize_upright(params):
    """
    Continuous-time Jacobians A = df/dx, B = df/du at x = 0, u = 0.

    Returns:
        tuple[np.ndarray, np.ndarray]: A with shape (4, 4), B with shape (4, 1).
    """
    x = ca.SX.sym("x", 4)
    u = ca.SX.sym("u", 1)
    f = cartpole_ode(x, u, params)
    jac = ca.Function("cartpole_jacobians", [x, u], [ca.jacobian(f, x), ca.jacobian(f, u)])
    A, B = jac(np.zeros(4), np.zeros(1))
    return np.array(A), np.array(B)
