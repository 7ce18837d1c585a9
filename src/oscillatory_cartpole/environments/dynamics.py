import numpy as np


def dynamics_denominator(phi, params):
    """Shared denominator D = m*cos(2*phi) - m - 2*M of both accelerations."""
    m = params.pole_mass
    M = params.cart_mass
    return m * np.cos(2 * phi) - m - 2 * M


def cartpole_derivative(x, u, params):
    """
    Continuous-time cart-pole dynamics: frictionless cart, full nonlinear (not linearized) equations.

    Args:
        x (array-like): State [theta, theta_dot, r, r_dot].
        u (float): Horizontal force on the cart (N). Not clamped here.
        params (PhysicalParameters): Physical constants.

    Returns:
        np.ndarray: State derivative [theta_dot, theta_ddot, r_dot, r_ddot],
        in the same ordering as the state.
    """
    phi, phidot, _, rdot = x
    F = u

    g = params.gravity
    M = params.cart_mass
    m = params.pole_mass
    l = params.pole_length

    # Cache to avoid recomputation
    cphi = np.cos(phi)
    sphi = np.sin(phi)
    s2phi = np.sin(2 * phi)
    D = dynamics_denominator(phi, params)

    r_ddot = (-m * g * s2phi + 2 * l * m * sphi * phidot ** 2 - 2 * F) / D
    phi_ddot = 2 * (-g * (m + M) * sphi + l * m * cphi * sphi * phidot ** 2 - F * cphi) / (l * D)

    return np.array([phidot, phi_ddot, rdot, r_ddot], dtype=np.float64)
