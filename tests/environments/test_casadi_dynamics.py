import sys
from pathlib import Path

# Add src/ to the Python path
src_root = str(Path(__file__).resolve().parent.parent.parent / "src")
if src_root not in sys.path:
    sys.path.insert(0, src_root)

import numpy as np
import casadi as ca
import pytest

from oscillatory_cartpole.environments.casadi_dynamics import build_step_function, cartpole_ode, linearize_upright
from oscillatory_cartpole.environments.dynamics import cartpole_derivative
from oscillatory_cartpole.utils.integration import integrate
from oscillatory_cartpole.utils.parameters import PhysicalParameters


@pytest.fixture
def params():
    return PhysicalParameters()


def test_symbolic_ode_matches_numpy(params):
    x = ca.SX.sym('x', 4)
    u = ca.SX.sym('u', 1)
    f = ca.Function('f', [x, u], [cartpole_ode(x, u, params)])

    for state, F in [([0.3, 1.5, 0.2, -0.7], 1.0), ([-0.8, 0.0, 3.0, 2.0], -12.0)]:
        casadi_dx = np.array(f(state, [F])).flatten()
        np.testing.assert_allclose(casadi_dx, cartpole_derivative(np.array(state), F, params), rtol=1e-10, atol=1e-12)


@pytest.mark.parametrize("method", ["euler", "rk4"])
def test_step_function_matches_numpy_integration(params, method):
    step_fn = build_step_function(params, integration_method=method)
    x = np.array([0.2, -0.1, 0.5, 0.3])

    for _ in range(50):
        expected = integrate(cartpole_derivative, x, 2.0, params.dt, params, method=method)
        x_next = np.array(step_fn(x, np.array([2.0]))).flatten()
        np.testing.assert_allclose(x_next, expected, rtol=1e-10, atol=1e-12)
        x = x_next


def test_step_function_rejects_unknown_method(params):
    with pytest.raises(ValueError):
        build_step_function(params, integration_method="midpoint")


def test_linearization_at_upright(params):
    A, B = linearize_upright(params)
    M, m, l, g = params.cart_mass, params.pole_mass, params.pole_length, params.gravity

    assert A.shape == (4, 4)
    assert B.shape == (4, 1)

    expected_A = np.array([
        [0.0, 1.0, 0.0, 0.0],
        [g * (m + M) / (l * M), 0.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
        [m * g / M, 0.0, 0.0, 0.0],
    ])
    expected_B = np.array([[0.0], [1.0 / (l * M)], [0.0], [1.0 / M]])
    np.testing.assert_allclose(A, expected_A, atol=1e-12)
    np.testing.assert_allclose(B, expected_B, atol=1e-12)
