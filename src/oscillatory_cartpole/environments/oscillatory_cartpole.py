"""
Oscillatory cart-pole environment.

This module simulates an inverted pendulum on a frictionless cart as a
discrete-time control / reinforcement-learning environment. It is split in
two layers:

1.  **`CartPoleEpisode` (core):**
    *   Owns the current state `[theta, theta_dot, r, r_dot]`, the simulation
      clock `t` and the state / force histories.
    *   `reset()` samples theta0 uniformly in ±15°, r0 uniformly in ±1 m, and
      zero velocities (or takes an explicit, validated initial state).
    *   `step(force)` advances the dynamics by one `dt` with the episode's
      integrator (Euler by default, RK4 optional), checks termination on the
      new state and returns `(observation, reward, done)`.
    *   It does not depend on any training framework; a harness drives it
      through `reset()` / `step()` only.

2.  **`OscillatoryCartPoleEnv` (Gymnasium adapter):**
    *   Declares a 4-D observation space and a 1-D action space of
      `[-action_limit, action_limit]` (default ±15 N). This range is
      deliberately independent of `PhysicalParameters.max_force`; actions are
      clipped to the declared space only. Use `ForceLimitWrapper` to clamp to
      `max_force` instead.
    *   Registered as `OscillatoryCartPole-v0` by calling
      `register_oscillatory_cartpole()` explicitly.

Reward (computed on the post-step state, with the force that produced it):

    R = -0.1 * (5*theta² + r² + 0.05*F²)    quadratic regulation cost
        + 0.1 * [|theta| < 10°]              near-upright bonus
        - 100 * [done]                       failure penalty

Termination: `|r| > displacement_threshold` or `|theta| > angle_threshold`.
Once terminated the episode must be reset before stepping again.
"""
import enum

import gymnasium as gym
import numpy as np
from gymnasium import spaces
from gymnasium.envs.registration import register

from ..errors import (
    InvalidParameterError,
    InvalidStateError,
    NumericalDivergenceError,
    StepAfterTerminationError,
)
from ..utils.integration import INTEGRATION_METHODS, integrate
from ..utils.parameters import PhysicalParameters, load_cartpole_params
from .dynamics import cartpole_derivative

ENV_ID = "OscillatoryCartPole-v0"
STATE_DIM = 4
STATE_LABELS = ("theta", "theta_dot", "r", "r_dot")

INIT_THETA_RANGE = np.deg2rad(15.0)  # rad
INIT_R_RANGE = 1.0  # m
UPRIGHT_ANGLE = np.deg2rad(10.0)  # rad
UPRIGHT_BONUS = 0.1
FAILURE_PENALTY = 100.0
DEFAULT_ACTION_LIMIT = 15.0  # N


class EpisodeStatus(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    TERMINATED = "terminated"


def validate_state(state):
    """
    Checks that `state` is a finite, real 4-vector and returns it as a float64 array.

    Column / row vectors of 4 elements are accepted and flattened.

    Raises:
        InvalidStateError: wrong number of components, non-numeric or non-finite values.
    """
    try:
        raw = np.asarray(state)
    except (TypeError, ValueError) as e:
        raise InvalidStateError(f"State must be a numeric 4-vector, got {state!r}") from e

    if raw.dtype.kind not in "iuf":
        raise InvalidStateError(f"State must contain real numbers, got dtype {raw.dtype}")
    if raw.size != STATE_DIM or raw.ndim > 2 or (raw.ndim == 2 and min(raw.shape) != 1):
        raise InvalidStateError(
            f"State must have exactly {STATE_DIM} components {STATE_LABELS}, got shape {raw.shape}"
        )

    arr = raw.astype(np.float64).reshape(STATE_DIM)
    if not np.all(np.isfinite(arr)):
        raise InvalidStateError(f"State must be finite, got {arr}")
    return arr


def sample_initial_state(rng):
    """theta0 ~ U[-15°, 15°], r0 ~ U[-1, 1] m, both velocities zero."""
    theta0 = rng.uniform(-INIT_THETA_RANGE, INIT_THETA_RANGE)
    r0 = rng.uniform(-INIT_R_RANGE, INIT_R_RANGE)
    return np.array([theta0, 0.0, r0, 0.0], dtype=np.float64)


def is_terminal(state, params):
    """True once the cart or the pole has left its allowed band."""
    theta, r = state[0], state[2]
    return bool(abs(r) > params.displacement_threshold or abs(theta) > params.angle_threshold)


def reward_components(state, force, done):
    """
    Splits the step reward into its three additive terms.

    Args:
        state (array-like): Post-step state [theta, theta_dot, r, r_dot].
        force (float): Force applied during the step.
        done (bool): Termination flag of the step.

    Returns:
        dict: {'quadratic', 'upright_bonus', 'failure_penalty'}
    """
    theta, r = state[0], state[2]
    with np.errstate(over="ignore"):
        quadratic = -0.1 * (5 * theta ** 2 + r ** 2 + 0.05 * np.float64(force) ** 2)
    return {
        "quadratic": float(quadratic),
        "upright_bonus": UPRIGHT_BONUS if abs(theta) < UPRIGHT_ANGLE else 0.0,
        "failure_penalty": -FAILURE_PENALTY if done else 0.0,
    }


def compute_reward(state, force, done):
    """Step reward; no normalization or clipping."""
    terms = reward_components(state, force, done)
    return terms["quadratic"] + terms["upright_bonus"] + terms["failure_penalty"]


class CartPoleEpisode:
    """
    Episode state machine for the cart-pole: UNINITIALIZED -> RUNNING -> TERMINATED.

    Args:
        params (PhysicalParameters): Physical constants. Defaults to PhysicalParameters().
        integration_method (str): 'euler' (default) or 'rk4'. Fixed for the instance.
        seed (int): Seed for the initial-state sampler.
        debug (bool): Print reset / step diagnostics.
    """

    def __init__(self, params=None, integration_method="euler", seed=None, debug=False):
        if params is None:
            params = PhysicalParameters()
        if not isinstance(params, PhysicalParameters):
            raise InvalidParameterError(
                f"params must be a PhysicalParameters instance, got {type(params).__name__}"
            )
        if integration_method not in INTEGRATION_METHODS:
            raise InvalidParameterError(
                f"Unknown integration method: {integration_method} (expected one of {INTEGRATION_METHODS})"
            )

        self._params = params
        self._integration_method = integration_method
        self.rng = np.random.default_rng(seed)
        self.debug = debug

        self._state = np.zeros(STATE_DIM, dtype=np.float64)
        self._t = 0.0
        self._state_history = []
        self._force_history = []
        self._is_done = False
        self._last_reward_components = None
        self._status = EpisodeStatus.UNINITIALIZED

    # --- Read access -------------------------------------------------------
    @property
    def params(self):
        return self._params

    @property
    def integration_method(self):
        return self._integration_method

    @property
    def status(self):
        return self._status

    @property
    def t(self):
        """Simulation time; advanced by dt on RK4 steps only."""
        return self._t

    @property
    def is_done(self):
        return self._is_done

    @property
    def state(self):
        return self._state.copy()

    @state.setter
    def state(self, value):
        # Replaces the current state only; history and status are left alone
        self._state = validate_state(value)

    @property
    def state_history(self):
        """(N+1, 4) array: the reset state followed by one row per step."""
        return np.array(self._state_history, dtype=np.float64).reshape(-1, STATE_DIM)

    @property
    def force_history(self):
        """(N,) array of the forces applied by each step."""
        return np.array(self._force_history, dtype=np.float64)

    @property
    def last_reward_components(self):
        if self._last_reward_components is None:
            return None
        return dict(self._last_reward_components)

    # --- Transitions -------------------------------------------------------
    def reset(self, seed=None, initial_state=None):
        """
        Starts a new episode and returns the initial observation.

        Args:
            seed (int): Reseed the initial-state sampler before sampling.
            initial_state (array-like): Use this state instead of sampling one.
        """
        if initial_state is not None:
            initial_state = validate_state(initial_state)
        if seed is not None:
            self.rng = np.random.default_rng(seed)

        state = initial_state if initial_state is not None else sample_initial_state(self.rng)

        self._state = state
        self._t = 0.0
        self._state_history = [state.copy()]
        self._force_history = []
        self._is_done = False
        self._last_reward_components = None
        self._status = EpisodeStatus.RUNNING

        if self.debug:
            print(f"Reset: theta0={state[0]:.4f} rad ({np.degrees(state[0]):.2f} deg), r0={state[2]:.4f} m")

        return state.copy()

    def step(self, force):
        """
        Applies `force` for one time step.

        Returns:
            tuple: (observation, reward, done)

        Raises:
            StepAfterTerminationError: the episode is not running.
            NumericalDivergenceError: integration produced a non-finite state or reward.
        """
        if self._status is not EpisodeStatus.RUNNING:
            raise StepAfterTerminationError(
                f"step() called while episode is {self._status.value}; call reset() first"
            )

        force_arr = np.asarray(force, dtype=np.float64)
        if force_arr.size != 1:
            raise ValueError(f"Force must be a scalar, got shape {force_arr.shape}")
        F = float(force_arr.reshape(-1)[0])

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            new_state = integrate(
                cartpole_derivative, self._state, F, self._params.dt, self._params,
                method=self._integration_method,
            )
        if not np.all(np.isfinite(new_state)):
            raise NumericalDivergenceError(
                f"{self._integration_method} step from {self._state} with force {F} gave {new_state}"
            )

        done = is_terminal(new_state, self._params)
        terms = reward_components(new_state, F, done)
        reward = terms["quadratic"] + terms["upright_bonus"] + terms["failure_penalty"]
        if not np.isfinite(reward):
            raise NumericalDivergenceError(f"Reward is not finite for force {F}")

        self._state = new_state
        self._state_history.append(new_state.copy())
        self._force_history.append(F)
        if self._integration_method == "rk4":
            self._t += self._params.dt
        self._is_done = done
        self._last_reward_components = terms
        if done:
            self._status = EpisodeStatus.TERMINATED

        if self.debug:
            print(f"Step {len(self._force_history)}: F={F:.3f}, theta={new_state[0]:.4f}, "
                  f"r={new_state[2]:.4f}, reward={reward:.4f}, done={done}")

        return new_state.copy(), reward, done


class OscillatoryCartPoleEnv(gym.Env):
    """
    Gymnasium adapter around CartPoleEpisode.

    Args:
        params (PhysicalParameters): Physical constants (takes precedence over param_path).
        param_path (str or Path): JSON parameter file, see load_cartpole_params.
        integration_method (str): 'euler' or 'rk4'.
        action_limit (float): Half-width of the declared action range (N).
        debug (bool): Print episode diagnostics.
    """
    metadata = {"render_modes": []}

    def __init__(self, params=None, param_path=None, integration_method="euler",
                 action_limit=DEFAULT_ACTION_LIMIT, debug=False):
        super().__init__()
        if params is None and param_path is not None:
            params = load_cartpole_params(param_path, verbose=debug)
        if not np.isfinite(action_limit) or action_limit <= 0:
            raise InvalidParameterError(f"action_limit must be finite and positive, got {action_limit}")

        self.episode = CartPoleEpisode(params, integration_method=integration_method, debug=debug)
        self.params = self.episode.params
        self.action_limit = float(action_limit)
        self.debug = debug

        self.observation_space = spaces.Box(-np.inf, np.inf, shape=(STATE_DIM,), dtype=np.float64)
        self.action_space = spaces.Box(-self.action_limit, self.action_limit, shape=(1,), dtype=np.float64)

    def reset(self, *, seed=None, options=None):
        super().reset(seed=seed)
        initial_state = (options or {}).get("initial_state")
        # Share gymnasium's seeded generator so env.reset(seed=...) is reproducible
        self.episode.rng = self.np_random
        obs = self.episode.reset(initial_state=initial_state)
        return obs, {"t": self.episode.t}

    def step(self, action):
        action = np.asarray(action, dtype=np.float64).reshape(-1)
        force = float(np.clip(action[0], -self.action_limit, self.action_limit))

        obs, reward, terminated = self.episode.step(force)

        info = {
            "force": force,
            "t": self.episode.t,
            "reward_components": self.episode.last_reward_components,
        }
        return obs, float(reward), bool(terminated), False, info


def make_env(**kwargs):
    return OscillatoryCartPoleEnv(**kwargs)


def register_oscillatory_cartpole(max_episode_steps=1000):
    """
    Registers OscillatoryCartPole-v0 with gymnasium if it is not registered yet.

    Registration is explicit (not done on import) so subprocesses started with
    the 'spawn' method can call it themselves.
    """
    if ENV_ID not in gym.registry:
        register(
            id=ENV_ID,
            entry_point=make_env,
            max_episode_steps=max_episode_steps,
        )
    return ENV_ID
