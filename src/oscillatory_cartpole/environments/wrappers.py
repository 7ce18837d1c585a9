import gymnasium as gym
import numpy as np

from ..errors import InvalidParameterError


class ForceLimitWrapper(gym.ActionWrapper):
    """
    Clamps actions to the physical actuator limit ±params.max_force.

    The base environment declares a wider action range (±15 N by default) than
    the rated max_force (10 N) and only clips to its declared range. Wrapping
    with this class opts in to the stricter, physically consistent policy; the
    action space is narrowed accordingly.
    """
    def __init__(self, env, max_force=None):
        super().__init__(env)

        if not isinstance(env.action_space, gym.spaces.Box):
            raise ValueError("ForceLimitWrapper requires an environment with a Box action space.")

        if max_force is None:
            max_force = env.unwrapped.params.max_force
        if not np.isfinite(max_force) or max_force <= 0:
            raise InvalidParameterError(f"max_force must be finite and positive, got {max_force}")

        self.max_force = float(max_force)
        self.action_space = gym.spaces.Box(
            -self.max_force, self.max_force,
            shape=env.action_space.shape, dtype=env.action_space.dtype,
        )

    def action(self, action):
        return np.clip(np.asarray(action, dtype=np.float64), -self.max_force, self.max_force)


class DiscretizeActionWrapper(gym.ActionWrapper):
    """
    Wraps an environment with a continuous Box action space to make it discrete.

    Maps discrete actions (0 to n_bins-1) to forces spread evenly over the
    original Box action space boundaries.
    """
    def __init__(self, env, n_bins, verbose=False):
        """
        Initializes the wrapper.

        Args:
            env: The environment to wrap (must have a 1D Box action space).
            n_bins: The number of discrete actions to create.
            verbose: Print the mapping on creation.
        """
        super().__init__(env)

        if not isinstance(env.action_space, gym.spaces.Box):
            raise ValueError("DiscretizeActionWrapper requires an environment with a Box action space.")
        if not len(env.action_space.shape) == 1:
            raise ValueError(f"DiscretizeActionWrapper only supports 1D Box action spaces, got shape {env.action_space.shape}")
        if n_bins < 1:
            raise ValueError(f"n_bins must be at least 1, got {n_bins}")

        self.n_bins = n_bins
        self.original_action_space = env.action_space
        self.low = self.original_action_space.low
        self.high = self.original_action_space.high

        self.action_space = gym.spaces.Discrete(self.n_bins)

        if verbose:
            print(f"Applied DiscretizeActionWrapper: Discrete({n_bins}) -> force in [{self.low[0]:.2f}, {self.high[0]:.2f}]")

    def action(self, action):
        """Maps a discrete action index to the corresponding force (as a 1-element array)."""
        # For n_bins=1, output the middle value
        if self.n_bins == 1:
            continuous_action = self.low + (self.high - self.low) / 2.0
        else:
            continuous_action = self.low + (self.high - self.low) * int(action) / (self.n_bins - 1)

        return np.clip(continuous_action, self.low, self.high).astype(self.original_action_space.dtype)
