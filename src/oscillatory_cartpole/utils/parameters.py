import json
import math
import numbers
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from ..errors import InvalidParameterError

DEFAULT_PARAM_PATH = Path(__file__).resolve().parent.parent / "environments" / "oscillatory_cartpole_params.json"


@dataclass(frozen=True)
class PhysicalParameters:
    """
    Physical constants of the cart-pole, fixed for the lifetime of a run.

    Attributes:
        gravity (float): Gravitational acceleration g (m/s²).
        cart_mass (float): Cart mass M (kg).
        pole_mass (float): Pole mass m (kg).
        pole_length (float): Pole length l (m).
        max_force (float): Largest force the actuator is rated for (N).
        dt (float): Integration time step (s).
        angle_threshold (float): |theta| beyond which the episode fails (rad).
        displacement_threshold (float): |r| beyond which the episode fails (m).
    """
    gravity: float = 9.8
    cart_mass: float = 1.0
    pole_mass: float = 0.1
    pole_length: float = 1.0
    max_force: float = 10.0
    dt: float = 0.01
    angle_threshold: float = math.pi / 4
    displacement_threshold: float = 3.5

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidParameterError(f"{f.name} must be a real number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidParameterError(f"{f.name} must be finite, got {value}")
            if value <= 0:
                raise InvalidParameterError(f"{f.name} must be strictly positive, got {value}")
            object.__setattr__(self, f.name, float(value))

        # |m*cos(2phi) - m - 2M| >= 2M, so the dynamics denominator only vanishes if 2M does
        if not 2.0 * self.cart_mass > 0.0:
            raise InvalidParameterError(
                f"cart_mass={self.cart_mass} makes the dynamics denominator vanish"
            )

    @classmethod
    def from_dict(cls, params):
        """Build from a mapping; missing keys take their defaults, unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown cart-pole parameter(s): {unknown}")
        return cls(**params)

    def to_dict(self):
        return asdict(self)


def load_cartpole_params(json_file=None, verbose=True):
    """
    Loads the cart-pole parameters previously saved to JSON and validates them.

    :param json_file: Path to the JSON file. Defaults to the file shipped with the package.
    :param verbose: Print the loaded values.
    :return: PhysicalParameters
    """
    json_file = Path(json_file) if json_file is not None else DEFAULT_PARAM_PATH
    with open(json_file, "r") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidParameterError(f"Could not decode JSON from {json_file}: {e}") from e

    if not isinstance(raw, dict):
        raise InvalidParameterError(f"Expected a JSON object in {json_file}, got {type(raw).__name__}")

    params = PhysicalParameters.from_dict(raw)

    if verbose:
        print(f"Loaded cart-pole parameters from '{json_file}':")
        for k, v in params.to_dict().items():
            print(f"  {k} = {v}")

    return params


def save_cartpole_params(params, json_file):
    """Writes parameters to JSON in the format read by load_cartpole_params."""
    json_file = Path(json_file)
    json_file.parent.mkdir(parents=True, exist_ok=True)
    with open(json_file, "w") as f:
        json.dump(params.to_dict(), f, indent=4)
    return json_file
