"""
Compares Euler and RK4 integration of the oscillatory cart-pole.

Both episodes start from the same initial state and receive the same force
sequence. A third trajectory is produced with the CasADi step function (same
equations, RK4) as an independent check of the numpy model.

For each run it prints the largest per-component difference between the
integrators, and plots the trajectories and their difference over time.

Usage:
    # Unforced fall from 0.1 rad, display plots
    python analysis/compare_integrators.py

    # Constant 2 N push for 3 s with dt = 0.02, save the plot
    python analysis/compare_integrators.py --force 2.0 --duration 3 --dt 0.02 --save
"""
# analysis/compare_integrators.py
import sys
import argparse
import dataclasses
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

# Add src/ to the Python path so the script runs from a source checkout
project_root = Path(__file__).resolve().parent.parent
if str(project_root / "src") not in sys.path:
    sys.path.append(str(project_root / "src"))

from oscillatory_cartpole.environments import CartPoleEpisode
from oscillatory_cartpole.environments.casadi_dynamics import build_step_function
from oscillatory_cartpole.utils.parameters import load_cartpole_params

STATE_NAMES = ["theta (rad)", "theta_dot (rad/s)", "r (m)", "r_dot (m/s)"]


def simulate(params, method, initial_state, force, n_steps):
    """Runs one episode; stops early if it terminates."""
    episode = CartPoleEpisode(params, integration_method=method)
    episode.reset(initial_state=initial_state)
    for _ in range(n_steps):
        _, _, done = episode.step(force)
        if done:
            break
    return episode.state_history


def simulate_casadi(params, initial_state, force, n_steps):
    step_fn = build_step_function(params, integration_method="rk4")
    states = [np.asarray(initial_state, dtype=np.float64)]
    for _ in range(n_steps):
        x_next = np.array(step_fn(states[-1], np.array([force]))).flatten()
        states.append(x_next)
    return np.array(states)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare Euler and RK4 cart-pole integration.")
    parser.add_argument("--theta0", type=float, default=0.1, help="Initial pole angle (rad)")
    parser.add_argument("--r0", type=float, default=0.0, help="Initial cart position (m)")
    parser.add_argument("--force", type=float, default=0.0, help="Constant force (N)")
    parser.add_argument("--duration", type=float, default=2.0, help="Simulated time (s)")
    parser.add_argument("--dt", type=float, default=None, help="Override the parameter file's dt")
    parser.add_argument("--param-path", type=str, default=None, help="JSON parameter file")
    parser.add_argument("--save", action="store_true", help="Save the plot to analysis/plots/")
    args = parser.parse_args()

    params = load_cartpole_params(args.param_path)
    if args.dt is not None:
        params = dataclasses.replace(params, dt=args.dt)

    x0 = np.array([args.theta0, 0.0, args.r0, 0.0])
    n_steps = int(round(args.duration / params.dt))
    print(f"Simulating {n_steps} steps of dt={params.dt} from {x0} with F={args.force} N")

    euler = simulate(params, "euler", x0, args.force, n_steps)
    rk4 = simulate(params, "rk4", x0, args.force, n_steps)
    casadi_rk4 = simulate_casadi(params, x0, args.force, len(rk4) - 1)

    n = min(len(euler), len(rk4))
    diff = euler[:n] - rk4[:n]
    print(f"Euler steps: {len(euler) - 1}, RK4 steps: {len(rk4) - 1}")
    for i, name in enumerate(STATE_NAMES):
        print(f"  max |euler - rk4| {name:>18}: {np.max(np.abs(diff[:, i])):.3e}")
    print(f"  max |numpy rk4 - casadi rk4|: {np.max(np.abs(rk4 - casadi_rk4)):.3e}")

    fig, axs = plt.subplots(4, 2, figsize=(14, 10), sharex=True)
    for i, name in enumerate(STATE_NAMES):
        axs[i, 0].plot(np.arange(len(euler)) * params.dt, euler[:, i], label="Euler")
        axs[i, 0].plot(np.arange(len(rk4)) * params.dt, rk4[:, i], label="RK4", linestyle="--")
        axs[i, 0].set_ylabel(name)
        axs[i, 0].grid(True)
        axs[i, 1].plot(np.arange(n) * params.dt, diff[:, i], color="k")
        axs[i, 1].set_ylabel(f"Δ {name}")
        axs[i, 1].grid(True)
    axs[0, 0].legend()
    axs[0, 0].set_title("Trajectories")
    axs[0, 1].set_title("Euler - RK4")
    axs[-1, 0].set_xlabel("Time (s)")
    axs[-1, 1].set_xlabel("Time (s)")
    fig.tight_layout()

    if args.save:
        out = project_root / "analysis" / "plots" / f"euler_vs_rk4_dt{params.dt}_F{args.force}.png"
        out.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out)
        print(f"Plot saved to: {out}")
    else:
        plt.show()
