#!/usr/bin/env python
"""
Runs episodes of the oscillatory cart-pole with a fixed force schedule and
reports rewards, episode lengths and termination causes.

The force schedules are demonstration harnesses, not learnt policies:
    zero    - no force at all
    random  - uniform samples from the action space
    pd      - F = -(kp*theta + kd*theta_dot), balancing the pole only

Example Usage:

1. Uncontrolled pole falling from a random initial state:
   python scripts/run_episode.py --policy zero --num-episodes 3

2. PD balancing with RK4 integration, history plots and an animation:
   python scripts/run_episode.py --policy pd --integration-method rk4 \
       --max-steps 1000 --plot-history --save-animation

3. Clamp actions to the physical max_force instead of the declared ±15 N:
   python scripts/run_episode.py --policy random --limit-to-max-force

Results (config, per-episode summary, plots) are written to
runs/episodes/<run_id>/.
"""

import sys
import argparse
import datetime
import hashlib
import json
from pathlib import Path

import gymnasium as gym
import numpy as np

# Add src/ to the Python path so the script runs from a source checkout
project_root = Path(__file__).resolve().parent.parent
if str(project_root / "src") not in sys.path:
    sys.path.append(str(project_root / "src"))

from oscillatory_cartpole.environments import register_oscillatory_cartpole
from oscillatory_cartpole.environments.wrappers import ForceLimitWrapper
from oscillatory_cartpole.errors import CartPoleError
from oscillatory_cartpole.utils.parameters import load_cartpole_params
from oscillatory_cartpole.utils.plotting import CartPoleFigure, plot_episode_history, save_episode_animation


def get_run_id(config):
    """Generate a unique run ID based on key parameters and timestamp."""
    config_str = f"{config.policy}_{config.integration_method}_n{config.num_episodes}_s{config.max_steps}_seed{config.seed}"
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    config_hash = hashlib.md5(config_str.encode()).hexdigest()[:8]
    return f"{timestamp}_{config_hash}"


def select_force(policy, obs, env, config):
    if policy == "zero":
        return np.array([0.0])
    elif policy == "random":
        return env.action_space.sample()
    elif policy == "pd":
        theta, theta_dot = obs[0], obs[1]
        return np.array([-(config.kp * theta + config.kd * theta_dot)])
    else:
        raise ValueError(f"Unknown policy: {policy}")


def termination_cause(obs, params):
    causes = []
    if abs(obs[0]) > params.angle_threshold:
        causes.append("angle")
    if abs(obs[2]) > params.displacement_threshold:
        causes.append("displacement")
    return "+".join(causes) if causes else "none"


def run(config):
    params = load_cartpole_params(config.param_path, verbose=True)

    env_id = register_oscillatory_cartpole(max_episode_steps=config.max_steps)
    env = gym.make(
        env_id,
        params=params,
        integration_method=config.integration_method,
        action_limit=config.action_limit,
        debug=config.debug,
    )
    if config.limit_to_max_force:
        env = ForceLimitWrapper(env)
        print(f"Clamping actions to max_force = ±{params.max_force} N")
    env.action_space.seed(config.seed)

    run_dir = Path(config.output_dir) / get_run_id(config)
    run_dir.mkdir(parents=True, exist_ok=True)
    with open(run_dir / "config.json", "w") as f:
        json.dump({**vars(config), "params": params.to_dict()}, f, indent=4, default=str)

    summaries = []
    for i_episode in range(config.num_episodes):
        seed = config.seed + i_episode if config.seed is not None else None
        obs, info = env.reset(seed=seed)
        episode_reward = 0.0
        terminated = truncated = False
        steps = 0

        try:
            while not terminated and not truncated:
                action = select_force(config.policy, obs, env, config)
                obs, reward, terminated, truncated, info = env.step(action)
                episode_reward += reward
                steps += 1
        except CartPoleError as e:
            print(f"Episode {i_episode} aborted after {steps} steps: {e}")

        episode = env.unwrapped.episode
        summary = {
            "episode": i_episode,
            "seed": seed,
            "steps": steps,
            "total_reward": episode_reward,
            "terminated": bool(terminated),
            "truncated": bool(truncated),
            "cause": termination_cause(obs, params) if terminated else "none",
            "final_state": episode.state.tolist(),
        }
        summaries.append(summary)
        print(f"Episode: {i_episode + 1}/{config.num_episodes} | Steps: {steps} | "
              f"Reward: {episode_reward:.2f} | Terminated: {terminated} ({summary['cause']}) | "
              f"Truncated: {truncated}")

        if config.plot_history:
            path = plot_episode_history(episode.state_history, episode.force_history, params.dt,
                                        run_dir / "plots", episode=i_episode)
            print(f"History plot saved to: {path}")

            scene = CartPoleFigure()
            scene.refresh(episode.state, params)
            path = scene.save(run_dir / "plots" / f"episode_{i_episode}_final_frame.png")
            scene.close()
            print(f"Final frame saved to: {path}")

        if config.save_animation:
            path = save_episode_animation(episode.state_history[::config.frame_skip], params,
                                          run_dir / "videos" / f"episode_{i_episode}.gif",
                                          fps=max(1, int(round(1.0 / (params.dt * config.frame_skip)))))
            print(f"Animation saved to: {path}")

    with open(run_dir / "summary.json", "w") as f:
        json.dump(summaries, f, indent=4)

    rewards = [s["total_reward"] for s in summaries]
    print(f"\nMean reward over {len(rewards)} episodes: {np.mean(rewards):.2f} ± {np.std(rewards):.2f}")
    print(f"Results saved to: {run_dir}")
    env.close()
    return summaries


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run oscillatory cart-pole episodes with a fixed force schedule")

    parser.add_argument("--policy", type=str, default="zero", choices=["zero", "random", "pd"], help="Force schedule")
    parser.add_argument("--num-episodes", type=int, default=1, help="Number of episodes to run")
    parser.add_argument("--max-steps", type=int, default=1000, help="Truncation length per episode")
    parser.add_argument("--seed", type=int, default=0, help="Base seed; episode i uses seed + i")
    parser.add_argument("--param-path", type=str, default=None, help="JSON parameter file (default: packaged file)")
    parser.add_argument("--integration-method", type=str, default="euler", choices=["euler", "rk4"], help="Integrator")
    parser.add_argument("--action-limit", type=float, default=15.0, help="Half-width of the declared action range (N)")
    parser.add_argument("--limit-to-max-force", action="store_true", help="Clamp actions to ±max_force")

    # PD gains
    parser.add_argument("--kp", type=float, default=40.0, help="Proportional gain on theta")
    parser.add_argument("--kd", type=float, default=10.0, help="Derivative gain on theta_dot")

    # Output
    parser.add_argument("--output-dir", type=str, default="runs/episodes", help="Directory for run outputs")
    parser.add_argument("--plot-history", action="store_true", help="Save state/force history and final-frame plots")
    parser.add_argument("--save-animation", action="store_true", help="Save a GIF of each episode")
    parser.add_argument("--frame-skip", type=int, default=5, help="Keep every n-th state in animations")
    parser.add_argument("--debug", action="store_true", help="Print per-step diagnostics")

    args = parser.parse_args()
    run(args)
