import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, PillowWriter
from matplotlib.patches import Rectangle
from pathlib import Path

CART_WIDTH = 0.5
CART_HEIGHT = 0.25
CART_COLOR = (0.85, 0.325, 0.098)
POLE_COLOR = (0.0, 0.447, 0.741)
STATE_LABELS = [r"$\theta$ (rad)", r"$\dot{\theta}$ (rad/s)", r"$r$ (m)", r"$\dot{r}$ (m/s)"]


def _limit_color(violated):
    return "r" if violated else "g"


def draw_cart_pole(ax, state, params):
    """
    Draws a side view of the cart-pole on `ax` from a read-only state snapshot.

    Positive theta rotates the pole counter-clockwise (tip to the left of the
    pivot). Dashed lines mark the angle and displacement limits, green while
    the state complies and red once the corresponding limit is exceeded.

    Args:
        ax: Matplotlib axes.
        state (array-like): [theta, theta_dot, r, r_dot].
        params (PhysicalParameters): Needs pole_length, angle_threshold, displacement_threshold.

    Returns:
        dict: The created artists ('cart', 'pole', 'angle_limits', 'displacement_limits').
    """
    theta, r = float(state[0]), float(state[2])
    L = params.pole_length
    theta_max = params.angle_threshold
    r_max = params.displacement_threshold

    cart = Rectangle((r - CART_WIDTH / 2, -CART_HEIGHT / 2), CART_WIDTH, CART_HEIGHT,
                     facecolor=CART_COLOR)
    ax.add_patch(cart)
    pole, = ax.plot([r, r - L * np.sin(theta)], [0.0, L * np.cos(theta)],
                    color=POLE_COLOR, linewidth=6, solid_capstyle="butt")

    # Angle limits drawn from the pivot; the left line is crossed by positive theta
    left, = ax.plot([r, r - L * np.sin(theta_max)], [0.0, L * np.cos(theta_max)],
                    linestyle="--", color=_limit_color(theta > theta_max))
    right, = ax.plot([r, r + L * np.sin(theta_max)], [0.0, L * np.cos(theta_max)],
                     linestyle="--", color=_limit_color(theta < -theta_max))

    wall_y = [0.0, 1.25 * L]
    upper, = ax.plot([r_max, r_max], wall_y, linestyle="--", color=_limit_color(r > r_max))
    lower, = ax.plot([-r_max, -r_max], wall_y, linestyle="--", color=_limit_color(r < -r_max))

    ax.set_xlim(-1.25 * r_max, 1.25 * r_max)
    ax.set_ylim(-CART_HEIGHT / 2, 1.35 * L)
    ax.set_aspect("equal")

    return {
        "cart": cart,
        "pole": pole,
        "angle_limits": (left, right),
        "displacement_limits": (lower, upper),
    }


class CartPoleFigure:
    """
    Owns a figure for drawing the cart-pole scene.

    Nothing is drawn until refresh() is called; the environment never renders
    on its own.
    """
    def __init__(self, figsize=(6.0, 1.4)):
        self.fig, self.ax = plt.subplots(figsize=figsize)

    def refresh(self, state, params):
        self.ax.clear()
        artists = draw_cart_pole(self.ax, state, params)
        self.fig.canvas.draw_idle()
        return artists

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.fig.savefig(path)
        return path

    def close(self):
        plt.close(self.fig)


def plot_episode_history(state_history, force_history, dt, plots_dir, episode=0):
    """Saves the state and force time series of one episode.

    Args:
        state_history (array-like): (N+1, 4) states, reset state first.
        force_history (array-like): (N,) forces; force i produced state i+1.
        dt (float): Time step (s).
        plots_dir (Path or str): Directory to save the plot in.
        episode (int): Episode number for titling.

    Returns:
        Path: The saved file.
    """
    plots_dir = Path(plots_dir)
    plots_dir.mkdir(parents=True, exist_ok=True)

    states = np.asarray(state_history, dtype=np.float64).reshape(-1, 4)
    forces = np.asarray(force_history, dtype=np.float64).reshape(-1)
    time = np.arange(len(states)) * dt

    fig, axs = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    for i, label in enumerate(STATE_LABELS):
        axs[0].plot(time, states[:, i], label=label)
    axs[0].set_title(f"Episode {episode}: States")
    axs[0].set_ylabel("State Value")
    axs[0].legend()
    axs[0].grid(True)

    if forces.size > 0:
        axs[1].step(time[1:len(forces) + 1], forces, where="post", marker=".")
        axs[1].set_title("Applied Force")
    else:
        axs[1].set_title("Applied Force (No Data)")
    axs[1].set_ylabel("Force (N)")
    axs[1].set_xlabel("Time (s)")
    axs[1].grid(True)

    fig.tight_layout()
    plot_filename = plots_dir / f"episode_{episode}_history.png"
    fig.savefig(plot_filename)
    plt.close(fig)
    return plot_filename


def save_episode_animation(state_history, params, path, fps=None):
    """Renders the episode frame by frame and writes it as a GIF."""
    states = np.asarray(state_history, dtype=np.float64).reshape(-1, 4)
    fps = fps if fps is not None else max(1, int(round(1.0 / params.dt)))
    scene = CartPoleFigure()

    def update(frame):
        artists = scene.refresh(states[frame], params)
        return [artists["cart"], artists["pole"]]

    anim = FuncAnimation(scene.fig, update, frames=len(states), interval=1000.0 / fps, blit=False)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    anim.save(str(path), writer=PillowWriter(fps=fps))
    scene.close()
    return path
