import sys
from pathlib import Path

# Add src/ to the Python path
src_root = str(Path(__file__).resolve().parent.parent.parent / "src")
if src_root not in sys.path:
    sys.path.insert(0, src_root)

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pytest

from oscillatory_cartpole.environments import CartPoleEpisode
from oscillatory_cartpole.utils.parameters import PhysicalParameters
from oscillatory_cartpole.utils.plotting import (
    CartPoleFigure,
    draw_cart_pole,
    plot_episode_history,
    save_episode_animation,
)

GREEN = matplotlib.colors.to_rgba("g")
RED = matplotlib.colors.to_rgba("r")


@pytest.fixture
def params():
    return PhysicalParameters()


@pytest.fixture
def ax():
    fig, ax = plt.subplots()
    yield ax
    plt.close(fig)


def colors(lines):
    return [matplotlib.colors.to_rgba(line.get_color()) for line in lines]


def test_compliant_state_draws_green_limits(ax, params):
    artists = draw_cart_pole(ax, [0.1, 0.0, 0.5, 0.0], params)
    assert colors(artists["angle_limits"]) == [GREEN, GREEN]
    assert colors(artists["displacement_limits"]) == [GREEN, GREEN]


def test_violated_limits_turn_red(ax, params):
    artists = draw_cart_pole(ax, [1.0, 0.0, 4.0, 0.0], params)
    left, right = artists["angle_limits"]
    lower, upper = artists["displacement_limits"]
    assert colors([left, right]) == [RED, GREEN]
    assert colors([lower, upper]) == [GREEN, RED]


def test_negative_violations_turn_other_side_red(ax, params):
    artists = draw_cart_pole(ax, [-1.0, 0.0, -4.0, 0.0], params)
    assert colors(artists["angle_limits"]) == [GREEN, RED]
    assert colors(artists["displacement_limits"]) == [RED, GREEN]


def test_cart_and_pole_geometry(ax, params):
    theta, r = 0.3, 1.2
    artists = draw_cart_pole(ax, [theta, 0.0, r, 0.0], params)
    assert artists["cart"].get_x() + artists["cart"].get_width() / 2 == pytest.approx(r)
    xs, ys = artists["pole"].get_data()
    assert xs[0] == pytest.approx(r)
    # Positive theta tips the pole towards -r
    assert xs[1] == pytest.approx(r - params.pole_length * np.sin(theta))
    assert ys[1] == pytest.approx(params.pole_length * np.cos(theta))


def test_figure_refresh_and_save(params, tmp_path):
    scene = CartPoleFigure()
    scene.refresh([0.0, 0.0, 0.0, 0.0], params)
    artists = scene.refresh([0.2, 0.0, -1.0, 0.0], params)
    # refresh() redraws from scratch
    assert len(scene.ax.patches) == 1
    assert artists["cart"] in scene.ax.patches
    path = scene.save(tmp_path / "frame.png")
    scene.close()
    assert path.exists()


def test_plot_episode_history(params, tmp_path):
    episode = CartPoleEpisode(params, seed=0)
    episode.reset()
    for _ in range(20):
        episode.step(1.0)
    path = plot_episode_history(episode.state_history, episode.force_history, params.dt, tmp_path, episode=3)
    assert path == tmp_path / "episode_3_history.png"
    assert path.exists()


def test_plot_history_without_steps(params, tmp_path):
    path = plot_episode_history(np.zeros((1, 4)), [], params.dt, tmp_path)
    assert path.exists()


def test_save_episode_animation(params, tmp_path):
    episode = CartPoleEpisode(params, seed=0)
    episode.reset()
    for _ in range(4):
        episode.step(0.0)
    path = save_episode_animation(episode.state_history, params, tmp_path / "episode.gif", fps=10)
    assert path.exists()
