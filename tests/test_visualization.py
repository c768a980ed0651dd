"""Smoke tests for the matplotlib floor and route plots (Agg backend)."""

import random

import matplotlib.pyplot as plt

from wayguide.navigator.guidance import generate_markers
from wayguide.navigator.pathfinder import ShortestPathFinder
from wayguide.visualization_tools.navigation_visualization_tools import (
    draw_floor_graph,
    plot_navigation_path,
    sample_random_pose,
)


def test_draw_floor_graph(library_graph):
    ax = draw_floor_graph(library_graph, show_weights=True)
    assert ax.get_xlabel() == "x (m)"
    plt.close("all")


def test_plot_navigation_path_saves_figure(tmp_path, library_graph):
    path = ShortestPathFinder(library_graph).find_path((0, 0, 0), "Cafe")
    markers = generate_markers([n.position for n in path.nodes], (0, 0, 0))
    out = tmp_path / "route.png"
    fig = plot_navigation_path(library_graph, path, user_pos=(0, 0, 0), user_heading=0.0,
                               markers=markers, save_path=str(out))
    assert out.exists()
    assert "Cafe" in fig.axes[0].get_title()
    plt.close(fig)


def test_sample_random_pose_within_bounds(library_graph):
    (x, y, z), heading = sample_random_pose(library_graph, margin=0.5, rng=random.Random(3))
    assert -4.5 <= x <= 4.5
    assert -0.5 <= z <= 12.5
    assert y == 0.0
    assert -180.0 <= heading <= 180.0
