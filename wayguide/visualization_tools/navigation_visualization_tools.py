import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import networkx as nx

from wayguide.navigator.graph import FloorGraph, GraphNode
from wayguide.navigator.guidance import ArrowMarker
from wayguide.navigator.pathfinder import PathResult

# Floor plots are top-down: horizontal axis is map x, vertical axis is map z.

# =================== Random Sampling Utilities ===================

def sample_random_pose(
    graph: FloorGraph,
    margin: float = 1.0,
    rng: Optional[random.Random] = None
) -> Tuple[Tuple[float, float, float], float]:
    """
    Sample a pose inside the graph's bounding box (expanded by ``margin``).

    Args:
        graph (FloorGraph): Graph whose extent bounds the sample.
        margin (float): Extra metres added around the bounding box.
        rng (random.Random): Optional seeded generator.

    Returns:
        Tuple: ((x, y, z), heading_deg) with y taken from the nearest node.
    """
    if graph.is_empty():
        raise ValueError("Cannot sample a pose on an empty graph.")
    rng = rng or random.Random()
    xs = [n.position[0] for n in graph.nodes]
    zs = [n.position[2] for n in graph.nodes]
    x = rng.uniform(min(xs) - margin, max(xs) + margin)
    z = rng.uniform(min(zs) - margin, max(zs) + margin)
    y = graph.nearest_node((x, 0.0, z)).position[1]
    return (x, y, z), rng.uniform(-180.0, 180.0)

# =================== Floor Graph Plotting ===================

def _node_style(node: GraphNode) -> Tuple[str, int]:
    if node.is_restricted_area:
        return "red", 220
    if node.is_emergency_exit:
        return "limegreen", 220
    if node.is_named_waypoint:
        return "orange", 200
    return "blue", 40

def plot_pose(ax, x: float, z: float, heading_deg: float, length: float = 0.8) -> None:
    """
    Plot a pose as a point with heading arrow and angle annotation.

    Args:
        ax: Matplotlib axis.
        x, z: Map-frame position.
        heading_deg: Heading in degrees, 0 along +z.
    """
    theta = math.radians(heading_deg)
    dx = length * math.sin(theta)
    dz = length * math.cos(theta)
    ax.plot(x, z, marker='o', markersize=10, color='black')
    ax.arrow(x, z, dx, dz, head_width=0.2, head_length=0.2, fc='black', ec='black', linewidth=2)
    ax.text(x + 0.3, z + 0.3, f"θ={heading_deg:.1f}°", fontsize=8, color='black')

def draw_floor_graph(
    graph: FloorGraph,
    ax=None,
    show_labels: bool = True,
    show_weights: bool = False
):
    """
    Draw a floor graph top-down, colouring nodes by kind.

    Restricted areas are red, emergency exits green, named waypoints orange
    and breadcrumbs blue.

    Args:
        graph (FloorGraph): Graph to draw.
        ax: Matplotlib axis; a new figure is created if omitted.
        show_labels (bool): Draw waypoint names.
        show_weights (bool): Annotate edges with their length.

    Returns:
        The matplotlib axis.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 8))

    node_pos: Dict[str, Tuple[float, float]] = {
        n.id: (n.position[0], n.position[2]) for n in graph.nodes
    }
    color_map: Dict[str, str] = {}
    sizes: Dict[str, int] = {}
    for node in graph.nodes:
        color_map[node.id], sizes[node.id] = _node_style(node)

    nx.draw_networkx_edges(graph.G, pos=node_pos, ax=ax, edge_color='gray', width=1.5)

    if show_weights:
        edge_labels = {
            (u, v): f"{float(d['weight']):.1f}" for u, v, d in graph.G.edges(data=True)
        }
        nx.draw_networkx_edge_labels(
            graph.G, pos=node_pos, edge_labels=edge_labels,
            font_size=6, font_color='green', ax=ax, rotate=False, label_pos=0.5
        )

    for color in set(color_map.values()):
        group_nodes = [nid for nid in node_pos if color_map[nid] == color]
        nx.draw_networkx_nodes(
            graph.G, pos=node_pos, nodelist=group_nodes,
            node_color=color, node_size=[sizes[n] for n in group_nodes], ax=ax,
            edgecolors='black' if color != "blue" else 'none'
        )

    if show_labels:
        labels = {n.id: n.name for n in graph.named_waypoints()}
        nx.draw_networkx_labels(graph.G, pos=node_pos, labels=labels, font_size=7, ax=ax)

    ax.set_aspect("equal")
    ax.set_xlabel("x (m)")
    ax.set_ylabel("z (m)")
    return ax

def plot_markers(ax, markers: Sequence[ArrowMarker], length: float = 0.3) -> None:
    """Draw direction markers as short arrows along their heading."""
    for m in markers:
        theta = math.radians(m.heading)
        ax.arrow(
            m.position[0], m.position[2],
            length * math.sin(theta), length * math.cos(theta),
            head_width=0.12, head_length=0.12, fc='deepskyblue', ec='navy'
        )

def plot_navigation_path(
    graph: FloorGraph,
    path: Optional[PathResult],
    user_pos: Optional[Sequence[float]] = None,
    user_heading: Optional[float] = None,
    markers: Optional[List[ArrowMarker]] = None,
    save_path: Optional[str] = None,
    show: bool = False
):
    """
    Plot a computed route over its floor graph.

    Args:
        graph (FloorGraph): The floor graph.
        path (PathResult): Route to highlight; None draws the graph only.
        user_pos: Optional user position in the map frame.
        user_heading: Optional user heading in degrees for the pose arrow.
        markers: Optional direction markers to overlay.
        save_path (str): Write the figure to this file if given.
        show (bool): Call plt.show() when done.

    Returns:
        The matplotlib figure.
    """
    fig, ax = plt.subplots(figsize=(8, 8))
    draw_floor_graph(graph, ax=ax)

    if path is not None and path.nodes:
        xs = [n.position[0] for n in path.nodes]
        zs = [n.position[2] for n in path.nodes]
        ax.plot(xs, zs, color='lime', linewidth=4, zorder=1)
        dest = path.destination
        ax.plot(dest.position[0], dest.position[2], marker='*', markersize=16, color='red')
        ax.text(dest.position[0], dest.position[2], dest.name or dest.id, fontsize=12, color='red')
        ax.set_title(f"Route to {dest.name or dest.id}: {path.total_distance:.2f} m")
        print(f"[INFO] Route length: {path.total_distance:.2f} m over {len(path.nodes)} nodes")

    if user_pos is not None:
        if user_heading is not None:
            plot_pose(ax, user_pos[0], user_pos[2], user_heading)
        else:
            ax.plot(user_pos[0], user_pos[2], marker='o', markersize=10, color='black')

    if markers:
        plot_markers(ax, markers)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path)
        print(f"[✓] Figure saved to: {save_path}")
    if show:
        plt.show()
    return fig
