"""
WayGuide: Simulated Navigation Run

Loads a recorded floor graph, recognises the user at its first named
waypoint, asks for a destination and walks the planned route in small
steps, printing every spoken cue and the turn-by-turn summary.

Typical workflow:
    1. Export a floor graph with FloorGraph.to_records() to JSON.
    2. Run this script against it with a destination name.
    3. Inspect the cues, or the optional route figure, before field testing.

Usage:
    python -m wayguide.run_navigation <graph.json> <destination> [config.yaml] [figure.png]
"""

import json
import logging
import sys
from typing import List, Optional

import numpy as np

from wayguide.config import WayGuideConfig
from wayguide.navigator.commander import commands_from_path
from wayguide.navigator.graph import FloorGraph
from wayguide.navigator.guidance import NavigationPhase
from wayguide.navigator.session import LandmarkMatch, NavigationEngine

WALK_STEP = 0.5       # metres per simulated frame
FRAME_PERIOD = 0.1    # seconds per simulated frame


def load_graph(path: str) -> FloorGraph:
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    return FloorGraph.from_records(records["nodes"], records["edges"])


def walk_positions(points: List[np.ndarray], step: float = WALK_STEP) -> List[np.ndarray]:
    """Sample positions every ``step`` metres along a polyline, endpoints included."""
    out = [points[0]]
    for a, b in zip(points[:-1], points[1:]):
        length = float(np.linalg.norm(b - a))
        n = max(int(np.ceil(length / step)), 1)
        out.extend(a + (b - a) * (i / n) for i in range(1, n + 1))
    return out


def simulate(graph: FloorGraph, destination: str, config: Optional[WayGuideConfig] = None,
             max_frames: int = 2000) -> NavigationPhase:
    """
    Run a full session against ``graph`` and return the final navigation phase.

    The simulated device frame coincides with the map frame, so calibration
    resolves a zero yaw once the user has walked far enough.
    """
    engine = NavigationEngine(config)
    session = engine.new_session(graph)
    named = graph.named_waypoints()
    if not named:
        print("[ERROR] Graph has no named waypoints to start from.")
        return NavigationPhase.IDLE

    start = named[0]
    pose = start.as_array()
    now = 0.0
    session.inbox.post(LandmarkMatch(start.id, tuple(pose), session.calibration_version))
    session.inbox.request_destination(destination)
    result = engine.tick(session, pose, now)
    for cue in result.cues:
        print(f"[INFO] {cue}")
    if result.path is None:
        return result.phase

    lang = config.navigation_config.language if config else "en"
    unit = config.navigation_config.unit if config else "meter"
    for cmd in commands_from_path(result.path, language=lang, unit=unit):
        print(f"[INFO] {cmd['text']}")

    route = [pose] + [n.as_array() for n in result.path.nodes]
    for frame, pos in enumerate(walk_positions(route)[1:]):
        if frame >= max_frames:
            break
        now += FRAME_PERIOD
        result = engine.tick(session, pos, now)
        for cue in result.cues:
            print(f"[INFO] {cue}")
        if result.phase not in (NavigationPhase.PATH_FOUND, NavigationPhase.NAVIGATING):
            break

    print(f"[✓] Finished in phase {result.phase.value}: {result.status}")
    return result.phase


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 2 or len(argv) > 4:
        print("Usage: python -m wayguide.run_navigation <graph.json> <destination> [config.yaml] [figure.png]")
        return 1

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    graph = load_graph(argv[0])
    config = WayGuideConfig.from_yaml(argv[2]) if len(argv) >= 3 else WayGuideConfig()
    phase = simulate(graph, argv[1], config)

    if len(argv) == 4:
        from wayguide.visualization_tools.navigation_visualization_tools import plot_navigation_path
        from wayguide.navigator.pathfinder import ShortestPathFinder
        start = graph.named_waypoints()[0]
        path = ShortestPathFinder(graph).find_path(start.position, argv[1])
        plot_navigation_path(graph, path, user_pos=start.position, save_path=argv[3])

    return 0 if phase == NavigationPhase.ARRIVED else 2


if __name__ == "__main__":
    sys.exit(main())
