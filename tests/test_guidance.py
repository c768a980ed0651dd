"""Unit tests for marker generation, waypoint progress and restricted-area alerts."""

import math

import pytest

from wayguide.navigator.graph import FloorGraph
from wayguide.navigator.guidance import (
    NavigationGuidanceEngine,
    NavigationPhase,
    generate_markers,
)
from wayguide.navigator.pathfinder import ShortestPathFinder


# ----------- generate_markers -----------

def test_straight_path_marker_count_and_heading():
    markers = generate_markers([(0, 0, 10)], (0, 0, 0), spacing=0.6, max_count=None)
    assert abs(len(markers) - math.floor(10 / 0.6)) <= 1
    assert all(m.heading == pytest.approx(0.0) for m in markers)
    # nothing underfoot
    assert markers[0].position[2] == pytest.approx(0.3)


def test_marker_heading_follows_segment_direction():
    markers = generate_markers([(4, 0, 0), (4, 0, -4)], (0, 0, 0), spacing=1.0, max_count=None)
    headings = {round(m.heading) for m in markers}
    assert headings == {90, 180} or headings == {90, -180}


def test_marker_cap_and_distance_filter():
    path = [(0, 0, 20)]
    assert len(generate_markers(path, (0, 0, 0), spacing=0.5, max_count=7)) == 7
    near = generate_markers(path, (0, 0, 0), spacing=0.5, max_count=None, max_distance=3.0)
    assert near and all(m.position[2] <= 3.0 for m in near)


def test_markers_skip_degenerate_segments_and_empty_path():
    assert generate_markers([], (0, 0, 0)) == []
    markers = generate_markers([(0, 0, 0.05), (0, 0, 2)], (0, 0, 0), spacing=0.5, max_count=None)
    assert markers and all(m.heading == pytest.approx(0.0) for m in markers)


def test_marker_height_offset():
    markers = generate_markers([(0, 1.0, 3)], (0, 1.0, 0), spacing=1.0, height_offset=0.1)
    assert all(m.position[1] == pytest.approx(1.1) for m in markers)


# ----------- Progress -----------

@pytest.fixture
def abc_engine(abc_graph):
    engine = NavigationGuidanceEngine(abc_graph)
    engine.start(ShortestPathFinder(abc_graph).find_path((0, 0, 0), "C"))
    return engine


def test_advance_once_per_threshold_crossing(abc_engine):
    assert abc_engine.phase == NavigationPhase.PATH_FOUND
    cues = abc_engine.update_progress((0, 0, 0))
    assert abc_engine.phase == NavigationPhase.NAVIGATING
    assert abc_engine.waypoint_index == 1
    assert cues == ["Approaching B"]

    for _ in range(5):
        assert abc_engine.update_progress((0.1, 0, 0)) == []
    assert abc_engine.waypoint_index == 1

    assert abc_engine.update_progress((4.5, 0, 0)) == ["Approaching C"]
    assert abc_engine.update_progress((4.6, 0, 0.1)) == []
    assert abc_engine.waypoint_index == 2


def test_arrival(abc_engine):
    abc_engine.update_progress((0, 0, 0))
    abc_engine.update_progress((5, 0, 0))
    assert abc_engine.update_progress((5, 0, 2.5)) == []
    cues = abc_engine.update_progress((5, 0, 4.6))
    assert cues == ["You have reached your destination"]
    assert abc_engine.phase == NavigationPhase.ARRIVED
    assert abc_engine.markers((5, 0, 4.6)) == []
    assert abc_engine.update_progress((5, 0, 5)) == []


def test_destination_just_past_previous_node_is_reached():
    nodes = [
        {"id": "lobby", "name": "Lobby", "position": [0, 0, 0], "is_named_waypoint": True},
        {"id": "w1", "name": "", "position": [0, 0, 2]},
        {"id": "office", "name": "Office", "position": [0, 0, 2.5], "is_named_waypoint": True},
    ]
    graph = FloorGraph.from_records(nodes, [("lobby", "w1"), ("w1", "office")])
    engine = NavigationGuidanceEngine(graph)
    engine.start(ShortestPathFinder(graph).find_path((0, 0, 0), "Office"))

    engine.update_progress((0, 0, 0))
    assert engine.update_progress((0, 0, 2.0)) == ["Approaching Office"]
    assert engine.waypoint_index == 2
    # still inside the radius of w1, but the destination is within reach too
    cues = engine.update_progress((0, 0, 2.3))
    assert cues == ["You have reached your destination"]
    assert engine.phase == NavigationPhase.ARRIVED


def test_markers_only_while_active(abc_graph, abc_engine):
    assert len(abc_engine.markers((0, 0, 0), max_count=7)) == 7
    idle = NavigationGuidanceEngine(abc_graph)
    assert idle.markers((0, 0, 0)) == []


def test_supersede_and_reset(abc_engine):
    assert abc_engine.supersede() is True
    assert abc_engine.phase == NavigationPhase.SUPERSEDED
    assert abc_engine.path is None
    assert abc_engine.supersede() is False


def test_rebind_drops_route_when_destination_removed(abc_engine):
    nodes = [
        {"id": "A", "name": "A", "position": [0, 0, 0], "is_named_waypoint": True},
        {"id": "B", "name": "B", "position": [5, 0, 0], "is_named_waypoint": True},
    ]
    assert abc_engine.rebind(FloorGraph.from_records(nodes, [("A", "B")])) is False
    assert abc_engine.phase == NavigationPhase.IDLE
    assert abc_engine.update_progress((0, 0, 0)) == []


def test_rebind_keeps_route_when_nodes_survive(abc_graph, abc_engine):
    assert abc_engine.rebind(FloorGraph.from_records(**abc_graph.to_records())) is True
    assert abc_engine.is_active


# ----------- Restricted areas -----------

def test_restricted_alert_cooldown_and_clear(library_graph):
    engine = NavigationGuidanceEngine(library_graph, abort_on_breach=False)
    near_lab = (2.0, 0.0, 2.0)

    alerts = engine.check_restricted_proximity(near_lab, now=100.0)
    assert [a.node_id for a in alerts] == ["lab"]
    assert alerts[0].area_name == "Chemistry Lab"
    assert alerts[0].distance == pytest.approx(math.sqrt(2))

    assert engine.check_restricted_proximity(near_lab, now=105.0) == []
    assert len(engine.check_restricted_proximity(near_lab, now=111.0)) == 1

    # leaving to >= 1.5x the radius clears the cooldown
    assert engine.check_restricted_proximity((0.0, 0.0, 8.0), now=112.0) == []
    assert len(engine.check_restricted_proximity(near_lab, now=113.0)) == 1


def test_breach_aborts_active_navigation(library_graph):
    engine = NavigationGuidanceEngine(library_graph, abort_on_breach=True)
    engine.start(ShortestPathFinder(library_graph).find_path((0, 0, 0), "Cafe"))
    engine.update_progress((0, 0, 0))
    assert engine.is_active
    engine.check_restricted_proximity((2.5, 0.0, 2.5), now=0.0)
    assert engine.phase == NavigationPhase.ABORTED
