"""Unit tests for PathRecorder."""

import pytest

from wayguide.config import WayGuideConfig
from wayguide.navigator.pathfinder import ShortestPathFinder
from wayguide.navigator.recorder import PathRecorder


def test_breadcrumbs_respect_spacing():
    rec = PathRecorder(min_spacing=1.0)
    start = rec.start_recording("Entrance", (0, 0, 0))
    assert start.is_named_waypoint and start.id == "node_0"
    assert rec.update_position((0.5, 0, 0)) is False
    assert rec.update_position((1.2, 0, 0)) is True
    assert rec.update_position((1.7, 0, 0)) is False
    assert rec.waypoint_count() == 2
    assert rec.named_waypoint_count() == 1


def test_named_waypoints_are_unique_and_non_blank():
    rec = PathRecorder()
    rec.start_recording("Entrance", (0, 0, 0))
    assert rec.mark_named_waypoint((2, 0, 0), "Cafe") is True
    assert rec.mark_named_waypoint((3, 0, 0), "  cafe ") is False
    assert rec.mark_named_waypoint((3, 0, 0), "   ") is False
    assert rec.mark_named_waypoint((4, 0, 0), "Server Room", is_restricted_area=True) is True
    assert rec.named_waypoint_count() == 3


def test_stop_returns_routable_frozen_graph():
    rec = PathRecorder()
    rec.start_recording("Entrance", (0, 0, 0))
    rec.update_position((0, 0, 1.5))
    rec.update_position((0, 0, 3.0))
    rec.mark_named_waypoint((0, 0, 3.5), "Library")
    graph = rec.stop_recording()

    assert graph.is_frozen
    assert [n.id for n in graph.nodes] == ["node_0", "node_1", "node_2", "node_3"]
    assert graph.edges() == [("node_0", "node_1"), ("node_1", "node_2"), ("node_2", "node_3")]
    path = ShortestPathFinder(graph).find_path((0, 0, 0), "Library")
    assert path.total_distance == pytest.approx(3.5)
    assert not rec.is_recording()


def test_calls_outside_a_recording():
    rec = PathRecorder()
    assert rec.update_position((5, 0, 5)) is False
    assert rec.mark_named_waypoint((5, 0, 5), "Nowhere") is False
    assert rec.recorded_nodes() == []
    with pytest.raises(RuntimeError):
        rec.stop_recording()


def test_spacing_comes_from_recording_config():
    rec = PathRecorder.from_config(WayGuideConfig(recording={"min_spacing": 2.5}))
    assert rec.min_spacing == 2.5
    rec.start_recording("Entrance", (0, 0, 0))
    assert rec.update_position((0, 0, 2.0)) is False
    assert rec.update_position((0, 0, 2.6)) is True
    assert PathRecorder.from_config(WayGuideConfig()).min_spacing == 1.0
