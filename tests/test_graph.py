"""Unit tests for FloorGraph construction, queries and record hand-off."""

import networkx as nx
import numpy as np
import pytest

from wayguide.navigator.graph import FloorGraph, GraphIntegrityError, GraphNode


def test_edges_are_symmetric_and_weighted_by_distance(abc_graph):
    assert [n.id for n in abc_graph.neighbors_of("B")] == ["A", "C"]
    assert [n.id for n in abc_graph.neighbors_of("A")] == ["B"]
    weight = abc_graph.G["A"]["B"]["weight"]
    assert isinstance(weight, np.float32)
    assert weight == pytest.approx(5.0)
    assert abc_graph.G["B"]["A"]["weight"] == weight


def test_duplicate_node_id_rejected():
    graph = FloorGraph()
    graph.add_node(GraphNode("a", "A", (0.0, 0.0, 0.0)))
    with pytest.raises(GraphIntegrityError):
        graph.add_node(GraphNode("a", "Other", (1.0, 0.0, 0.0)))


def test_dangling_edge_rejected():
    nodes = [{"id": "a", "name": "A", "position": [0, 0, 0]}]
    with pytest.raises(GraphIntegrityError):
        FloorGraph.from_records(nodes, [("a", "missing")])


def test_self_loop_rejected():
    graph = FloorGraph()
    graph.add_node(GraphNode("a", "A", (0.0, 0.0, 0.0)))
    with pytest.raises(GraphIntegrityError):
        graph.add_edge("a", "a")


def test_frozen_graph_cannot_be_modified(abc_graph):
    assert abc_graph.is_frozen
    with pytest.raises(nx.NetworkXError):
        abc_graph.add_node(GraphNode("D", "D", (9.0, 0.0, 9.0)))


def test_nearest_node_queries(library_graph):
    assert library_graph.nearest_node((0.2, 0.0, 3.5)).id == "n1"
    assert library_graph.nearest_named_waypoint((0.2, 0.0, 7.0)).id == "library"
    assert library_graph.nearest_emergency_exit((10.0, 0.0, 10.0)).id == "exit"
    assert library_graph.nearest_routable_node((3.0, 0.0, 3.0)).id == "n1"


def test_nearest_node_on_empty_graph_is_none():
    assert FloorGraph().nearest_node((0, 0, 0)) is None


def test_filtered_views(library_graph):
    assert [n.id for n in library_graph.restricted_areas()] == ["lab"]
    assert [n.id for n in library_graph.emergency_exits()] == ["exit"]
    names = {n.name for n in library_graph.named_waypoints()}
    assert names == {"Main Entrance", "Central Library", "Chemistry Lab", "Fire Exit", "Cafe"}


def test_records_preserve_values_and_order():
    nodes = [
        {"id": "z", "name": "Zed", "position": [1.123456789, 2.5, -3.75],
         "is_named_waypoint": True, "is_emergency_exit": True, "is_restricted_area": False},
        {"id": "a", "name": "", "position": [0.1, 0.2, 0.3],
         "is_named_waypoint": False, "is_emergency_exit": False, "is_restricted_area": True},
    ]
    edges = [["z", "a"]]
    graph = FloorGraph.from_records(nodes, edges)
    assert graph.to_records() == {"nodes": nodes, "edges": edges}
