import matplotlib

matplotlib.use("Agg")

import pytest

from wayguide.navigator.graph import FloorGraph


def _node(node_id, name, pos, **flags):
    rec = {"id": node_id, "name": name, "position": list(pos), "is_named_waypoint": bool(name)}
    rec.update(flags)
    return rec


@pytest.fixture
def abc_graph():
    """A(0,0,0) - B(5,0,0) - C(5,0,5); every node named."""
    nodes = [
        _node("A", "A", (0, 0, 0)),
        _node("B", "B", (5, 0, 0)),
        _node("C", "C", (5, 0, 5)),
    ]
    return FloorGraph.from_records(nodes, [("A", "B"), ("B", "C")])


@pytest.fixture
def library_graph():
    """
    A small floor with a corridor, a shortcut through a restricted lab
    and an emergency exit.

        entrance(0,0,0) - n1(0,0,4) - n2(0,0,8) - library(4,0,8)
              \\                                      /
               lab(3,0,3, restricted) ---------------
        n1 - exit(-4,0,4)
    """
    nodes = [
        _node("entrance", "Main Entrance", (0, 0, 0)),
        _node("n1", "", (0, 0, 4)),
        _node("n2", "", (0, 0, 8)),
        _node("library", "Central Library", (4, 0, 8)),
        _node("lab", "Chemistry Lab", (3, 0, 3), is_restricted_area=True),
        _node("exit", "Fire Exit", (-4, 0, 4), is_emergency_exit=True),
        _node("cafe", "Cafe", (0, 0, 12)),
    ]
    edges = [
        ("entrance", "n1"), ("n1", "n2"), ("n2", "library"),
        ("entrance", "lab"), ("lab", "library"),
        ("n1", "exit"), ("n2", "cafe"),
    ]
    return FloorGraph.from_records(nodes, edges)


@pytest.fixture
def straight_graph():
    """Three collinear nodes along +z: start(0), mid(5), end(10)."""
    nodes = [
        _node("s", "Start", (0, 0, 0)),
        _node("m", "", (0, 0, 5)),
        _node("e", "End", (0, 0, 10)),
    ]
    return FloorGraph.from_records(nodes, [("s", "m"), ("m", "e")])
