import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

from wayguide.navigator.graph import FloorGraph, GraphNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathResult:
    """Ordered route from start to destination (inclusive) and its length in metres."""
    nodes: Tuple[GraphNode, ...]
    total_distance: float

    @property
    def start(self) -> GraphNode:
        return self.nodes[0]

    @property
    def destination(self) -> GraphNode:
        return self.nodes[-1]

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]


class PathFailure(Enum):
    EMPTY_GRAPH = "empty_graph"
    DESTINATION_NOT_FOUND = "destination_not_found"
    DESTINATION_RESTRICTED = "destination_restricted"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class PathOutcome:
    """A path query result, or the reason there is none."""
    result: Optional[PathResult] = None
    failure: Optional[PathFailure] = None
    destination: Optional[GraphNode] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def _tokens(text: str) -> List[str]:
    return text.split()


class ShortestPathFinder:
    """
    Dijkstra routing over a FloorGraph with restricted areas removed.

    Restricted nodes are never relaxed as neighbours, so they can neither be
    passed through nor reached as a destination. Destinations are resolved
    from free text against the graph's named waypoints.
    """

    def __init__(self, graph: FloorGraph):
        self.graph = graph

    def _weight(self, u: str, v: str, d: Dict) -> Optional[float]:
        # networkx hides an edge when the weight function returns None
        if self.graph.G.nodes[v]["restricted"]:
            return None
        return d["weight"]

    # ----------- Destination resolution -----------

    def resolve_destination(self, name: str) -> Optional[GraphNode]:
        """
        Resolve free text to a named waypoint, trying in order:
        exact (case-insensitive), query contains name, name contains query,
        and finally a shared word of at least three characters.
        """
        waypoints = self.graph.named_waypoints()
        query = name.strip().lower()
        if not query:
            return None

        for wp in waypoints:
            if wp.name.strip().lower() == query:
                return wp
        for wp in waypoints:
            wp_name = wp.name.strip().lower()
            if wp_name and wp_name in query:
                return wp
        for wp in waypoints:
            if query in wp.name.strip().lower():
                return wp

        query_words = [w for w in _tokens(query) if len(w) >= 3]
        for wp in waypoints:
            wp_words = _tokens(wp.name.strip().lower())
            if any(word in wp_words for word in query_words):
                return wp
        return None

    def list_all_destinations(self) -> Dict[str, str]:
        """Map node id to label for every named waypoint."""
        return {wp.id: wp.name for wp in self.graph.named_waypoints()}

    # ----------- Routing -----------

    def _start_node(self, start_pos: Sequence[float]) -> Optional[GraphNode]:
        start = self.graph.nearest_node(start_pos)
        if start is not None and start.is_restricted_area:
            # Standing on a restricted node: leave from the nearest routable one
            start = self.graph.nearest_routable_node(start_pos)
        return start

    def _search(self, start: GraphNode, dest: GraphNode) -> Optional[PathResult]:
        try:
            length, path = nx.single_source_dijkstra(
                self.graph.G, start.id, target=dest.id, weight=self._weight
            )
        except nx.NetworkXNoPath:
            return None
        if not path or path[0] != start.id:
            return None
        return PathResult(
            nodes=tuple(self.graph.get_node(nid) for nid in path),
            total_distance=float(length)
        )

    def route_to_node(self, start_pos: Sequence[float], dest: GraphNode) -> PathOutcome:
        """Route from the node nearest ``start_pos`` to an already resolved node."""
        if self.graph.is_empty():
            return PathOutcome(failure=PathFailure.EMPTY_GRAPH, destination=dest)
        start = self._start_node(start_pos)
        if start is None:
            return PathOutcome(failure=PathFailure.UNREACHABLE, destination=dest)
        if dest.is_restricted_area:
            return PathOutcome(failure=PathFailure.DESTINATION_RESTRICTED, destination=dest)
        result = self._search(start, dest)
        if result is None:
            return PathOutcome(failure=PathFailure.UNREACHABLE, destination=dest)
        return PathOutcome(result=result, destination=dest)

    def plan(self, start_pos: Sequence[float], destination_name: str) -> PathOutcome:
        """
        Resolve a destination by name and route to it.

        Args:
            start_pos: Calibrated (x, y, z) user position in map frame.
            destination_name: Free-text destination.

        Returns:
            PathOutcome: The route, or a PathFailure explaining its absence.
        """
        if self.graph.is_empty():
            return PathOutcome(failure=PathFailure.EMPTY_GRAPH)
        dest = self.resolve_destination(destination_name)
        if dest is None:
            logger.info(f"[WARNING] Destination not found: {destination_name!r}")
            return PathOutcome(failure=PathFailure.DESTINATION_NOT_FOUND)
        outcome = self.route_to_node(start_pos, dest)
        if outcome.ok:
            logger.info(f"[✓] Path to {dest.name!r}: {len(outcome.result.nodes)} nodes, "
                        f"{outcome.result.total_distance:.2f} m")
        else:
            logger.info(f"[WARNING] No path to {dest.name!r}: {outcome.failure.value}")
        return outcome

    def find_path(self, start_pos: Sequence[float], destination_name: str) -> Optional[PathResult]:
        """Shortest restricted-free path to a named destination, or None."""
        return self.plan(start_pos, destination_name).result

    def find_path_to_node(self, start_pos: Sequence[float], dest: GraphNode) -> Optional[PathResult]:
        return self.route_to_node(start_pos, dest).result
