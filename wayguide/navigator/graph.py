import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


class GraphIntegrityError(ValueError):
    """Raised when a floor graph would reference nodes it does not contain."""


@dataclass(frozen=True)
class GraphNode:
    """
    A single recorded location on a floor.

    Attributes:
        id: Unique node identifier.
        name: Human-readable label, empty for unnamed breadcrumb waypoints.
        position: (x, y, z) in metres, map frame. y is the vertical axis.
        is_named_waypoint: True if the node is a routable destination.
        is_emergency_exit: True if the node marks an emergency exit.
        is_restricted_area: True if the node marks a zone excluded from routing.
    """
    id: str
    name: str
    position: Vec3
    is_named_waypoint: bool = False
    is_emergency_exit: bool = False
    is_restricted_area: bool = False

    def as_array(self) -> np.ndarray:
        return np.asarray(self.position, dtype=float)


@dataclass(frozen=True)
class Edge:
    """Directed view of an undirected floor edge, weighted by Euclidean length."""
    from_id: str
    to_id: str
    weight: float


def _as_vec3(pos: Sequence[float]) -> Vec3:
    if len(pos) != 3:
        raise ValueError(f"Expected a 3D position, got {len(pos)} components.")
    return (float(pos[0]), float(pos[1]), float(pos[2]))


class FloorGraph:
    """
    Spatial graph of labelled nodes and weighted edges for one floor.

    Nodes and adjacency live in an undirected ``networkx.Graph`` so that
    every edge is symmetric by construction. Edge weights are the Euclidean
    distances between endpoints, stored as 32-bit floats.

    A graph is assembled once (by a loader or a recorder) and then frozen
    with :meth:`freeze`; after that it is shared read-only between the path
    finder, the calibrator and the guidance engine.
    """

    def __init__(self):
        self.G = nx.Graph()
        self._nodes: Dict[str, GraphNode] = {}
        self._edge_order: List[Tuple[str, str]] = []
        # Cached (ids, positions) for vectorised nearest-node scans
        self._position_cache: Optional[Tuple[List[str], np.ndarray]] = None

    # ----------- Construction -----------

    def add_node(self, node: GraphNode) -> GraphNode:
        """
        Add a node to the graph.

        Raises:
            GraphIntegrityError: If a node with the same id already exists.
        """
        if node.id in self._nodes:
            raise GraphIntegrityError(f"Duplicate node id: {node.id!r}")
        self.G.add_node(node.id, restricted=node.is_restricted_area)
        self._nodes[node.id] = node
        self._position_cache = None
        return node

    def add_edge(self, a: Union[str, GraphNode], b: Union[str, GraphNode]) -> None:
        """
        Connect two existing nodes in both directions.

        Raises:
            GraphIntegrityError: If either endpoint is unknown or a == b.
        """
        a_id = a.id if isinstance(a, GraphNode) else a
        b_id = b.id if isinstance(b, GraphNode) else b
        for nid in (a_id, b_id):
            if nid not in self._nodes:
                raise GraphIntegrityError(f"Edge references unknown node id: {nid!r}")
        if a_id == b_id:
            raise GraphIntegrityError(f"Self-loop edges are not allowed: {a_id!r}")
        weight = np.float32(self.distance(self._nodes[a_id].position, self._nodes[b_id].position))
        is_new = not self.G.has_edge(a_id, b_id)
        self.G.add_edge(a_id, b_id, weight=weight)
        if is_new:
            self._edge_order.append((a_id, b_id))

    def freeze(self) -> "FloorGraph":
        """Make the graph immutable; later add_node/add_edge calls raise."""
        nx.freeze(self.G)
        return self

    @property
    def is_frozen(self) -> bool:
        return nx.is_frozen(self.G)

    # ----------- Queries -----------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def is_empty(self) -> bool:
        return not self._nodes

    @property
    def nodes(self) -> List[GraphNode]:
        """All nodes in insertion order."""
        return list(self._nodes.values())

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def neighbors_of(self, node: Union[str, GraphNode]) -> List[GraphNode]:
        """Return the adjacent nodes of ``node`` in edge insertion order."""
        nid = node.id if isinstance(node, GraphNode) else node
        if nid not in self._nodes:
            return []
        return [self._nodes[v] for v in self.G.neighbors(nid)]

    def edges_of(self, node: Union[str, GraphNode]) -> List[Edge]:
        """Return outgoing edges of ``node`` (its adjacency list)."""
        nid = node.id if isinstance(node, GraphNode) else node
        if nid not in self._nodes:
            return []
        return [Edge(nid, v, float(d["weight"])) for v, d in self.G.adj[nid].items()]

    def edges(self) -> List[Tuple[str, str]]:
        """Return every undirected edge once, in insertion order."""
        return list(self._edge_order)

    @staticmethod
    def distance(a: Sequence[float], b: Sequence[float]) -> float:
        """Euclidean distance between two 3D positions."""
        return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))

    def _positions(self) -> Tuple[List[str], np.ndarray]:
        if self._position_cache is None:
            ids = list(self._nodes.keys())
            pts = np.array([self._nodes[i].position for i in ids], dtype=float).reshape(-1, 3)
            self._position_cache = (ids, pts)
        return self._position_cache

    def _nearest_among(self, pos: Sequence[float], candidates: List[GraphNode]) -> Optional[GraphNode]:
        if not candidates:
            return None
        pts = np.array([n.position for n in candidates], dtype=float)
        dists = np.linalg.norm(pts - np.asarray(pos, dtype=float), axis=1)
        return candidates[int(np.argmin(dists))]

    def nearest_node(self, pos: Sequence[float]) -> Optional[GraphNode]:
        """
        Linear scan for the node closest to ``pos`` in 3D.

        Returns:
            The nearest node (first one on ties), or None for an empty graph.
        """
        if not self._nodes:
            return None
        ids, pts = self._positions()
        dists = np.linalg.norm(pts - np.asarray(pos, dtype=float), axis=1)
        return self._nodes[ids[int(np.argmin(dists))]]

    def nearest_named_waypoint(self, pos: Sequence[float]) -> Optional[GraphNode]:
        return self._nearest_among(pos, self.named_waypoints())

    def nearest_emergency_exit(self, pos: Sequence[float]) -> Optional[GraphNode]:
        return self._nearest_among(pos, self.emergency_exits())

    def nearest_routable_node(self, pos: Sequence[float]) -> Optional[GraphNode]:
        return self._nearest_among(pos, [n for n in self._nodes.values() if not n.is_restricted_area])

    def named_waypoints(self) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.is_named_waypoint]

    def restricted_areas(self) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.is_restricted_area]

    def emergency_exits(self) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.is_emergency_exit]

    # ----------- Record hand-off -----------

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Dict[str, Any]],
        edges: Iterable[Sequence[str]],
        freeze: bool = True
    ) -> "FloorGraph":
        """
        Build a graph from plain node/edge records supplied by a map loader.

        Args:
            nodes: Dicts with keys id, name, position and optional flags
                is_named_waypoint, is_emergency_exit, is_restricted_area.
            edges: (from_id, to_id) pairs.
            freeze: Freeze the graph after construction.

        Returns:
            FloorGraph: The assembled graph.

        Raises:
            GraphIntegrityError: On duplicate ids, self loops or dangling edges.
        """
        graph = cls()
        for rec in nodes:
            graph.add_node(GraphNode(
                id=str(rec["id"]),
                name=rec.get("name") or "",
                position=_as_vec3(rec["position"]),
                is_named_waypoint=bool(rec.get("is_named_waypoint", False)),
                is_emergency_exit=bool(rec.get("is_emergency_exit", False)),
                is_restricted_area=bool(rec.get("is_restricted_area", False)),
            ))
        for pair in edges:
            a, b = pair
            graph.add_edge(str(a), str(b))
        if freeze:
            graph.freeze()
        logger.info(f"[✓] Loaded floor graph: {len(graph)} nodes, {graph.G.number_of_edges()} edges, "
                    f"{len(graph.named_waypoints())} named")
        return graph

    def to_records(self) -> Dict[str, List[Any]]:
        """Export nodes and edges as plain records, preserving order and values."""
        return {
            "nodes": [
                {
                    "id": n.id,
                    "name": n.name,
                    "position": list(n.position),
                    "is_named_waypoint": n.is_named_waypoint,
                    "is_emergency_exit": n.is_emergency_exit,
                    "is_restricted_area": n.is_restricted_area,
                }
                for n in self._nodes.values()
            ],
            "edges": [[u, v] for u, v in self._edge_order],
        }

    def __repr__(self) -> str:
        return (f"<FloorGraph nodes={len(self._nodes)} edges={self.G.number_of_edges()} "
                f"named={len(self.named_waypoints())}>")
