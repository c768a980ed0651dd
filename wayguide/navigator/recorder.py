import logging
from typing import List, Optional, Sequence

from wayguide.navigator.graph import FloorGraph, GraphNode

logger = logging.getLogger(__name__)

WAYPOINT_SPACING = 1.0


class PathRecorder:
    """
    Builds a FloorGraph while a host walks the floor.

    Breadcrumb waypoints are dropped every ``min_spacing`` metres and chained
    to the previous node; named waypoints are inserted on demand. Positions
    are taken as-is, so the recorded graph lives in the recording session's
    frame, which becomes the map frame.
    """

    def __init__(self, min_spacing: float = WAYPOINT_SPACING):
        self.min_spacing = min_spacing
        self._graph: Optional[FloorGraph] = None
        self._last: Optional[GraphNode] = None
        self._counter = 0

    @classmethod
    def from_config(cls, config) -> "PathRecorder":
        """Build a recorder from the recording block of a WayGuideConfig."""
        return cls(min_spacing=config.recording_config.min_spacing)

    def is_recording(self) -> bool:
        return self._graph is not None

    def _next_id(self) -> str:
        node_id = f"node_{self._counter}"
        self._counter += 1
        return node_id

    def _append(self, node: GraphNode) -> GraphNode:
        self._graph.add_node(node)
        if self._last is not None:
            self._graph.add_edge(self._last.id, node.id)
        self._last = node
        return node

    def start_recording(self, start_name: str, pose: Sequence[float]) -> GraphNode:
        """Begin a new recording with a named start point at ``pose``."""
        self._graph = FloorGraph()
        self._last = None
        self._counter = 0
        node = self._append(GraphNode(
            id=self._next_id(), name=start_name.strip(),
            position=tuple(float(v) for v in pose), is_named_waypoint=True
        ))
        logger.info(f"[INFO] Recording started from {node.name!r}")
        return node

    def update_position(self, pose: Sequence[float]) -> bool:
        """
        Drop a breadcrumb if the walker moved far enough from the last node.

        Returns:
            bool: True if a waypoint was added.
        """
        if not self.is_recording():
            return False
        if FloorGraph.distance(pose, self._last.position) < self.min_spacing:
            return False
        self._append(GraphNode(id=self._next_id(), name="", position=tuple(float(v) for v in pose)))
        return True

    def mark_named_waypoint(
        self,
        pose: Sequence[float],
        name: str,
        is_emergency_exit: bool = False,
        is_restricted_area: bool = False
    ) -> bool:
        """
        Insert a named waypoint at ``pose``.

        Returns:
            bool: False if not recording, the name is blank, or it is already used.
        """
        name = name.strip()
        if not self.is_recording() or not name:
            return False
        if any(n.name.lower() == name.lower() for n in self._graph.named_waypoints()):
            return False
        self._append(GraphNode(
            id=self._next_id(), name=name, position=tuple(float(v) for v in pose),
            is_named_waypoint=True,
            is_emergency_exit=is_emergency_exit,
            is_restricted_area=is_restricted_area
        ))
        return True

    def recorded_nodes(self) -> List[GraphNode]:
        return self._graph.nodes if self._graph is not None else []

    def waypoint_count(self) -> int:
        return len(self.recorded_nodes())

    def named_waypoint_count(self) -> int:
        return len(self._graph.named_waypoints()) if self._graph is not None else 0

    def stop_recording(self) -> FloorGraph:
        """Finish the recording and return the frozen graph."""
        if self._graph is None:
            raise RuntimeError("Recording is not active")
        graph = self._graph.freeze()
        self._graph = None
        self._last = None
        logger.info(f"[✓] Recording stopped: {graph}")
        return graph
