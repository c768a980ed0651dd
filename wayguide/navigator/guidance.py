import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from wayguide.navigator.graph import FloorGraph, GraphNode
from wayguide.navigator.nav_text import nav_text
from wayguide.navigator.pathfinder import PathResult

logger = logging.getLogger(__name__)

WAYPOINT_REACHED_DISTANCE = 0.8
ARROW_SPACING = 0.8
ARROW_START_OFFSET = 0.3
MAX_VISIBLE_ARROWS = 7
MIN_SEGMENT_LENGTH = 0.1
RESTRICTED_ALERT_RADIUS = 2.0
RESTRICTED_ALERT_COOLDOWN = 10.0
ALERT_CLEAR_FACTOR = 1.5


class NavigationPhase(Enum):
    IDLE = "idle"
    PATH_FOUND = "path_found"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"
    ABORTED = "aborted"
    SUPERSEDED = "superseded"


ACTIVE_PHASES = (NavigationPhase.PATH_FOUND, NavigationPhase.NAVIGATING)


@dataclass(frozen=True)
class ArrowMarker:
    """Direction marker: position (x, y, z) and heading in degrees, same frame."""
    position: tuple
    heading: float


@dataclass(frozen=True)
class ProximityAlert:
    node_id: str
    area_name: str
    distance: float
    timestamp: float


def generate_markers(
    remaining_path: Sequence[Sequence[float]],
    user_pos: Sequence[float],
    spacing: float = ARROW_SPACING,
    max_count: Optional[int] = MAX_VISIBLE_ARROWS,
    start_offset: float = ARROW_START_OFFSET,
    max_distance: Optional[float] = None,
    height_offset: float = 0.0,
    min_segment_length: float = MIN_SEGMENT_LENGTH
) -> List[ArrowMarker]:
    """
    Lay direction markers along the polyline user_pos -> remaining path nodes.

    Each segment is walked from its start in ``spacing`` steps; the first
    walked segment starts ``start_offset`` in so nothing is placed underfoot.
    Segments shorter than ``min_segment_length`` are skipped.

    Args:
        remaining_path: Positions of the nodes still ahead, in order.
        user_pos: Current user position, same frame as the path.
        spacing: Distance between consecutive markers along a segment.
        max_count: Stop after this many markers; None for no cap.
        start_offset: Initial offset on the first walked segment.
        max_distance: Drop markers farther than this from the user; None keeps all.
        height_offset: Added to the vertical coordinate of each marker.
        min_segment_length: Segments shorter than this produce no markers.

    Returns:
        List[ArrowMarker]: Markers with heading atan2(dx, dz) in degrees.
    """
    if not remaining_path or spacing <= 0:
        return []
    user = np.asarray(user_pos, dtype=float)
    points = [user] + [np.asarray(p, dtype=float) for p in remaining_path]

    markers: List[ArrowMarker] = []
    first_segment = True
    for start, end in zip(points[:-1], points[1:]):
        if max_count is not None and len(markers) >= max_count:
            break
        delta = end - start
        length = float(np.linalg.norm(delta))
        if length < min_segment_length:
            continue
        heading = math.degrees(math.atan2(delta[0], delta[2]))
        d = start_offset if first_segment else 0.0
        first_segment = False
        while d < length and (max_count is None or len(markers) < max_count):
            pos = start + delta * (d / length)
            d += spacing
            if max_distance is not None and np.linalg.norm(pos - user) > max_distance:
                continue
            markers.append(ArrowMarker(
                position=(float(pos[0]), float(pos[1]) + height_offset, float(pos[2])),
                heading=heading
            ))
    return markers


class NavigationGuidanceEngine:
    """
    Per-tick route follower for one navigation attempt at a time.

    Phases: IDLE -> PATH_FOUND -> NAVIGATING -> ARRIVED | ABORTED | SUPERSEDED.
    Inputs are calibrated map-frame positions; outputs are spoken cues,
    map-frame markers and proximity alerts.
    """

    def __init__(
        self,
        graph: FloorGraph,
        reached_distance: float = WAYPOINT_REACHED_DISTANCE,
        alert_radius: float = RESTRICTED_ALERT_RADIUS,
        alert_cooldown: float = RESTRICTED_ALERT_COOLDOWN,
        abort_on_breach: bool = True,
        language: str = "en"
    ):
        self.graph = graph
        self.reached_distance = reached_distance
        self.alert_radius = alert_radius
        self.alert_cooldown = alert_cooldown
        self.abort_on_breach = abort_on_breach
        self.language = language

        self.phase = NavigationPhase.IDLE
        self.path: Optional[PathResult] = None
        self.waypoint_index = 0
        self.last_target_distance: Optional[float] = None
        self._recent_alerts: Dict[str, float] = {}

    # ----------- Attempt lifecycle -----------

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def current_target(self) -> Optional[GraphNode]:
        if self.path is None or self.waypoint_index >= len(self.path.nodes):
            return None
        return self.path.nodes[self.waypoint_index]

    @property
    def remaining_path(self) -> List[GraphNode]:
        if self.path is None:
            return []
        return list(self.path.nodes[self.waypoint_index:])

    def start(self, path: PathResult) -> None:
        """Accept a freshly computed path; guidance begins on the next progress update."""
        self.path = path
        self.waypoint_index = 0
        self.last_target_distance = None
        self.phase = NavigationPhase.PATH_FOUND if path.nodes else NavigationPhase.IDLE

    def _end(self, phase: NavigationPhase) -> None:
        self.phase = phase
        self.path = None
        self.waypoint_index = 0

    def supersede(self) -> bool:
        """Discard the attempt in flight because a newer destination arrived."""
        if not self.is_active:
            return False
        logger.info("[INFO] Navigation superseded by a new destination request")
        self._end(NavigationPhase.SUPERSEDED)
        return True

    def abort(self) -> None:
        self._end(NavigationPhase.ABORTED)

    def reset(self) -> None:
        self._end(NavigationPhase.IDLE)

    def rebind(self, graph: FloorGraph) -> bool:
        """
        Switch to a reloaded graph, keeping the route only if every node still exists.

        Returns:
            bool: False if the route was dropped and the engine reverted to IDLE.
        """
        self.graph = graph
        self._recent_alerts = {k: v for k, v in self._recent_alerts.items() if k in graph}
        if self.path is None:
            return True
        if any(n.id not in graph for n in self.path.nodes):
            logger.warning("[WARNING] Route references nodes missing from the reloaded map; dropping it")
            self._end(NavigationPhase.IDLE)
            return False
        nodes = tuple(graph.get_node(n.id) for n in self.path.nodes)
        self.path = PathResult(nodes=nodes, total_distance=self.path.total_distance)
        return True

    # ----------- Progress -----------

    def update_progress(self, mapped_pos: Sequence[float]) -> List[str]:
        """
        Advance along the route when the current waypoint is reached.

        Returns:
            List[str]: Spoken cues produced on this tick.
        """
        if self.phase == NavigationPhase.PATH_FOUND:
            self.phase = NavigationPhase.NAVIGATING
        if self.phase != NavigationPhase.NAVIGATING:
            return []
        if self.path is None or self.path.destination.id not in self.graph:
            self._end(NavigationPhase.IDLE)
            return []

        target = self.current_target
        distance = self.graph.distance(mapped_pos, target.position)
        self.last_target_distance = distance
        if distance >= self.reached_distance:
            return []

        # At most one advance per tick; the next tick measures against the new target
        self.waypoint_index += 1
        if self.waypoint_index >= len(self.path.nodes):
            logger.info(f"[✓] Arrived at {target.name or target.id!r}")
            self._end(NavigationPhase.ARRIVED)
            return [nav_text("arrived", self.language)]

        next_node = self.path.nodes[self.waypoint_index]
        logger.debug(f"Reached waypoint {target.id!r}; next {next_node.id!r}")
        if next_node.is_named_waypoint:
            return [nav_text("approaching", self.language, name=next_node.name)]
        return []

    def markers(self, mapped_pos: Sequence[float], **kwargs) -> List[ArrowMarker]:
        """Markers for the remaining route, map frame. Empty when not navigating."""
        if not self.is_active:
            return []
        remaining = [n.position for n in self.remaining_path]
        markers = generate_markers(remaining, mapped_pos, **kwargs)
        if markers:
            logger.debug(f"Showing {len(markers)} markers")
        return markers

    # ----------- Restricted areas -----------

    def check_restricted_proximity(self, mapped_pos: Sequence[float], now: float) -> List[ProximityAlert]:
        """
        Raise an alert for each restricted area within the alert radius.

        An area re-alerts only after the cooldown, and its marker clears once
        the user is at least 1.5x the radius away. With ``abort_on_breach``
        any active navigation is aborted.
        """
        alerts: List[ProximityAlert] = []
        for area in self.graph.restricted_areas():
            distance = self.graph.distance(mapped_pos, area.position)
            if distance >= self.alert_radius * ALERT_CLEAR_FACTOR:
                self._recent_alerts.pop(area.id, None)
                continue
            if distance >= self.alert_radius:
                continue
            last = self._recent_alerts.get(area.id)
            if last is not None and now - last < self.alert_cooldown:
                continue
            self._recent_alerts[area.id] = now
            alerts.append(ProximityAlert(area.id, area.name, distance, now))
            logger.warning(f"[WARNING] Restricted area breach: {area.name or area.id!r} at {distance:.2f} m")

        if alerts and self.abort_on_breach and self.is_active:
            self.abort()
        return alerts
