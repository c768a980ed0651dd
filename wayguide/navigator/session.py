"""
Per-session state and the per-frame tick.

Results of off-tick work (landmark recognition, map loads, voice/AI
destination parsing) are never applied directly. Collaborators post them to
the session inbox and the next ``NavigationEngine.tick`` merges them, after
discarding anything issued against a state that has since moved on.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from wayguide.config import WayGuideConfig
from wayguide.navigator.calibration import Calibrated, CalibrationState, CoordinateCalibrator, Locked
from wayguide.navigator.graph import FloorGraph, GraphNode
from wayguide.navigator.guidance import (
    ArrowMarker,
    NavigationGuidanceEngine,
    NavigationPhase,
    ProximityAlert,
)
from wayguide.navigator.nav_text import nav_text, unit_text
from wayguide.navigator.pathfinder import PathFailure, PathOutcome, PathResult, ShortestPathFinder

logger = logging.getLogger(__name__)

FEET_PER_METER = 3.28084


# ----------- Inbox messages -----------

@dataclass(frozen=True)
class LandmarkMatch:
    """A recognised landmark; ``version`` is the calibration version at request time."""
    node_id: str
    local_pose: Tuple[float, float, float]
    version: int


@dataclass(frozen=True)
class DestinationRequest:
    """Free-text destination; ``ticket`` comes from SessionInbox.issue_destination_ticket."""
    text: str
    ticket: int


@dataclass(frozen=True)
class GraphLoaded:
    graph: FloorGraph


@dataclass(frozen=True)
class EmergencyEvacuation:
    """Route to the nearest emergency exit, superseding any navigation."""


InboxMessage = Union[LandmarkMatch, DestinationRequest, GraphLoaded, EmergencyEvacuation]


class SessionInbox:
    """
    Thread-safe hand-off point between asynchronous collaborators and the tick.

    Any thread may post; only the tick drains.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[InboxMessage]" = queue.SimpleQueue()
        self._ticket_lock = threading.Lock()
        self._latest_ticket = 0

    def issue_destination_ticket(self) -> int:
        """Reserve a ticket for a destination request; older tickets become stale."""
        with self._ticket_lock:
            self._latest_ticket += 1
            return self._latest_ticket

    @property
    def latest_ticket(self) -> int:
        with self._ticket_lock:
            return self._latest_ticket

    def post(self, message: InboxMessage) -> None:
        self._queue.put(message)

    def request_destination(self, text: str) -> DestinationRequest:
        """Issue a ticket and post the request in one step (synchronous callers)."""
        request = DestinationRequest(text=text, ticket=self.issue_destination_ticket())
        self.post(request)
        return request

    def drain(self) -> List[InboxMessage]:
        messages = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                return messages


# ----------- Session state -----------

@dataclass
class TickResult:
    """
    Everything a host needs to render and speak for one frame.

    Attributes:
        mapped_position: User position in the map frame.
        markers: Direction markers in the map frame.
        local_markers: The same markers re-projected into the live frame.
        cues: Strings to speak this frame, in order.
        alerts: Restricted-area alerts raised this frame.
        status: Short status line for display.
    """
    mapped_position: np.ndarray
    phase: NavigationPhase
    calibration: CalibrationState
    markers: List[ArrowMarker] = field(default_factory=list)
    local_markers: List[ArrowMarker] = field(default_factory=list)
    cues: List[str] = field(default_factory=list)
    alerts: List[ProximityAlert] = field(default_factory=list)
    status: str = ""
    path: Optional[PathResult] = None


class NavigationSession:
    """Explicit state for one navigation session; written only by NavigationEngine.tick."""

    def __init__(self, graph: FloorGraph, config: WayGuideConfig):
        self.config = config
        self.language = config.navigation_config.language
        self.inbox = SessionInbox()
        self.graph = graph
        self.finder = ShortestPathFinder(graph)
        self.calibrator = CoordinateCalibrator(graph, **config.calibration_config.calibrator_config)
        self.guidance = NavigationGuidanceEngine(
            graph, language=self.language, **config.navigation_config.guidance_config
        )
        self.calibration_version = 0
        self.pending_destination: Optional[str] = None
        self.pending_target: Optional[GraphNode] = None
        self.last_outcome: Optional[PathOutcome] = None
        self.greeted = False
        self.status = nav_text("waiting_position", self.language)

    @property
    def has_pending_route(self) -> bool:
        return self.pending_destination is not None or self.pending_target is not None

    def __repr__(self) -> str:
        return (f"<NavigationSession phase={self.guidance.phase.value} "
                f"calibration={type(self.calibrator.state).__name__} v={self.calibration_version}>")


class NavigationEngine:
    """
    Drives sessions one frame at a time.

    Each tick drains the inbox, updates calibration from the live pose,
    routes any pending destination, advances guidance, checks restricted
    areas and re-projects markers into the live frame.
    """

    def __init__(self, config: Optional[WayGuideConfig] = None):
        self.config = config or WayGuideConfig()

    def new_session(self, graph: FloorGraph) -> NavigationSession:
        if not graph.is_frozen:
            graph.freeze()
        return NavigationSession(graph, self.config)

    # ----------- Message handling -----------

    def _apply(self, session: NavigationSession, message: InboxMessage,
               local_pose: np.ndarray, cues: List[str]) -> None:
        lang = session.language
        if isinstance(message, LandmarkMatch):
            if message.version != session.calibration_version:
                logger.info(f"[INFO] Discarding stale landmark match {message.node_id!r} "
                            f"(v{message.version} != v{session.calibration_version})")
                return
            if not session.calibrator.lock(message.node_id, message.local_pose):
                return
            session.calibration_version += 1
            node = session.graph.get_node(message.node_id)
            session.status = f"Position: {node.name or node.id}"
            if not session.greeted and not session.has_pending_route and not session.guidance.is_active:
                session.greeted = True
                cues.append(nav_text("position_recognized", lang, name=node.name or node.id))

        elif isinstance(message, DestinationRequest):
            if message.ticket != session.inbox.latest_ticket:
                logger.info(f"[INFO] Discarding stale destination request {message.text!r}")
                return
            session.guidance.supersede()
            session.pending_destination = message.text
            session.pending_target = None
            # A new request also invalidates recognitions still in flight
            session.calibration_version += 1
            session.status = nav_text("finding_path", lang, name=message.text)

        elif isinstance(message, GraphLoaded):
            self._rebind(session, message.graph, cues)

        elif isinstance(message, EmergencyEvacuation):
            cues.append(nav_text("emergency", lang))
            mapped = session.calibrator.local_to_map(local_pose)
            exit_node = session.graph.nearest_emergency_exit(mapped)
            if exit_node is None:
                cues.append(nav_text("no_exits", lang))
                return
            session.guidance.supersede()
            session.pending_destination = None
            session.pending_target = exit_node
            logger.warning(f"[WARNING] Emergency: routing to exit {exit_node.name or exit_node.id!r}")

    def _rebind(self, session: NavigationSession, graph: FloorGraph, cues: List[str]) -> None:
        if not graph.is_frozen:
            graph.freeze()
        session.graph = graph
        session.finder = ShortestPathFinder(graph)
        session.calibrator.graph = graph
        state = session.calibrator.state
        if isinstance(state, (Locked, Calibrated)) and state.node_id not in graph:
            session.calibrator.reset()
            session.calibration_version += 1
        if not session.guidance.rebind(graph):
            cues.append(nav_text("map_updated", session.language))
        logger.info(f"[✓] Session map replaced: {graph}")

    # ----------- Routing -----------

    def _route_pending(self, session: NavigationSession, mapped: np.ndarray, cues: List[str]) -> None:
        lang = session.language
        target = session.pending_target
        name = session.pending_destination
        session.pending_target = None
        session.pending_destination = None

        if target is not None:
            outcome = session.finder.route_to_node(mapped, target)
        else:
            outcome = session.finder.plan(mapped, name)
        session.last_outcome = outcome

        if outcome.ok:
            session.guidance.start(outcome.result)
            label = outcome.result.destination.name or outcome.result.destination.id
            cues.append(nav_text("start_nav", lang, name=label))
            session.status = f"Navigate to {label}"
            return

        session.guidance.reset()
        if outcome.failure == PathFailure.DESTINATION_NOT_FOUND:
            names = ", ".join(wp.name for wp in session.graph.named_waypoints())
            cues.append(nav_text("not_found", lang, names=names))
        elif outcome.failure == PathFailure.DESTINATION_RESTRICTED:
            cues.append(nav_text("restricted_destination", lang, name=outcome.destination.name))
        else:
            label = outcome.destination.name if outcome.destination is not None else name
            cues.append(nav_text("no_path", lang, name=label))
        session.status = cues[-1]

    # ----------- Tick -----------

    def tick(
        self,
        session: NavigationSession,
        local_pose: Sequence[float],
        now: Optional[float] = None
    ) -> TickResult:
        """
        Advance a session by one frame.

        Args:
            session: The session to update.
            local_pose: Device position (x, y, z) in the live tracking frame.
            now: Frame timestamp in seconds; defaults to time.monotonic().

        Returns:
            TickResult: Guidance to render and speak for this frame.
        """
        now = time.monotonic() if now is None else now
        local = np.asarray(local_pose, dtype=float)
        cues: List[str] = []

        for message in session.inbox.drain():
            self._apply(session, message, local, cues)

        calibrator = session.calibrator
        calibrator.update(local)
        mapped = calibrator.local_to_map(local)

        if session.has_pending_route:
            if calibrator.is_locked:
                self._route_pending(session, mapped, cues)
            else:
                session.status = nav_text("waiting_position", session.language)

        guidance = session.guidance
        cues.extend(guidance.update_progress(mapped))
        alerts = guidance.check_restricted_proximity(mapped, now)
        for alert in alerts:
            cues.append(nav_text("restricted_alert", session.language, name=alert.area_name or alert.node_id))

        markers = guidance.markers(mapped, **self.config.navigation_config.marker_config)
        local_markers = [
            ArrowMarker(
                position=tuple(float(v) for v in calibrator.map_to_local(m.position)),
                heading=calibrator.map_heading_to_local(m.heading)
            )
            for m in markers
        ]

        if guidance.phase == NavigationPhase.NAVIGATING and guidance.last_target_distance is not None:
            unit = session.config.navigation_config.unit
            dist = guidance.last_target_distance * (FEET_PER_METER if unit == "feet" else 1.0)
            session.status = nav_text("distance_to_next", session.language,
                                      dist=unit_text(dist, unit, session.language))
        elif guidance.phase == NavigationPhase.ARRIVED:
            session.status = nav_text("arrived", session.language)

        return TickResult(
            mapped_position=mapped,
            phase=guidance.phase,
            calibration=calibrator.state,
            markers=markers,
            local_markers=local_markers,
            cues=cues,
            alerts=alerts,
            status=session.status,
            path=guidance.path,
        )
