"""
Live-frame ↔ map-frame calibration.

Every tracking session starts with its own origin and heading. The stored
floor graph lives in a fixed map frame. The two differ by a rotation about
the vertical (y) axis and a translation; no absolute sensor observes either,
so they are recovered in two phases:

    1. Lock: a recognised landmark pairs one local pose with one map node.
       This fixes translation only.
    2. Rotation resolve: once the user has walked far enough from the lock
       point, the walked heading is compared against the headings of the
       edges leaving the lock node. The candidate yaw whose prediction lands
       closest to a known node wins.

Until phase 2 completes all transforms are translation-only.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.transform import Rotation as R

from wayguide.navigator.graph import FloorGraph, GraphNode, Vec3

logger = logging.getLogger(__name__)

MIN_WALK_DISTANCE = 0.7   # metres walked before heading is trusted
MIN_EDGE_LENGTH = 0.05    # metres; shorter edges carry no usable heading


# ----------- Calibration states -----------

@dataclass(frozen=True)
class Uninitialized:
    """No landmark seen yet; transforms are the identity."""


@dataclass(frozen=True)
class Locked:
    """Translation fixed by one landmark match; rotation still unknown."""
    ref_local: Vec3
    ref_map: Vec3
    node_id: str


@dataclass(frozen=True)
class Calibrated:
    """
    Translation and yaw both resolved.

    Attributes:
        yaw_offset: Rotation about +y (radians) taking local headings to map headings.
        confident: False when the yaw fell back to zero for lack of usable edges.
    """
    ref_local: Vec3
    ref_map: Vec3
    node_id: str
    yaw_offset: float
    confident: bool = True


CalibrationState = Union[Uninitialized, Locked, Calibrated]


def wrap_angle(angle: float) -> float:
    """Wrap an angle in radians to [-pi, pi)."""
    return (angle + math.pi) % (2 * math.pi) - math.pi


def horizontal_heading(dx: float, dz: float) -> float:
    """Heading (radians) of a horizontal displacement, measured from +z towards +x."""
    return math.atan2(dx, dz)


def yaw_rotation(yaw: float) -> R:
    """Rotation about the vertical axis; increases headings by ``yaw``."""
    return R.from_euler("y", yaw)


@dataclass(frozen=True)
class YawCandidate:
    neighbor_id: str
    yaw: float
    score: float


class CoordinateCalibrator:
    """
    Maintains the affine transform between a live tracking frame and the map frame.

    The calibrator is written by the session tick only: ``lock`` when a
    landmark event is merged, ``update`` on every tick. The transform methods
    are pure functions of the current state.
    """

    def __init__(
        self,
        graph: FloorGraph,
        min_walk_distance: float = MIN_WALK_DISTANCE,
        min_edge_length: float = MIN_EDGE_LENGTH
    ):
        self.graph = graph
        self.min_walk_distance = min_walk_distance
        self.min_edge_length = min_edge_length
        self.state: CalibrationState = Uninitialized()
        self.last_candidates: List[YawCandidate] = []
        self._rotation: R = R.identity()

    # ----------- State inspection -----------

    @property
    def is_locked(self) -> bool:
        return not isinstance(self.state, Uninitialized)

    @property
    def is_calibrated(self) -> bool:
        return isinstance(self.state, Calibrated)

    @property
    def yaw_offset(self) -> float:
        return self.state.yaw_offset if isinstance(self.state, Calibrated) else 0.0

    @property
    def yaw_offset_deg(self) -> float:
        return math.degrees(self.yaw_offset)

    def _set_state(self, state: CalibrationState) -> None:
        self.state = state
        self._rotation = yaw_rotation(self.yaw_offset)

    def reset(self) -> None:
        self._set_state(Uninitialized())
        self.last_candidates = []

    # ----------- Phase 1 -----------

    def lock(self, node: Union[str, GraphNode], local_pose: Sequence[float]) -> bool:
        """
        Anchor the live frame to a recognised landmark node.

        Any earlier lock or calibration is discarded.

        Args:
            node: Matched node (or its id).
            local_pose: (x, y, z) of the device in the live frame at match time.

        Returns:
            bool: False if the node is not part of the graph.
        """
        node_id = node.id if isinstance(node, GraphNode) else node
        matched = self.graph.get_node(node_id)
        if matched is None:
            logger.warning(f"[WARNING] Landmark lock ignored, unknown node id: {node_id!r}")
            return False
        ref_local = tuple(float(v) for v in local_pose)
        self.last_candidates = []
        self._set_state(Locked(ref_local=ref_local, ref_map=matched.position, node_id=matched.id))
        logger.info(f"[✓] Calibration locked at {matched.name or matched.id!r}: "
                    f"local={np.round(ref_local, 3).tolist()} map={list(matched.position)}")
        return True

    # ----------- Phase 2 -----------

    def update(self, local_pose: Sequence[float]) -> bool:
        """
        Try to resolve the yaw from the displacement walked since the lock.

        Returns:
            bool: True if this call moved the state to Calibrated.
        """
        state = self.state
        if not isinstance(state, Locked):
            return False
        local = np.asarray(local_pose, dtype=float)
        disp = local - np.asarray(state.ref_local, dtype=float)
        walked = math.hypot(disp[0], disp[2])
        if walked < self.min_walk_distance:
            return False

        calibrated = self._resolve_yaw(state, disp)
        self._set_state(calibrated)
        if calibrated.confident:
            logger.info(f"[✓] Calibration resolved: yaw={math.degrees(calibrated.yaw_offset):.1f}° "
                        f"after {walked:.2f} m ({len(self.last_candidates)} candidates)")
        else:
            logger.warning("[WARNING] Lock node has no usable edges; calibrated with yaw=0 (low confidence)")
        return True

    def _resolve_yaw(self, state: Locked, disp: np.ndarray) -> Calibrated:
        local_heading = horizontal_heading(disp[0], disp[2])
        ref_map = np.asarray(state.ref_map, dtype=float)

        candidates: List[YawCandidate] = []
        for neighbor in self.graph.neighbors_of(state.node_id):
            edge = neighbor.as_array() - ref_map
            if math.hypot(edge[0], edge[2]) < self.min_edge_length:
                continue
            yaw = wrap_angle(horizontal_heading(edge[0], edge[2]) - local_heading)
            predicted = ref_map + yaw_rotation(yaw).apply(disp)
            nearest = self.graph.nearest_node(predicted)
            score = self.graph.distance(predicted, nearest.position)
            candidates.append(YawCandidate(neighbor.id, yaw, score))
            logger.debug(f"yaw candidate via {neighbor.id!r}: {math.degrees(yaw):.1f}° score={score:.3f}")
        self.last_candidates = candidates

        if not candidates:
            return Calibrated(state.ref_local, state.ref_map, state.node_id, 0.0, confident=False)

        best = candidates[0]
        for cand in candidates[1:]:
            if cand.score < best.score:
                best = cand
        return Calibrated(state.ref_local, state.ref_map, state.node_id, best.yaw)

    # ----------- Transforms -----------

    def _refs(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        state = self.state
        if isinstance(state, Uninitialized):
            return None
        return np.asarray(state.ref_local, dtype=float), np.asarray(state.ref_map, dtype=float)

    def local_to_map(self, p: Sequence[float]) -> np.ndarray:
        """Map a live-frame point into the map frame."""
        p = np.asarray(p, dtype=float)
        refs = self._refs()
        if refs is None:
            return p.copy()
        ref_local, ref_map = refs
        return ref_map + self._rotation.apply(p - ref_local)

    def map_to_local(self, p: Sequence[float]) -> np.ndarray:
        """Map a map-frame point into the live frame (inverse of local_to_map)."""
        p = np.asarray(p, dtype=float)
        refs = self._refs()
        if refs is None:
            return p.copy()
        ref_local, ref_map = refs
        return ref_local + self._rotation.inv().apply(p - ref_map)

    def map_heading_to_local(self, heading_deg: float) -> float:
        """Convert a map-frame heading (degrees) to the live frame, wrapped to [-180, 180)."""
        return math.degrees(wrap_angle(math.radians(heading_deg) - self.yaw_offset))

    def local_heading_to_map(self, heading_deg: float) -> float:
        return math.degrees(wrap_angle(math.radians(heading_deg) + self.yaw_offset))

    def __repr__(self) -> str:
        return f"<CoordinateCalibrator state={type(self.state).__name__} yaw={self.yaw_offset_deg:.1f}°>"
