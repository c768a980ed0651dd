"""Text helpers for payloads produced by the OCR and conversational collaborators."""

from dataclasses import dataclass
from typing import Iterable, Optional

from wayguide.navigator.graph import FloorGraph, GraphNode

NAVIGATE_PREFIX = "NAVIGATE_TO:"
MIN_OCR_TEXT_LENGTH = 3
MIN_OCR_PARTIAL_LENGTH = 5


def match_landmark_text(texts: Iterable[str], graph: FloorGraph) -> Optional[GraphNode]:
    """
    Match recognised sign text against the graph's named waypoints.

    Blocks shorter than 3 characters are noise. A block matches a waypoint
    exactly (case-insensitive); blocks of 5+ characters may also match when
    either string contains the other. The first matching block wins.
    """
    waypoints = graph.named_waypoints()
    for text in texts:
        clean = text.strip().upper()
        if len(clean) < MIN_OCR_TEXT_LENGTH:
            continue
        match = next((wp for wp in waypoints if wp.name.upper() == clean), None)
        if match is None and len(clean) >= MIN_OCR_PARTIAL_LENGTH:
            match = next(
                (wp for wp in waypoints if clean in wp.name.upper() or wp.name.upper() in clean),
                None
            )
        if match is not None:
            return match
    return None


@dataclass(frozen=True)
class AssistantReply:
    speech: str
    destination: Optional[str] = None


def _strip_wrapping(text: str) -> str:
    for left, right in (("[", "]"), ('"', '"'), ("'", "'")):
        if len(text) >= 2 and text.startswith(left) and text.endswith(right):
            text = text[1:-1]
    return text.strip()


def parse_assistant_reply(reply: str) -> AssistantReply:
    """
    Split an assistant reply into the part to speak and an optional destination.

    A destination is announced on its own line as ``NAVIGATE_TO: Name``;
    brackets and quotes around the name are removed.
    """
    reply = reply.strip()
    if NAVIGATE_PREFIX not in reply:
        return AssistantReply(speech=reply)
    before, after = reply.split(NAVIGATE_PREFIX, 1)
    lines = after.strip().splitlines()
    destination = _strip_wrapping(lines[0].strip()) if lines else ""
    return AssistantReply(speech=before.strip(), destination=destination or None)
