# commander.py

import math
from typing import List, Dict, Any, Literal, Optional

from wayguide.navigator.nav_text import nav_text, unit_text
from wayguide.navigator.pathfinder import PathResult

TURN_THRESHOLD_DEG = 5.0
NEXT_TURN_THRESHOLD_DEG = 25.0
MIN_SEGMENT_LENGTH = 0.1

def normalize_angle(angle: float) -> float:
    """
    Normalize an angle to the range [-180, 180) degrees.

    Args:
        angle: Angle in degrees.

    Returns:
        Normalized angle in [-180, 180).
    """
    return (angle + 180) % 360 - 180

def segment_heading(p0, p1) -> float:
    """Map-frame heading in degrees of the horizontal segment p0 -> p1 (atan2(dx, dz))."""
    return math.degrees(math.atan2(p1[0] - p0[0], p1[2] - p0[2]))

def convert_distance(meters: float, unit: Literal["meter", "feet"], lang: str) -> str:
    """
    Convert a distance to a localized string in meters or feet.

    Args:
        meters: Distance in meters.
        unit: "meter" or "feet".
        lang: Language code.

    Returns:
        Localized distance string.
    """
    if unit == "feet":
        feet = meters * 3.28084
        return unit_text(feet, "feet", lang)
    elif unit == "meter":
        return unit_text(meters, "meter", lang)
    else:
        raise ValueError("Unit must be 'meter' or 'feet'.")

def clock_hour(turn: float) -> int:
    """Clock-face hour for a relative turn in degrees (positive turns are to the left)."""
    clock_n = int(round(-turn / 30)) % 12
    return 12 if clock_n == 0 else clock_n

def commands_from_path(
    path: Optional[PathResult],
    initial_heading: Optional[float] = None,
    unit: Literal["meter", "feet"] = "meter",
    language: str = "en"
) -> List[Dict[str, Any]]:
    """
    Generate step-by-step spoken instructions for a route.

    Each command is a dictionary with:
    - tag: semantic label ('start_nav', 'forward', 'turn', 'u_turn', 'arrive')
    - text: localized instruction string
    - meta: optional metadata (distance, direction, clock hour)

    Args:
        path: Route returned by the path finder.
        initial_heading: User heading in map-frame degrees; None assumes the
            user already faces the first segment.
        unit: Distance unit, either 'meter' or 'feet'.
        language: Language code for localization.

    Returns:
        List of dictionaries, each representing a navigation command.
    """
    if path is None or not path.nodes:
        raise ValueError("Cannot generate commands: empty path")

    coords = [n.position for n in path.nodes]
    final_label = path.destination.name or path.destination.id
    commands: List[Dict[str, Any]] = [{
        "tag": "start_nav",
        "text": nav_text("start_nav", language, name=final_label)
    }]

    heading = initial_heading
    straight_distance = 0.0

    def flush_forward():
        nonlocal straight_distance
        if straight_distance > 0:
            dist_str = convert_distance(straight_distance, unit, language)
            commands.append({
                "tag": "forward",
                "text": nav_text("forward", language, dist=dist_str),
                "meta": {"distance": dist_str}
            })
            straight_distance = 0.0

    # Segments too short to carry a direction are folded into the walk
    segments = []
    for p0, p1 in zip(coords[:-1], coords[1:]):
        length = math.hypot(p1[0] - p0[0], p1[2] - p0[2])
        if length >= MIN_SEGMENT_LENGTH:
            segments.append((segment_heading(p0, p1), length))

    for i, (bearing, length) in enumerate(segments):
        if heading is None:
            heading = bearing

        # --- Turn detection ---
        turn = normalize_angle(bearing - heading)
        if abs(turn) >= TURN_THRESHOLD_DEG:
            flush_forward()
            hour = clock_hour(turn)
            if hour == 6:
                commands.append({
                    "tag": "u_turn",
                    "text": nav_text("u_turn", language)
                })
            else:
                qual = "Slight" if abs(turn) < 45 else "Turn" if abs(turn) < 90 else "Sharp"
                direction_word = "left" if turn > 0 else "right"
                commands.append({
                    "tag": "turn",
                    "text": nav_text("turn", language, qual=qual, direction=direction_word, hour=hour),
                    "meta": {"qual": qual, "direction": direction_word, "hour": hour}
                })
            heading = bearing

        straight_distance += length

        # If approaching next turn or end, emit forward
        is_last = i == len(segments) - 1
        next_turn = not is_last and abs(normalize_angle(segments[i + 1][0] - heading)) >= NEXT_TURN_THRESHOLD_DEG
        if is_last or next_turn:
            flush_forward()

    commands.append({
        "tag": "arrive",
        "text": nav_text("arrive", language, label=final_label),
        "meta": {"label": final_label}
    })
    return commands
