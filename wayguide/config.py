import os
import yaml
from typing import Dict, Any, Optional

from wayguide.navigator.nav_text import SUPPORTED_LANGUAGES

SUPPORTED_UNITS = ("meter", "feet")


class WayGuideConfig:
    """
    Unified configuration container for the WayGuide system.
    Centralizes calibration, navigation and recording configuration blocks.
    """
    def __init__(
        self,
        language: str = "en",
        unit: str = "meter",
        calibration: Optional[Dict[str, Any]] = None,
        navigation: Optional[Dict[str, Any]] = None,
        recording: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize unified configuration for the WayGuide engine.

        Args:
            language (str): Language for spoken/status strings.
            unit (str): Distance unit for spoken strings ("meter" or "feet").
            calibration (Dict): Overrides for the calibration block.
            navigation (Dict): Overrides for the navigation block.
            recording (Dict): Overrides for the recording block.
        """
        self.calibration_config = WayGuideCalibrationConfig(**(calibration or {}))
        self.navigation_config = WayGuideNavigationConfig(language=language, unit=unit, **(navigation or {}))
        self.recording_config = WayGuideRecordingConfig(**(recording or {}))

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "WayGuideConfig":
        """
        Load a configuration from YAML. Missing keys keep their defaults.

        Args:
            yaml_path (str): Path to the YAML file.

        Returns:
            WayGuideConfig
        """
        if not os.path.exists(yaml_path):
            raise FileNotFoundError(f"Config file not found: {yaml_path}")
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        nav = dict(data.get("navigation_config") or {})
        return cls(
            language=nav.pop("language", "en"),
            unit=nav.pop("unit", "meter"),
            calibration=data.get("calibration_config"),
            navigation=nav,
            recording=data.get("recording_config")
        )

    def save_yaml(self, yaml_path: str) -> None:
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, sort_keys=False, allow_unicode=True)
        print(f"[✓] YAML written to: {yaml_path}.")

    def to_dict(self) -> dict:
        """
        Export all configuration blocks as a nested dictionary.

        Returns:
            dict: A dictionary representing the full configuration.
        """
        return {
            "calibration_config": self.calibration_config.to_dict(),
            "navigation_config": self.navigation_config.to_dict(),
            "recording_config": self.recording_config.to_dict(),
        }

    def __repr__(self) -> str:
        return (f"<WayGuideConfig lang={self.navigation_config.language} "
                f"unit={self.navigation_config.unit}>")


def _require_positive(block: Dict[str, Any], name: str) -> None:
    for key, value in block.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if value <= 0:
            raise ValueError(f"{name}.{key} must be positive, got {value}")

# -------------------------------- Calibration Config --------------------------------

class WayGuideCalibrationConfig:
    """
    Configuration for the two-phase live-frame calibration.
    """
    def __init__(self, min_walk_distance: float = 0.7, min_edge_length: float = 0.05) -> None:
        self.min_walk_distance: float = min_walk_distance
        self.min_edge_length: float = min_edge_length
        self.calibrator_config: Dict[str, Any] = self._init_calibrator_config()

    def _init_calibrator_config(self) -> dict:
        """
        Keyword arguments for CoordinateCalibrator.
        """
        block = {
            "min_walk_distance": float(self.min_walk_distance),
            "min_edge_length": float(self.min_edge_length),
        }
        _require_positive(block, "calibration_config")
        return block

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.calibrator_config)

# -------------------------------- Navigation Config --------------------------------

class WayGuideNavigationConfig:
    """
    Configuration for route following, markers and restricted-area alerts.
    """
    def __init__(
        self,
        language: str = "en",
        unit: str = "meter",
        reached_distance: float = 0.8,
        arrow_spacing: float = 0.8,
        arrow_start_offset: float = 0.3,
        max_visible_arrows: int = 7,
        max_arrow_distance: float = 6.0,
        arrow_height_offset: float = 0.1,
        restricted_alert_radius: float = 2.0,
        restricted_alert_cooldown: float = 10.0,
        abort_on_breach: bool = True
    ) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        if unit not in SUPPORTED_UNITS:
            raise ValueError(f"Unsupported unit: {unit}")
        self.language: str = language
        self.unit: str = unit
        self.guidance_config: Dict[str, Any] = self._init_guidance_config(
            reached_distance, restricted_alert_radius, restricted_alert_cooldown, abort_on_breach
        )
        self.marker_config: Dict[str, Any] = self._init_marker_config(
            arrow_spacing, arrow_start_offset, max_visible_arrows, max_arrow_distance, arrow_height_offset
        )

    def _init_guidance_config(self, reached_distance, alert_radius, alert_cooldown, abort_on_breach) -> dict:
        """
        Keyword arguments for NavigationGuidanceEngine.
        """
        block = {
            "reached_distance": float(reached_distance),
            "alert_radius": float(alert_radius),
            "alert_cooldown": float(alert_cooldown),
            "abort_on_breach": bool(abort_on_breach),
        }
        _require_positive(block, "navigation_config")
        return block

    def _init_marker_config(self, spacing, start_offset, max_count, max_distance, height_offset) -> dict:
        """
        Keyword arguments for generate_markers.
        """
        block = {
            "spacing": float(spacing),
            "max_count": int(max_count),
            "max_distance": float(max_distance),
        }
        _require_positive(block, "navigation_config")
        # Offsets may legitimately be zero
        block["start_offset"] = float(start_offset)
        block["height_offset"] = float(height_offset)
        return block

    def to_dict(self) -> Dict[str, Any]:
        g, m = self.guidance_config, self.marker_config
        return {
            "language": self.language,
            "unit": self.unit,
            "reached_distance": g["reached_distance"],
            "arrow_spacing": m["spacing"],
            "arrow_start_offset": m["start_offset"],
            "max_visible_arrows": m["max_count"],
            "max_arrow_distance": m["max_distance"],
            "arrow_height_offset": m["height_offset"],
            "restricted_alert_radius": g["alert_radius"],
            "restricted_alert_cooldown": g["alert_cooldown"],
            "abort_on_breach": g["abort_on_breach"],
        }

# -------------------------------- Recording Config --------------------------------

class WayGuideRecordingConfig:
    """
    Configuration for the map recorder.
    """
    def __init__(self, min_spacing: float = 1.0) -> None:
        if min_spacing <= 0:
            raise ValueError(f"recording_config.min_spacing must be positive, got {min_spacing}")
        self.min_spacing: float = float(min_spacing)

    def to_dict(self) -> Dict[str, Any]:
        return {"min_spacing": self.min_spacing}
