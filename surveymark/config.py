"""
Configuration settings for the SurveyMark annotation subsystem
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

# Schema versions
NORMALIZED_COORD_VERSION = 3  # image-relative points, sizes, stroke widths and font sizes
PIXEL_LENGTHS_VERSION = 2  # image-relative points; stroke width and font size still in stage pixels
LEGACY_SANITIZED_VERSION = 1  # stage-pixel geometry with presentation keys stripped
IMAGE_NORMALIZED_VERSION = 1  # reserved for image-pipeline revisions

# Annotation defaults
DEFAULT_STROKE_COLOR = "#ff0000"
DEFAULT_DIMENSION_COLOR = "#ef4444"
DEFAULT_STROKE_WIDTH = 4
DEFAULT_FONT_SIZE = 20
MIN_LEGACY_FONT_SIZE = 8  # smaller values in old payloads were normalization artifacts
DEFAULT_TEXT = "Text"

# Viewport zoom settings
MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
WHEEL_ZOOM_STEP = 0.15
DOUBLE_TAP_ZOOM_STEP = 0.5
DOUBLE_TAP_RESET_SCALE = 2.0

# Label measurement
# Optional TrueType font for label metrics; Pillow's bundled font is used otherwise
LABEL_FONT_PATH = os.getenv('SURVEYMARK_LABEL_FONT') or None
LABEL_FONT_BOLD_PATH = os.getenv('SURVEYMARK_LABEL_FONT_BOLD') or LABEL_FONT_PATH

# Logging
LOG_LEVEL = os.getenv('SURVEYMARK_LOG_LEVEL', 'INFO').upper()


@dataclass(frozen=True)
class LayoutConfig:
    """
    Metrics used by the dimension layout engine

    Attributes:
        default_side_sign: Side used for a dimension with no cached preference
        bounds_tolerance: How far (px) a label box may spill past the stage edge
        bbox_padding: Padding (px) around the label block when testing placement
        max_push_iterations: How many times the label is pushed outward to clear the line
        comment_font_delta: Comment font size is the label font size minus this
    """
    default_side_sign: int = 1
    bounds_tolerance: float = 10.0
    bbox_padding: float = 8.0
    max_push_iterations: int = 8
    comment_font_delta: float = 2.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "LayoutConfig":
        """Build from a mapping, ignoring unknown keys"""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "default_side_sign" in values and values["default_side_sign"] not in (1, -1):
            raise ValueError("layout.default_side_sign must be 1 or -1")
        return cls(**values)


DEFAULT_LAYOUT = LayoutConfig()


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration overrides from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configuration dictionary
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return config or {}


def load_layout_config(config_path: Optional[Path] = None) -> LayoutConfig:
    """
    Load dimension layout metrics, reading the ``layout`` section of a YAML file when given

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        LayoutConfig with any overrides applied
    """
    if config_path is None:
        return DEFAULT_LAYOUT
    return LayoutConfig.from_mapping(load_config(config_path).get("layout"))
