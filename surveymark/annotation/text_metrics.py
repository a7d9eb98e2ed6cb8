"""
Text footprint measurement for dimension labels
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Tuple

from PIL import ImageFont

from surveymark import config


@dataclass(frozen=True)
class TextExtent:
    """Rendered width and height of a block of text"""
    width: float
    height: float


class TextMeasurer(ABC):
    """Measures how much room a string takes at a given font size"""

    @abstractmethod
    def measure(self, text: str, font_size: float, bold: bool = False) -> TextExtent:
        """
        Measure text

        Args:
            text: Text to measure (may contain newlines)
            font_size: Font size in pixels
            bold: Whether the bold face is used

        Returns:
            TextExtent; empty text measures as zero by zero
        """
        pass


class PillowTextMeasurer(TextMeasurer):
    """
    Measures text with Pillow fonts

    Uses the TrueType fonts given (or configured through
    SURVEYMARK_LABEL_FONT / SURVEYMARK_LABEL_FONT_BOLD), falling back to
    Pillow's bundled default font. Line height equals the font size.
    """

    def __init__(self, font_path: Optional[str] = None, bold_font_path: Optional[str] = None):
        self.font_path = font_path
        self.bold_font_path = bold_font_path or font_path
        self._fonts: Dict[Tuple[int, bool], ImageFont.ImageFont] = {}

    def _font(self, pixel_size: int, bold: bool):
        key = (pixel_size, bold)
        if key not in self._fonts:
            path = self.bold_font_path if bold else self.font_path
            if path:
                self._fonts[key] = ImageFont.truetype(path, pixel_size)
            else:
                self._fonts[key] = ImageFont.load_default(size=pixel_size)
        return self._fonts[key]

    def measure(self, text: str, font_size: float, bold: bool = False) -> TextExtent:
        if not text or font_size <= 0:
            return TextExtent(0.0, 0.0)

        # Fonts are loaded at integer sizes; scale the result back to the requested size
        pixel_size = max(1, int(round(font_size)))
        font = self._font(pixel_size, bold)
        ratio = font_size / pixel_size

        lines = text.split("\n")
        width = max(font.getlength(line) for line in lines) * ratio
        height = font_size * len(lines)
        return TextExtent(width=float(width), height=float(height))


@lru_cache(maxsize=1)
def default_measurer() -> PillowTextMeasurer:
    """Shared measurer built from the configured label fonts"""
    return PillowTextMeasurer(config.LABEL_FONT_PATH, config.LABEL_FONT_BOLD_PATH)
