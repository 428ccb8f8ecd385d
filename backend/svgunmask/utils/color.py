"""Color parsing and similarity for fill/stroke values."""

from __future__ import annotations

import math
import re

import numpy as np

_RGB_RE = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$", re.IGNORECASE)

# CSS named colors most often seen in hand-written SVG
_NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "brown": (165, 42, 42),
    "pink": (255, 192, 203),
}

# Largest possible distance in RGB space: corner to corner of the cube
_MAX_RGB_DISTANCE = 255 * math.sqrt(3)


def parse_color(color: str | None) -> tuple[int, int, int] | None:
    """Parse #rgb, #rrggbb, rgb(r,g,b) or a named color to an (r, g, b) triple."""
    if not color:
        return None
    color = color.strip()
    if not color or color == "none":
        return None

    if color.startswith("#"):
        hex_part = color[1:]
        if len(hex_part) == 3:
            hex_part = "".join(ch * 2 for ch in hex_part)
        if len(hex_part) != 6:
            return None
        try:
            return (int(hex_part[0:2], 16), int(hex_part[2:4], 16), int(hex_part[4:6], 16))
        except ValueError:
            return None

    m = _RGB_RE.match(color)
    if m:
        return (int(m.group(1)), int(m.group(2)), int(m.group(3)))

    return _NAMED_COLORS.get(color.lower())


def color_similarity(color_a: str | None, color_b: str | None) -> float:
    """Similarity in [0, 1]: 1 for identical strings, 0 if either is "none" or unparsable."""
    if color_a == color_b:
        return 1.0
    if color_a == "none" or color_b == "none":
        return 0.0

    rgb_a = parse_color(color_a)
    rgb_b = parse_color(color_b)
    if rgb_a is None or rgb_b is None:
        return 0.0

    distance = float(np.linalg.norm(np.subtract(rgb_a, rgb_b)))
    return max(0.0, 1.0 - distance / _MAX_RGB_DISTANCE)
