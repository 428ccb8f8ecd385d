"""Leaf-node geometry helpers for axis-aligned bounding boxes. No engine imports."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class BBox:
    """Axis-aligned box in SVG user units; y grows downwards."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_bounds(cls, xmin: float, ymin: float, xmax: float, ymax: float) -> BBox:
        return cls(xmin, ymin, xmax - xmin, ymax - ymin)


@dataclass(frozen=True)
class Intersection:
    x: float
    y: float
    width: float
    height: float
    area: float
    # Intersection area over the smaller of the two box areas
    overlap_ratio: float


def calculate_intersection(a: BBox, b: BBox) -> Intersection | None:
    """Overlap of two boxes, or None when they only touch or are disjoint."""
    left = max(a.x, b.x)
    right = min(a.right, b.right)
    top = max(a.y, b.y)
    bottom = min(a.bottom, b.bottom)

    if not (left < right and top < bottom):
        return None

    width = right - left
    height = bottom - top
    area = width * height
    smaller = min(a.area, b.area)
    return Intersection(
        x=left,
        y=top,
        width=width,
        height=height,
        area=area,
        overlap_ratio=area / smaller if smaller > 0 else 0.0,
    )


def intersection_area(a: BBox, b: BBox) -> float:
    inter = calculate_intersection(a, b)
    return inter.area if inter is not None else 0.0


def overlap_ratio(a: BBox, b: BBox) -> float:
    inter = calculate_intersection(a, b)
    return inter.overlap_ratio if inter is not None else 0.0


def union_bbox(boxes: Sequence[BBox]) -> BBox:
    """Smallest box enclosing every input box. Empty input gives a zero box."""
    if not boxes:
        return BBox(0.0, 0.0, 0.0, 0.0)
    return BBox.from_bounds(
        min(b.x for b in boxes),
        min(b.y for b in boxes),
        max(b.right for b in boxes),
        max(b.bottom for b in boxes),
    )


def center_distance(a: BBox, b: BBox) -> float:
    (ax, ay), (bx, by) = a.center, b.center
    return math.hypot(bx - ax, by - ay)


def size_similarity(a: BBox, b: BBox) -> float:
    """Area ratio smaller/larger in [0, 1]; 0 when either box is degenerate."""
    larger = max(a.area, b.area)
    if larger <= 0:
        return 0.0
    return min(a.area, b.area) / larger


def _bounds_array(boxes: Sequence[BBox]) -> NDArray[np.float64]:
    if not boxes:
        return np.empty((0, 4))
    return np.array([(b.x, b.y, b.right, b.bottom) for b in boxes], dtype=np.float64)


def intersection_area_matrix(boxes: Sequence[BBox]) -> NDArray[np.float64]:
    """Pairwise intersection areas; entry [i, j] is 0 where boxes i and j do not overlap.

    The diagonal holds each box's own area.
    """
    bounds = _bounds_array(boxes)
    left = np.maximum.outer(bounds[:, 0], bounds[:, 0])
    top = np.maximum.outer(bounds[:, 1], bounds[:, 1])
    right = np.minimum.outer(bounds[:, 2], bounds[:, 2])
    bottom = np.minimum.outer(bounds[:, 3], bounds[:, 3])

    width = right - left
    height = bottom - top
    overlapping = (width > 0) & (height > 0)
    return np.where(overlapping, width * height, 0.0)


def center_distance_matrix(boxes: Sequence[BBox]) -> NDArray[np.float64]:
    """Pairwise Euclidean distances between box centers."""
    bounds = _bounds_array(boxes)
    cx = (bounds[:, 0] + bounds[:, 2]) / 2
    cy = (bounds[:, 1] + bounds[:, 3]) / 2
    return np.sqrt(np.subtract.outer(cx, cx) ** 2 + np.subtract.outer(cy, cy) ** 2)
