"""
Frame and polygon helpers.

Polygons are (k, 2) float arrays, implicitly closed: the last vertex
connects back to the first.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import FrameInvalid


@dataclass(frozen=True)
class Frame:
    """Axis-aligned rectangle bounding the whole layout."""

    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self):
        if not (self.x1 - self.x0 > 0 and self.y1 - self.y0 > 0):
            raise FrameInvalid(self.x1 - self.x0, self.y1 - self.y0)

    @classmethod
    def from_size(cls, width: float, height: float, margin: float = 0.0) -> "Frame":
        """
        Build a frame anchored at the origin.

        Args:
            width: Canvas width
            height: Canvas height
            margin: Inset on every side as a fraction of min(width, height)

        Returns:
            Frame covering the canvas minus the margin
        """
        if not (width > 0 and height > 0):
            raise FrameInvalid(width, height)
        m = min(width, height) * margin
        return cls(m, m, width - m, height - m)

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, x: float, y: float) -> bool:
        """Closed containment test."""
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def polygon(self) -> np.ndarray:
        """Frame corners as a polygon."""
        return np.array([
            [self.x0, self.y0],
            [self.x1, self.y0],
            [self.x1, self.y1],
            [self.x0, self.y1],
        ], dtype=np.float64)

    def to_dict(self) -> dict:
        return {"x0": self.x0, "y0": self.y0, "x1": self.x1, "y1": self.y1}


def polygon_area(vertices: np.ndarray) -> float:
    """Signed shoelace area (positive for counter-clockwise in y-up axes)."""
    vertices = np.asarray(vertices, dtype=np.float64)
    if len(vertices) < 3:
        return 0.0
    x = vertices[:, 0]
    y = vertices[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    # Calculate area and centroid using shoelace formula
    n = len(vertices)
    area = 0.0
    cx = 0.0
    cy = 0.0

    for i in range(n):
        j = (i + 1) % n
        a = vertices[i][0] * vertices[j][1] - vertices[j][0] * vertices[i][1]
        area += a
        cx += (vertices[i][0] + vertices[j][0]) * a
        cy += (vertices[i][1] + vertices[j][1]) * a

    if abs(area) < 1e-10:
        return np.mean(vertices, axis=0)

    area *= 0.5
    cx /= (6.0 * area)
    cy /= (6.0 * area)

    return np.array([cx, cy])


def polygon_bounds(vertices: np.ndarray) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y)."""
    vertices = np.asarray(vertices, dtype=np.float64)
    mins = vertices.min(axis=0)
    maxs = vertices.max(axis=0)
    return float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])


def inset_polygon(vertices: np.ndarray, scale: float) -> np.ndarray:
    """
    Shrink a polygon toward its centroid to leave a seam gap.

    Each vertex v becomes centroid + (v - centroid) * scale. The result stays
    simple for convex input; non-convex cells may self-intersect and are
    returned as computed.

    Args:
        vertices: Polygon vertices
        scale: Scale factor in (0, 1]; 1 returns an exact copy

    Returns:
        New (k, 2) vertex array
    """
    if not 0.0 < scale <= 1.0:
        raise ValueError(f"Inset scale must be in (0, 1], got {scale}")

    vertices = np.asarray(vertices, dtype=np.float64)
    if scale == 1.0:
        return vertices.copy()

    centroid = polygon_centroid(vertices)
    return centroid + (vertices - centroid) * scale
