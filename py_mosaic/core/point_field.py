"""Jittered point field generation."""

import math
from dataclasses import dataclass

import numpy as np
import structlog

from ..config import settings
from .mulberry_prng import MulberryPRNG
from .polygon import Frame

logger = structlog.get_logger()


@dataclass
class PointField:
    """Seed points for the tessellation plus the grid they came from."""
    points: np.ndarray  # (n, 2); grid points row-major, then extras
    cols: int
    rows: int
    cell_width: float
    cell_height: float
    extra_count: int

    @property
    def grid_count(self) -> int:
        return self.cols * self.rows


def round_half_up(value: float) -> int:
    """Round to nearest integer with halves going up (JavaScript Math.round)."""
    return int(math.floor(value + 0.5))


def grid_shape(frame: Frame, target_count: int,
               min_cols: int = None, min_rows: int = None):
    """
    Pick grid columns and rows approximating target_count cells.

    The grid follows the frame's aspect ratio; counts below the minimum grid
    are clamped rather than rejected.

    Returns:
        Tuple of (cols, rows)
    """
    if target_count < 1:
        raise ValueError(f"Target cell count must be >= 1, got {target_count}")
    min_cols = settings.min_grid_cols if min_cols is None else min_cols
    min_rows = settings.min_grid_rows if min_rows is None else min_rows

    aspect = frame.height / frame.width
    cols = max(min_cols, round_half_up(math.sqrt(target_count / aspect)))
    rows = max(min_rows, round_half_up(cols * aspect))
    return cols, rows


def generate_point_field(frame: Frame, target_count: int, prng: MulberryPRNG,
                         jitter: float = None, extra_fraction: float = None,
                         min_cols: int = None, min_rows: int = None) -> PointField:
    """
    Generate jittered grid points over the frame.

    Every grid cell emits its centre perturbed by up to jitter * cell size in
    x, then y. Extra points are then sampled uniformly over the frame. The
    row-major traversal fixes the order in which the PRNG is consumed.

    Args:
        frame: Frame to fill
        target_count: Approximate number of cells wanted
        prng: PRNG owned by the current generation
        jitter: Max deviation as a fraction of the grid cell, in [0, 0.5)
        extra_fraction: Extra uniform points per grid cell

    Returns:
        PointField with points in consumption order
    """
    jitter = settings.default_jitter if jitter is None else jitter
    extra_fraction = settings.default_extra_fraction if extra_fraction is None else extra_fraction
    if not 0.0 <= jitter < 0.5:
        raise ValueError(f"Jitter must be in [0, 0.5), got {jitter}")
    if extra_fraction < 0:
        raise ValueError(f"Extra fraction must be >= 0, got {extra_fraction}")

    cols, rows = grid_shape(frame, target_count, min_cols, min_rows)
    gw = frame.width / cols
    gh = frame.height / rows
    jitter_x = gw * jitter
    jitter_y = gh * jitter

    points = []
    for j in range(rows):
        for i in range(cols):
            x = frame.x0 + (i + 0.5) * gw + prng.range(-jitter_x, jitter_x)
            y = frame.y0 + (j + 0.5) * gh + prng.range(-jitter_y, jitter_y)
            points.append([x, y])

    extra = int(math.floor(extra_fraction * cols * rows))
    for _ in range(extra):
        x = prng.range(frame.x0, frame.x1)
        y = prng.range(frame.y0, frame.y1)
        points.append([x, y])

    logger.info("Point field generated", cols=cols, rows=rows,
                grid_points=cols * rows, extra_points=extra)

    return PointField(
        points=np.array(points, dtype=np.float64).reshape(-1, 2),
        cols=cols,
        rows=rows,
        cell_width=gw,
        cell_height=gh,
        extra_count=extra,
    )
