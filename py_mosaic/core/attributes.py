"""
Per-cell and per-edge visual attributes.

All draws share the generation's PRNG, so the draw order below is part of the
output contract. For every cell, in site order:

    1. color_index           floor(next() * len(palette))
    2. bright_variant        next() < 0.5
    3. roughness             range(0.15, 0.45)
    4. ior                   range(1.48, 1.55)
    5. thickness             range(0.01, 0.06)
    6. attenuation_distance  range(0.3, 1.2)
    7. gradient offset x     range(-8, 8)
    8. gradient offset y     range(-8, 8)
    9. streak_count          12 + floor(next() * 10)
   10. streak_angle          range(0, 2*pi)

Then, for every lead edge in network order and only when width jitter is
enabled, one draw: width_jitter = 0.85 + 0.4 * next().

The palette only changes how color_index is resolved, never how many draws
are made.
"""

import math
from dataclasses import dataclass, asdict
from typing import List, Sequence, Tuple

import numpy as np
import structlog

from ..config import settings
from .lead_network import LeadNetwork
from .mulberry_prng import MulberryPRNG
from .polygon import Frame, inset_polygon
from .tessellation import CellPolygon

logger = structlog.get_logger()

DRAWS_PER_CELL = 10
GRADIENT_OFFSET = 8.0
TAU = 2 * math.pi


@dataclass
class MaterialParams:
    """Glass material parameters for one cell."""
    roughness: float
    ior: float
    thickness: float
    attenuation_distance: float
    gradient_offset: Tuple[float, float]
    streak_count: int
    streak_angle: float


@dataclass
class CellRecord:
    """Everything the renderer needs for one glass piece."""
    site_index: int
    polygon: np.ndarray
    inset_polygon: np.ndarray
    color_index: int
    color: str
    bright_variant: bool
    material: MaterialParams
    centroid: Tuple[float, float]
    area: float

    def to_dict(self) -> dict:
        return {
            "site_index": self.site_index,
            "polygon": self.polygon.tolist(),
            "inset_polygon": self.inset_polygon.tolist(),
            "color_index": self.color_index,
            "color": self.color,
            "bright_variant": self.bright_variant,
            "material": asdict(self.material),
            "centroid": list(self.centroid),
            "area": self.area,
        }


@dataclass
class EdgeRecord:
    """One lead came segment."""
    a: Tuple[float, float]
    b: Tuple[float, float]
    owners: Tuple[int, ...]
    length: float
    junction_degree: int
    base_width: float
    width_jitter: float
    width: float

    def to_dict(self) -> dict:
        return {
            "a": list(self.a),
            "b": list(self.b),
            "owners": list(self.owners),
            "length": self.length,
            "junction_degree": self.junction_degree,
            "base_width": self.base_width,
            "width_jitter": self.width_jitter,
            "width": self.width,
        }


def draw_material(prng: MulberryPRNG, palette_size: int):
    """Draw one cell's attributes in contract order."""
    color_index = int(prng.next() * palette_size)
    bright_variant = prng.next() < 0.5
    material = MaterialParams(
        roughness=prng.range(0.15, 0.45),
        ior=prng.range(1.48, 1.55),
        thickness=prng.range(0.01, 0.06),
        attenuation_distance=prng.range(0.3, 1.2),
        gradient_offset=(prng.range(-GRADIENT_OFFSET, GRADIENT_OFFSET),
                         prng.range(-GRADIENT_OFFSET, GRADIENT_OFFSET)),
        streak_count=12 + int(prng.next() * 10),
        streak_angle=prng.range(0.0, TAU),
    )
    return color_index, bright_variant, material


def seam_base_width(length: float, frame: Frame) -> float:
    """Short edges get thicker lead; width falls linearly with length, clamped."""
    span = max(frame.width, frame.height) * settings.seam_length_fraction
    t = min(max(length / span, 0.0), 1.0)
    return settings.seam_width_max + (settings.seam_width_min - settings.seam_width_max) * t


def assign_cell_attributes(cells: Sequence[CellPolygon], palette: Sequence[str],
                           prng: MulberryPRNG, inset_scale: float = None) -> List[CellRecord]:
    """
    Build cell records in the given (site index) order.

    Args:
        cells: Tessellation cells ordered by site index
        palette: Non-empty ordered colours
        prng: Generation PRNG, already advanced past the point field
        inset_scale: Scale for the render polygon, in (0, 1]

    Returns:
        One CellRecord per cell
    """
    if not palette:
        raise ValueError("Palette must contain at least one colour")
    inset_scale = settings.default_inset_scale if inset_scale is None else inset_scale

    records = []
    for cell in cells:
        color_index, bright_variant, material = draw_material(prng, len(palette))
        centroid = cell.centroid
        records.append(CellRecord(
            site_index=cell.site_index,
            polygon=cell.vertices,
            inset_polygon=inset_polygon(cell.vertices, inset_scale),
            color_index=color_index,
            color=palette[color_index],
            bright_variant=bright_variant,
            material=material,
            centroid=(float(centroid[0]), float(centroid[1])),
            area=cell.area,
        ))
    return records


def assign_edge_attributes(network: LeadNetwork, frame: Frame, prng: MulberryPRNG,
                           width_jitter: bool = None) -> List[EdgeRecord]:
    """Build edge records in network order, drawing one jitter per edge when enabled."""
    width_jitter = settings.edge_width_jitter if width_jitter is None else width_jitter

    records = []
    for edge in network.edges:
        length = edge.length
        base = seam_base_width(length, frame)
        jitter = 0.85 + 0.4 * prng.next() if width_jitter else 1.0
        records.append(EdgeRecord(
            a=edge.a,
            b=edge.b,
            owners=edge.owners,
            length=length,
            junction_degree=network.junction_degree(edge),
            base_width=base,
            width_jitter=jitter,
            width=base * jitter,
        ))
    return records


def assign_attributes(cells: Sequence[CellPolygon], network: LeadNetwork,
                      palette: Sequence[str], frame: Frame, prng: MulberryPRNG,
                      inset_scale: float = None, width_jitter: bool = None):
    """
    Single linear pass: every cell, then every edge.

    Returns:
        Tuple of (cell records, edge records)
    """
    start = prng.call_count
    cell_records = assign_cell_attributes(cells, palette, prng, inset_scale)
    edge_records = assign_edge_attributes(network, frame, prng, width_jitter)
    logger.info("Attributes assigned", cells=len(cell_records),
                edges=len(edge_records), draws=prng.call_count - start)
    return cell_records, edge_records
