"""
Mosaic generation entry points.

generate(params) runs the whole pipeline with a PRNG owned by the call:
point field -> tessellation -> lead network -> inset -> attributes.
MosaicGenerator wraps it for hosts that wire reseeding to UI events.

Logging is left to the host; call utils.log_config.configure_logging from
the application entry point.
"""

from dataclasses import dataclass
from typing import List, Literal, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field, field_validator

from ..config import settings
from .attributes import CellRecord, EdgeRecord, assign_attributes
from .lead_network import LeadNetwork, extract_edges_from_triangles
from .mulberry_prng import MulberryPRNG, normalize_seed
from .point_field import PointField, generate_point_field
from .polygon import Frame
from .tessellation import Tessellation, tessellate

logger = structlog.get_logger()


class GenerationParams(BaseModel):
    """Inputs for one generation."""

    seed: int = Field(0, description="Seed; folded into the unsigned 32-bit range")
    frame_width: float = Field(..., description="Frame width; must be positive")
    frame_height: float = Field(..., description="Frame height; must be positive")
    target_cell_count: int = Field(..., ge=1, description="Approximate number of cells")
    palette: List[str] = Field(..., min_length=1, description="Ordered glass colours")

    margin: float = Field(default_factory=lambda: settings.default_margin, ge=0.0, lt=0.5,
                          description="Frame margin as a fraction of the short side")
    jitter: float = Field(default_factory=lambda: settings.default_jitter, ge=0.0, lt=0.5,
                          description="Grid jitter as a fraction of cell size")
    extra_fraction: float = Field(default_factory=lambda: settings.default_extra_fraction, ge=0.0,
                                  description="Extra uniform points per grid cell")
    inset_scale: float = Field(default_factory=lambda: settings.default_inset_scale, gt=0.0, le=1.0,
                               description="Render polygon scale toward the centroid")
    network: Literal["voronoi", "delaunay"] = Field("voronoi", description="Lead network variant")
    edge_width_jitter: bool = Field(default_factory=lambda: settings.edge_width_jitter,
                                    description="Draw a width jitter per lead edge")

    @field_validator("seed")
    @classmethod
    def _normalize_seed(cls, v: int) -> int:
        return normalize_seed(v)


@dataclass
class MosaicLayout:
    """Output of one generation, handed to an external renderer."""
    seed: int
    frame: Frame
    point_field: PointField
    tessellation: Tessellation
    lead_network: LeadNetwork
    cells: List[CellRecord]
    lead_edges: List[EdgeRecord]

    @property
    def points(self) -> np.ndarray:
        return self.point_field.points

    def to_dict(self) -> dict:
        """Plain JSON-compatible data for a renderer."""
        return {
            "seed": self.seed,
            "frame": self.frame.to_dict(),
            "cells": [c.to_dict() for c in self.cells],
            "lead_edges": [e.to_dict() for e in self.lead_edges],
        }


def generate(params: GenerationParams) -> MosaicLayout:
    """
    Generate a complete mosaic layout.

    Geometry errors (FrameInvalid, PointOutOfFrame) abort the run; there is
    no partial result.

    Args:
        params: Generation parameters

    Returns:
        MosaicLayout with ordered cell and edge records
    """
    logger.info("Generating mosaic", seed=params.seed,
                width=params.frame_width, height=params.frame_height,
                target_cells=params.target_cell_count, network=params.network)

    prng = MulberryPRNG(params.seed)
    frame = Frame.from_size(params.frame_width, params.frame_height, params.margin)

    point_field = generate_point_field(frame, params.target_cell_count, prng,
                                       jitter=params.jitter, extra_fraction=params.extra_fraction)
    tess = tessellate(point_field.points, frame)

    if params.network == "delaunay":
        network = extract_edges_from_triangles(tess.points, tess.triangles)
    else:
        network = tess.network

    cells, edges = assign_attributes(
        tess.cells, network, params.palette, frame, prng,
        inset_scale=params.inset_scale, width_jitter=params.edge_width_jitter)

    logger.info("Mosaic generated", seed=params.seed, cells=len(cells),
                edges=len(edges), draws=prng.call_count)

    return MosaicLayout(
        seed=params.seed,
        frame=frame,
        point_field=point_field,
        tessellation=tess,
        lead_network=network,
        cells=cells,
        lead_edges=edges,
    )


class MosaicGenerator:
    """
    Host-facing generator.

    reseed() replaces the seed used by later generate() calls. Every
    generate() call still builds its own PRNG, so results depend only on
    the seed and the parameters.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = None if seed is None else normalize_seed(seed)

    def reseed(self, seed: int) -> int:
        """Set the seed for subsequent generations and return it normalized."""
        self.seed = normalize_seed(seed)
        logger.info("Reseeded", seed=self.seed)
        return self.seed

    def generate(self, params: GenerationParams) -> MosaicLayout:
        """Run the pipeline, substituting the generator's seed when one is set."""
        if self.seed is not None and params.seed != self.seed:
            params = params.model_copy(update={"seed": self.seed})
        return generate(params)
