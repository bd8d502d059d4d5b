"""
Layout diagnostics.

Checks a tessellation against the properties a renderer relies on: the cells
cover the frame, do not overlap, stay inside it, and form a well-formed
planar subdivision (V - E + F == 1 for a single simply connected frame).
"""

from dataclasses import dataclass
from typing import List

import structlog
from shapely.geometry import Polygon, box
from shapely.ops import unary_union
from shapely.strtree import STRtree

from .tessellation import Tessellation

logger = structlog.get_logger()


@dataclass
class PartitionReport:
    """Result of checking a tessellation."""
    frame_area: float
    total_area: float
    union_area: float
    max_overlap: float
    outside_area: float
    vertices: int
    edges: int
    faces: int
    invalid_cells: List[int]

    @property
    def euler_characteristic(self) -> int:
        return self.vertices - self.edges + self.faces

    def is_partition(self, eps: float = 1e-6) -> bool:
        """True when cells tile the frame up to eps relative to its area."""
        tol = eps * self.frame_area
        return (
            not self.invalid_cells
            and abs(self.total_area - self.frame_area) <= tol
            and abs(self.union_area - self.frame_area) <= tol
            and self.max_overlap <= tol
            and self.outside_area <= tol
        )


def _max_overlap(polygons: dict) -> float:
    """Largest intersection area between any two cells."""
    keys = list(polygons)
    geoms = [polygons[k] for k in keys]
    tree = STRtree(geoms)
    worst = 0.0
    for a, geom in zip(keys, geoms):
        for idx in tree.query(geom):
            b = keys[int(idx)]
            if b <= a:
                continue
            area = geom.intersection(polygons[b]).area
            if area > worst:
                worst = area
    return worst


def check_partition(tess: Tessellation) -> PartitionReport:
    """
    Measure how well the tessellation partitions its frame.

    Args:
        tess: Tessellation to check

    Returns:
        PartitionReport with areas, overlaps and topology counts
    """
    frame = tess.frame
    frame_geom = box(frame.x0, frame.y0, frame.x1, frame.y1)

    polygons = {}
    invalid = []
    for cell in tess.cells:
        geom = Polygon(cell.vertices)
        if not geom.is_valid or geom.is_empty:
            invalid.append(cell.site_index)
            continue
        polygons[cell.site_index] = geom

    total_area = sum(g.area for g in polygons.values())
    union = unary_union(list(polygons.values()))
    max_overlap = _max_overlap(polygons)

    report = PartitionReport(
        frame_area=frame.area,
        total_area=total_area,
        union_area=union.area,
        max_overlap=max_overlap,
        outside_area=union.difference(frame_geom).area,
        vertices=tess.vertex_count(),
        edges=tess.edge_count(),
        faces=len(tess.cells),
        invalid_cells=invalid,
    )

    logger.info("Partition checked", total_area=report.total_area,
                frame_area=report.frame_area, max_overlap=report.max_overlap,
                euler=report.euler_characteristic)
    return report
