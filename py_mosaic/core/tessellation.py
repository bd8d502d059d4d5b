"""
Clipped Voronoi tessellation of the frame.

Sites are triangulated with scipy's Qhull Delaunay. Each site's cell is the
frame rectangle clipped by the perpendicular bisectors between the site and
its Delaunay neighbours, so every cell is convex and the cells exactly
partition the frame. Vertices produced independently by neighbouring cells
are then welded so shared boundaries are bit-identical.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial import Delaunay, QhullError, cKDTree

from ..config import settings
from .errors import DegenerateInput, PointOutOfFrame
from .lead_network import LeadNetwork, extract_edges_from_polygons, quantize
from .polygon import Frame, polygon_area, polygon_centroid

logger = structlog.get_logger()


@dataclass
class CellPolygon:
    """One tessellation region and the site it belongs to."""
    site_index: int
    site: np.ndarray
    vertices: np.ndarray

    @property
    def area(self) -> float:
        return abs(polygon_area(self.vertices))

    @property
    def centroid(self) -> np.ndarray:
        return polygon_centroid(self.vertices)


@dataclass
class Tessellation:
    """Partition of the frame into cells, one per kept input point."""
    frame: Frame
    points: np.ndarray                # input points, input order
    cells: List[CellPolygon]          # ordered by site index
    triangles: np.ndarray             # (k, 3) input point indices
    adjacency: Dict[int, List[int]]   # site index -> adjacent site indices
    merged: Dict[int, int]            # dropped point index -> kept index
    network: LeadNetwork              # cell boundary edges, owners = site indices
    degenerate: bool = False

    _by_site: Dict[int, CellPolygon] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self._by_site = {cell.site_index: cell for cell in self.cells}

    def polygon_for(self, point_index: int) -> Optional[CellPolygon]:
        """Cell owning the given input point, following merges."""
        kept = point_index
        while kept in self.merged:
            kept = self.merged[kept]
        return self._by_site.get(kept)

    def vertex_count(self) -> int:
        return len(self.network.vertex_degree)

    def edge_count(self) -> int:
        return len(self.network.edges)


def validate_points(points: np.ndarray, frame: Frame) -> None:
    """Reject any point outside the closed frame."""
    for i, (x, y) in enumerate(points):
        if not frame.contains(x, y):
            raise PointOutOfFrame(i, (x, y))


def merge_duplicates(points: np.ndarray, decimals: int) -> Tuple[List[int], Dict[int, int]]:
    """
    Drop points that coincide after rounding.

    The first occurrence wins; later ones are recorded as merged into it.

    Returns:
        Tuple of (kept indices in input order, merged index map)
    """
    seen: Dict[Tuple[float, float], int] = {}
    kept = []
    merged = {}
    for i, p in enumerate(points):
        key = quantize(p, decimals)
        if key in seen:
            merged[i] = seen[key]
        else:
            seen[key] = i
            kept.append(i)
    return kept, merged


def clip_half_plane(polygon: Sequence[Tuple[float, float]], mid: Tuple[float, float],
                    normal: Tuple[float, float]) -> List[Tuple[float, float]]:
    """
    Clip a convex polygon to the half-plane (v - mid) . normal <= 0.

    Sutherland-Hodgman against a single line.
    """
    n = len(polygon)
    if n == 0:
        return []

    dist = [(v[0] - mid[0]) * normal[0] + (v[1] - mid[1]) * normal[1] for v in polygon]
    out = []
    for k in range(n):
        cur = polygon[k]
        nxt = polygon[(k + 1) % n]
        dc = dist[k]
        dn = dist[(k + 1) % n]
        if dc <= 0:
            out.append(cur)
        if (dc < 0 < dn) or (dn < 0 < dc):
            t = dc / (dc - dn)
            out.append((cur[0] + t * (nxt[0] - cur[0]), cur[1] + t * (nxt[1] - cur[1])))
    return out


def voronoi_cell(site: Sequence[float], neighbors: Sequence[Sequence[float]],
                 frame: Frame) -> List[Tuple[float, float]]:
    """Frame rectangle clipped by the bisectors between site and each neighbour."""
    polygon = [tuple(v) for v in frame.polygon().tolist()]
    sx, sy = float(site[0]), float(site[1])
    for q in neighbors:
        qx, qy = float(q[0]), float(q[1])
        mid = ((sx + qx) * 0.5, (sy + qy) * 0.5)
        polygon = clip_half_plane(polygon, mid, (qx - sx, qy - sy))
        if not polygon:
            break
    return polygon


def weld_vertices(polygons: List[List[Tuple[float, float]]],
                  tolerance: float) -> List[np.ndarray]:
    """
    Snap vertices closer than tolerance to one shared coordinate.

    The representative of each group is its first vertex in traversal order.
    Consecutive duplicates left behind by the snap are removed.
    """
    sizes = [len(p) for p in polygons]
    flat = np.array([v for p in polygons for v in p], dtype=np.float64).reshape(-1, 2)
    if len(flat) == 0:
        return [np.empty((0, 2)) for _ in polygons]

    parent = np.arange(len(flat))

    def find(i):
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    tree = cKDTree(flat)
    pairs = tree.query_pairs(tolerance, output_type="ndarray")
    for i, j in pairs:
        ri, rj = find(i), find(j)
        if ri != rj:
            if ri < rj:
                parent[rj] = ri
            else:
                parent[ri] = rj

    roots = np.array([find(i) for i in range(len(flat))], dtype=np.intp)
    welded = flat[roots]

    result = []
    offset = 0
    for size in sizes:
        ids = roots[offset:offset + size]
        coords = welded[offset:offset + size]
        offset += size

        keep = [k for k in range(size) if ids[k] != ids[k - 1]] if size > 1 else list(range(size))
        result.append(coords[keep])
    return result


def build_site_neighbors(tri: Delaunay) -> List[List[int]]:
    """Delaunay neighbours for every triangulated site (positions into tri.points)."""
    indptr, indices = tri.vertex_neighbor_vertices
    return [sorted(indices[indptr[k]:indptr[k + 1]].tolist()) for k in range(len(tri.points))]


def build_adjacency(network: LeadNetwork, site_indices: Sequence[int]) -> Dict[int, List[int]]:
    """Cells are adjacent when they share a boundary edge of positive length."""
    adjacency = {s: set() for s in site_indices}
    for edge in network.edges:
        if len(edge.owners) == 2:
            a, b = edge.owners
            adjacency[a].add(b)
            adjacency[b].add(a)
    return {s: sorted(n) for s, n in adjacency.items()}


def _triangulate(sites: np.ndarray) -> Delaunay:
    if len(sites) < 3:
        raise DegenerateInput(f"Need at least 3 distinct points, got {len(sites)}")
    try:
        return Delaunay(sites)
    except QhullError as exc:
        raise DegenerateInput(f"Points cannot be triangulated: {exc}") from exc


def _fallback_tessellation(points: np.ndarray, frame: Frame, kept: List[int],
                           merged: Dict[int, int], decimals: int) -> Tessellation:
    """Single cell covering the whole frame."""
    if kept:
        site_index = kept[0]
        site = points[site_index].copy()
        for i in kept[1:]:
            merged[i] = site_index
    else:
        site_index = -1
        site = np.array([(frame.x0 + frame.x1) / 2, (frame.y0 + frame.y1) / 2])

    cell = CellPolygon(site_index=site_index, site=site, vertices=frame.polygon())
    network = extract_edges_from_polygons([(site_index, cell.vertices)], decimals)
    return Tessellation(
        frame=frame,
        points=points,
        cells=[cell],
        triangles=np.empty((0, 3), dtype=np.intp),
        adjacency={site_index: []},
        merged=merged,
        network=network,
        degenerate=True,
    )


def tessellate(points: np.ndarray, frame: Frame, decimals: int = None,
               weld_tolerance: float = None) -> Tessellation:
    """
    Partition the frame into one convex cell per distinct point.

    Args:
        points: (n, 2) sites in frame coordinates; order fixes cell order
        frame: Frame to partition
        decimals: Rounding used to merge near-duplicate points
        weld_tolerance: Vertex weld distance relative to the frame's long side

    Returns:
        Tessellation with cells, adjacency and the dual triangulation
    """
    decimals = settings.quantize_decimals if decimals is None else decimals
    weld_tolerance = settings.weld_tolerance if weld_tolerance is None else weld_tolerance
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    logger.info("Starting tessellation", points=len(points),
                frame_width=frame.width, frame_height=frame.height)

    validate_points(points, frame)
    kept, merged = merge_duplicates(points, decimals)
    if merged:
        logger.warning("Near-duplicate points merged", count=len(merged), decimals=decimals)

    try:
        tri = _triangulate(points[kept])
    except DegenerateInput as exc:
        logger.warning("Degenerate input, using single frame cell",
                       reason=str(exc), usable_points=len(kept))
        return _fallback_tessellation(points, frame, kept, merged, decimals)

    # Qhull leaves points it considers coplanar out of every simplex
    coplanar = set()
    for pos, _simplex, nearest in tri.coplanar:
        coplanar.add(int(pos))
        merged[kept[pos]] = kept[nearest]
    if coplanar:
        logger.warning("Coplanar points merged", count=len(coplanar))

    neighbors = build_site_neighbors(tri)
    sites = tri.points

    raw_polygons = []
    site_positions = []
    for pos in range(len(kept)):
        if pos in coplanar:
            continue
        polygon = voronoi_cell(sites[pos], sites[neighbors[pos]], frame)
        raw_polygons.append(polygon)
        site_positions.append(pos)

    tolerance = weld_tolerance * max(frame.width, frame.height)
    welded = weld_vertices(raw_polygons, tolerance)

    cells = [
        CellPolygon(site_index=kept[pos], site=points[kept[pos]].copy(), vertices=vertices)
        for pos, vertices in zip(site_positions, welded)
    ]

    network = extract_edges_from_polygons(
        [(cell.site_index, cell.vertices) for cell in cells], decimals)
    adjacency = build_adjacency(network, [cell.site_index for cell in cells])

    kept_arr = np.asarray(kept, dtype=np.intp)
    triangles = kept_arr[tri.simplices]

    logger.info("Tessellation complete", cells=len(cells), merged=len(merged),
                triangles=len(triangles), edges=len(network.edges))

    return Tessellation(
        frame=frame,
        points=points,
        cells=cells,
        triangles=triangles,
        adjacency=adjacency,
        merged=merged,
        network=network,
    )
