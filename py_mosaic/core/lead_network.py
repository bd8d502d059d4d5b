"""
Lead came network extraction.

Edges are identified by their endpoints rounded to a fixed number of
decimals, ordered lexicographically. Two geometric points closer than the
rounding step are therefore treated as the same vertex.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import structlog

from ..config import settings

logger = structlog.get_logger()

VertexKey = Tuple[float, float]
EdgeKey = Tuple[VertexKey, VertexKey]


@dataclass
class Edge:
    """Undirected boundary segment; a precedes b under the key order."""
    a: Tuple[float, float]
    b: Tuple[float, float]
    owners: Tuple[int, ...]

    @property
    def length(self) -> float:
        return float(np.hypot(self.b[0] - self.a[0], self.b[1] - self.a[1]))

    @property
    def is_boundary(self) -> bool:
        return len(self.owners) == 1


@dataclass
class LeadNetwork:
    """Deduplicated edges in first-seen order plus junction degrees."""
    edges: List[Edge]
    decimals: int
    vertex_degree: Dict[VertexKey, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.edges)

    def keys(self) -> List[EdgeKey]:
        return [edge_key(e.a, e.b, self.decimals) for e in self.edges]

    def junction_degree(self, edge: Edge) -> int:
        """Largest number of owners meeting at either endpoint of the edge."""
        return max(
            self.vertex_degree.get(quantize(edge.a, self.decimals), 0),
            self.vertex_degree.get(quantize(edge.b, self.decimals), 0),
        )


def quantize(point, decimals: int) -> VertexKey:
    """Round a point to the vertex identity key."""
    # + 0.0 folds -0.0 into 0.0
    return (round(float(point[0]), decimals) + 0.0, round(float(point[1]), decimals) + 0.0)


def edge_key(p, q, decimals: int) -> EdgeKey:
    """Direction-independent identity of the segment p-q."""
    kp = quantize(p, decimals)
    kq = quantize(q, decimals)
    return (kp, kq) if kp <= kq else (kq, kp)


def _collect(segments: Iterable[Tuple[int, Sequence[float], Sequence[float]]],
             decimals: int) -> LeadNetwork:
    """Deduplicate (owner, p, q) segments into a LeadNetwork."""
    by_key: Dict[EdgeKey, Edge] = {}
    owners_at: Dict[VertexKey, set] = {}

    for owner, p, q in segments:
        kp = quantize(p, decimals)
        kq = quantize(q, decimals)
        if kp == kq:
            continue  # zero-length

        key = (kp, kq) if kp <= kq else (kq, kp)
        edge = by_key.get(key)
        if edge is None:
            a, b = (p, q) if kp <= kq else (q, p)
            by_key[key] = Edge(
                a=(float(a[0]), float(a[1])),
                b=(float(b[0]), float(b[1])),
                owners=(owner,),
            )
        elif owner not in edge.owners:
            edge.owners = edge.owners + (owner,)

        owners_at.setdefault(kp, set()).add(owner)
        owners_at.setdefault(kq, set()).add(owner)

    vertex_degree = {k: len(v) for k, v in owners_at.items()}
    return LeadNetwork(edges=list(by_key.values()), decimals=decimals,
                       vertex_degree=vertex_degree)


def extract_edges_from_polygons(polygons: Iterable[Tuple[int, np.ndarray]],
                                decimals: int = None) -> LeadNetwork:
    """
    Build the lead network from cell polygons.

    Args:
        polygons: (owner_id, vertices) pairs; traversal order only affects
            which traversal creates each Edge, never the resulting set
        decimals: Rounding used for vertex identity

    Returns:
        LeadNetwork; shared edges carry both owners, frame edges one
    """
    decimals = settings.quantize_decimals if decimals is None else decimals

    def segments():
        for owner, vertices in polygons:
            n = len(vertices)
            if n < 2:
                continue
            for k in range(n):
                yield owner, vertices[k], vertices[(k + 1) % n]

    network = _collect(segments(), decimals)
    logger.debug("Edges extracted from polygons", edges=len(network.edges))
    return network


def extract_edges_from_triangles(points: np.ndarray, triangles: np.ndarray,
                                 decimals: int = None) -> LeadNetwork:
    """
    Build the triangulated lead network connecting neighbouring sites.

    Args:
        points: (n, 2) site coordinates
        triangles: (k, 3) site index triples; owners are triangle indices
        decimals: Rounding used for vertex identity

    Returns:
        LeadNetwork of Delaunay edges
    """
    decimals = settings.quantize_decimals if decimals is None else decimals

    def segments():
        for t, (i, j, k) in enumerate(triangles):
            yield t, points[i], points[j]
            yield t, points[j], points[k]
            yield t, points[k], points[i]

    network = _collect(segments(), decimals)
    logger.debug("Edges extracted from triangles", edges=len(network.edges))
    return network
