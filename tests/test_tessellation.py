"""Tests for the clipped Voronoi tessellation."""

import numpy as np
import pytest
import structlog
from shapely.geometry import Point, Polygon
from structlog.testing import LogCapture

from py_mosaic.core import tessellation
from py_mosaic.core.errors import PointOutOfFrame
from py_mosaic.core.mulberry_prng import MulberryPRNG
from py_mosaic.core.point_field import generate_point_field
from py_mosaic.core.polygon import Frame, polygon_area
from py_mosaic.core.tessellation import (
    clip_half_plane, merge_duplicates, tessellate, voronoi_cell, weld_vertices
)


def make_tessellation(width=1000, height=800, cells=120, seed=17, extra=0.0):
    frame = Frame.from_size(width, height)
    field = generate_point_field(frame, cells, MulberryPRNG(seed), extra_fraction=extra)
    return tessellate(field.points, frame)


class TestClipping:
    """Test half-plane clipping primitives."""

    def test_clip_square_in_half(self):
        """Test clipping a square along x = 5 keeps the left half."""
        square = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
        clipped = clip_half_plane(square, (5.0, 0.0), (1.0, 0.0))

        assert abs(polygon_area(np.array(clipped))) == pytest.approx(50.0)
        assert max(x for x, _ in clipped) == 5.0

    def test_clip_everything(self):
        """Test a half-plane that excludes the polygon returns nothing."""
        square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        assert clip_half_plane(square, (-1.0, 0.0), (1.0, 0.0)) == []

    def test_voronoi_cell_of_two_sites(self):
        """Test two sites split the frame along their bisector."""
        frame = Frame.from_size(100, 100)
        cell = voronoi_cell((25.0, 50.0), [(75.0, 50.0)], frame)
        assert abs(polygon_area(np.array(cell))) == pytest.approx(5000.0)


class TestMergeAndWeld:
    """Test duplicate merging and vertex welding."""

    def test_merge_duplicates(self):
        """Test later near-duplicates merge into the first occurrence."""
        points = np.array([[10.0, 10.0], [20.0, 20.0], [10.0, 10.0000000001], [20.0, 20.0]])
        kept, merged = merge_duplicates(points, 6)

        assert kept == [0, 1]
        assert merged == {2: 0, 3: 1}

    def test_weld_snaps_to_first(self):
        """Test vertices within tolerance collapse to the first-seen coordinate."""
        a = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]
        b = [(1.0 + 1e-12, 0.0), (1.0, 1.0), (0.0, 1.0 - 1e-12)]
        welded = weld_vertices([a, b], 1e-9)

        np.testing.assert_array_equal(welded[1][0], [1.0, 0.0])
        np.testing.assert_array_equal(welded[1][2], [0.0, 1.0])

    def test_weld_drops_collapsed_vertices(self):
        """Test consecutive vertices that weld together are deduplicated."""
        poly = [(0.0, 0.0), (1.0, 0.0), (1.0 + 1e-12, 1e-12), (1.0, 1.0)]
        welded = weld_vertices([poly], 1e-9)
        assert len(welded[0]) == 3


class TestTessellation:
    """Test complete tessellation."""

    def test_one_cell_per_point(self):
        """Test every distinct point owns exactly one cell, in point order."""
        tess = make_tessellation()

        assert len(tess.cells) == len(tess.points)
        assert [c.site_index for c in tess.cells] == list(range(len(tess.points)))
        assert not tess.degenerate

    def test_site_inside_own_cell(self):
        """Test each site lies inside its cell."""
        tess = make_tessellation()
        for cell in tess.cells:
            assert Polygon(cell.vertices).contains(Point(cell.site))

    def test_area_sums_to_frame(self):
        """Test cell areas add up to the frame area."""
        tess = make_tessellation(extra=0.15)
        total = sum(cell.area for cell in tess.cells)
        assert total == pytest.approx(tess.frame.area, rel=1e-9)

    def test_nearest_site_property(self):
        """Test probe points fall in the cell of their nearest site."""
        tess = make_tessellation(cells=60)
        prng = MulberryPRNG(5)
        for _ in range(200):
            probe = np.array([prng.range(0, 1000), prng.range(0, 800)])
            nearest = int(np.argmin(np.sum((tess.points - probe) ** 2, axis=1)))
            cell = tess.polygon_for(nearest)
            assert Polygon(cell.vertices).buffer(1e-6).contains(Point(probe))

    def test_cells_are_convex(self):
        """Test clipped cells are convex (consistent cross-product sign)."""
        tess = make_tessellation()
        for cell in tess.cells:
            v = cell.vertices
            e1 = np.roll(v, -1, axis=0) - v
            e2 = np.roll(v, -2, axis=0) - np.roll(v, -1, axis=0)
            cross = e1[:, 0] * e2[:, 1] - e1[:, 1] * e2[:, 0]
            assert np.all(cross >= -1e-9) or np.all(cross <= 1e-9)

    def test_adjacency_symmetric(self):
        """Test that if cell A neighbours B, then B neighbours A."""
        tess = make_tessellation()
        for i, neighbors in tess.adjacency.items():
            assert i not in neighbors
            for j in neighbors:
                assert i in tess.adjacency[j], \
                    f"Cell {i} lists {j} as neighbor, but not vice versa"

    def test_adjacency_matches_shared_edges(self):
        """Test adjacent cells share a boundary segment of positive length."""
        tess = make_tessellation(cells=40)
        shared = {tuple(sorted(e.owners)) for e in tess.network.edges if len(e.owners) == 2}
        pairs = {(i, j) for i, ns in tess.adjacency.items() for j in ns if i < j}
        assert pairs == shared

    def test_triangles_reference_points(self):
        """Test the dual triangulation indexes input points."""
        tess = make_tessellation()
        assert tess.triangles.shape[1] == 3
        assert tess.triangles.min() >= 0
        assert tess.triangles.max() < len(tess.points)

    def test_shared_vertices_identical(self):
        """Test neighbouring cells store bit-identical shared vertices."""
        tess = make_tessellation()
        for edge in tess.network.edges:
            if len(edge.owners) != 2:
                continue
            for owner in edge.owners:
                verts = {tuple(v) for v in tess.polygon_for(owner).vertices.tolist()}
                assert edge.a in verts and edge.b in verts

    def test_reproducibility(self):
        """Test identical input gives identical polygons."""
        a = make_tessellation(seed=3)
        b = make_tessellation(seed=3)
        assert len(a.cells) == len(b.cells)
        for ca, cb in zip(a.cells, b.cells):
            np.testing.assert_array_equal(ca.vertices, cb.vertices)
        assert a.adjacency == b.adjacency
        np.testing.assert_array_equal(a.triangles, b.triangles)


class TestDegeneracies:
    """Test degenerate input policy."""

    def test_point_out_of_frame(self):
        """Test points outside the frame are rejected with their index."""
        frame = Frame.from_size(100, 100)
        points = np.array([[10, 10], [50, 50], [150, 50], [20, 80]], dtype=float)

        with pytest.raises(PointOutOfFrame) as exc_info:
            tessellate(points, frame)
        assert exc_info.value.index == 2

    def test_duplicates_merged(self):
        """Test coincident points are merged rather than failing."""
        frame = Frame.from_size(100, 100)
        points = np.array([[10, 10], [10, 10], [90, 10], [50, 90]], dtype=float)
        tess = tessellate(points, frame)

        assert len(tess.cells) == 3
        assert tess.merged == {1: 0}
        assert tess.polygon_for(1) is tess.polygon_for(0)
        assert sum(c.area for c in tess.cells) == pytest.approx(10000.0)

    def test_duplicates_merged_warns(self, monkeypatch):
        """Test merging near-duplicate points is logged as a warning."""
        cap = LogCapture()
        monkeypatch.setattr(tessellation, "logger",
                            structlog.wrap_logger(structlog.PrintLogger(), processors=[cap],
                                                  wrapper_class=structlog.BoundLogger))
        frame = Frame.from_size(100, 100)
        points = np.array([[10, 10], [10.0000001, 10], [90, 10], [50, 90]], dtype=float)
        tess = tessellate(points, frame)

        assert tess.merged == {1: 0}
        warnings = [e for e in cap.entries if e["log_level"] == "warning"]
        assert len(warnings) == 1
        assert warnings[0]["event"] == "Near-duplicate points merged"
        assert warnings[0]["count"] == 1

    def test_collinear_fallback(self):
        """Test fully collinear points produce one frame-covering cell."""
        frame = Frame.from_size(100, 100)
        points = np.array([[10, 50], [20, 50], [30, 50], [40, 50]], dtype=float)
        tess = tessellate(points, frame)

        assert tess.degenerate
        assert len(tess.cells) == 1
        assert tess.cells[0].area == pytest.approx(10000.0)
        assert tess.polygon_for(3) is tess.cells[0]
        assert len(tess.triangles) == 0

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_too_few_points(self, n):
        """Test fewer than 3 points fall back to a single cell."""
        frame = Frame.from_size(100, 100)
        points = np.array([[10.0 + 30 * i, 20.0 + 10 * i] for i in range(n)]).reshape(-1, 2)
        tess = tessellate(points, frame)

        assert tess.degenerate
        assert len(tess.cells) == 1
        assert tess.edge_count() == 4
        assert tess.vertex_count() == 4

    def test_points_on_frame_boundary(self):
        """Test points exactly on the frame edge are accepted."""
        frame = Frame.from_size(100, 100)
        points = np.array([[0, 0], [100, 0], [50, 100], [50, 50]], dtype=float)
        tess = tessellate(points, frame)

        assert len(tess.cells) == 4
        assert sum(c.area for c in tess.cells) == pytest.approx(10000.0)


@pytest.mark.parametrize("width,height,cells", [
    (100, 100, 9),
    (1200, 1600, 140),
    (500, 200, 300),
])
def test_various_frames(width, height, cells):
    """Test tessellation over various frame shapes."""
    tess = make_tessellation(width, height, cells)

    assert len(tess.cells) == len(tess.points)
    assert sum(c.area for c in tess.cells) == pytest.approx(width * height, rel=1e-9)
    for cell in tess.cells:
        assert np.all(cell.vertices[:, 0] >= 0) and np.all(cell.vertices[:, 0] <= width)
        assert np.all(cell.vertices[:, 1] >= 0) and np.all(cell.vertices[:, 1] <= height)
