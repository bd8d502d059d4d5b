"""
Core mosaic generation functionality.
"""

from .errors import MosaicError, FrameInvalid, PointOutOfFrame, DegenerateInput
from .mulberry_prng import MulberryPRNG, normalize_seed
from .polygon import Frame, inset_polygon, polygon_area, polygon_centroid
from .point_field import PointField, generate_point_field
from .tessellation import CellPolygon, Tessellation, tessellate
from .lead_network import Edge, LeadNetwork, extract_edges_from_polygons, extract_edges_from_triangles
from .attributes import CellRecord, EdgeRecord, MaterialParams, assign_attributes
from .pipeline import GenerationParams, MosaicGenerator, MosaicLayout, generate

__all__ = ['MosaicError', 'FrameInvalid', 'PointOutOfFrame', 'DegenerateInput',
           'MulberryPRNG', 'normalize_seed',
           'Frame', 'inset_polygon', 'polygon_area', 'polygon_centroid',
           'PointField', 'generate_point_field',
           'CellPolygon', 'Tessellation', 'tessellate',
           'Edge', 'LeadNetwork', 'extract_edges_from_polygons', 'extract_edges_from_triangles',
           'CellRecord', 'EdgeRecord', 'MaterialParams', 'assign_attributes',
           'GenerationParams', 'MosaicGenerator', 'MosaicLayout', 'generate']
