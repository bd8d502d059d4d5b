"""
py-mosaic: deterministic stained-glass mosaic layouts.
"""

__version__ = "0.1.0"
