"""Exceptions raised by the mosaic generation pipeline."""


class MosaicError(Exception):
    """Base class for all mosaic generation errors."""


class FrameInvalid(MosaicError):
    """Frame has a non-positive width or height."""

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height
        super().__init__(f"Frame must have positive size, got {width} x {height}")


class PointOutOfFrame(MosaicError):
    """A tessellation input point lies outside the frame."""

    def __init__(self, index: int, point):
        self.index = index
        self.point = (float(point[0]), float(point[1]))
        super().__init__(f"Point {index} at {self.point} is outside the frame")


class DegenerateInput(MosaicError):
    """Too few usable points to tessellate.

    The tessellator recovers from this by emitting a single cell covering
    the whole frame.
    """
