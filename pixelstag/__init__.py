"""
PixelStag - Composable per-pixel image filters for Python
"""

from .geometry import Point, PointTypes, Region
from .color import ColorModel, ColorModelTypes, convert_color
from .pixel import Pixel
from .image import Image
from .config import Settings, settings
from .exceptions import (
    PixelStagError,
    KernelShapeError,
    EvaluationError,
    InPlaceEvaluationError,
    FilterSerializationError,
)

__version__ = "0.1.0"

__all__ = [
    # Geometry
    "Point",
    "PointTypes",
    "Region",
    # Colors
    "ColorModel",
    "ColorModelTypes",
    "convert_color",
    # Pixels and images
    "Pixel",
    "Image",
    # Configuration
    "Settings",
    "settings",
    # Errors
    "PixelStagError",
    "KernelShapeError",
    "EvaluationError",
    "InPlaceEvaluationError",
    "FilterSerializationError",
]
