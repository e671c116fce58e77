# PixelStag Filters Module
"""
Composable per-pixel filter system.

Filters compute one output pixel at a time and can be composed with
Then, AndThen, Join and FilterPipeline. Registered filters are
JSON-serializable.
"""

from .base import (
    Filter,
    Input,
    InputTypes,
    FILTER_REGISTRY,
    register_filter,
    prepare_branches,
)

from .pipeline import (
    Then,
    AndThen,
    Join,
    FilterPipeline,
    materialize,
)

from .kernel import (
    EdgeStrategy,
    Kernel,
    KernelData,
)

from .color import (
    Invert,
    GammaLog,
    GammaLin,
    Brightness,
    Contrast,
    Saturation,
    ToGrayscale,
    ToColor,
    Convert,
)

from .blend import Blend
from .geometric import Crop

from .executor import (
    evaluate,
    evaluate_region,
    evaluate_in_place,
    evaluate_parallel,
    ParallelEvaluator,
)

from .scheduler import (
    AsyncMode,
    AsyncStatus,
    AsyncFilter,
    eval_async,
)

__all__ = [
    # Base
    'Filter',
    'Input',
    'InputTypes',
    'FILTER_REGISTRY',
    'register_filter',
    'prepare_branches',
    # Composition
    'Then',
    'AndThen',
    'Join',
    'FilterPipeline',
    'materialize',
    # Convolution
    'EdgeStrategy',
    'Kernel',
    'KernelData',
    # Color
    'Invert',
    'GammaLog',
    'GammaLin',
    'Brightness',
    'Contrast',
    'Saturation',
    'ToGrayscale',
    'ToColor',
    'Convert',
    # Blend / geometric
    'Blend',
    'Crop',
    # Evaluation
    'evaluate',
    'evaluate_region',
    'evaluate_in_place',
    'evaluate_parallel',
    'ParallelEvaluator',
    # Cooperative scheduling
    'AsyncMode',
    'AsyncStatus',
    'AsyncFilter',
    'eval_async',
]
