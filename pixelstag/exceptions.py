"""Exception classes for PixelStag."""


class PixelStagError(Exception):
    """Base exception for PixelStag errors."""

    pass


class KernelShapeError(PixelStagError, ValueError):
    """Raised when kernel weights are ragged, empty or of mismatched shape."""

    pass


class EvaluationError(PixelStagError):
    """Raised when a filter evaluation cannot be set up or continued."""

    pass


class InPlaceEvaluationError(EvaluationError):
    """Raised when a filter that reads neighbouring points is run in-place."""

    pass


class FilterSerializationError(PixelStagError, ValueError):
    """Raised for unknown filter types or filters that hold callables."""

    pass
