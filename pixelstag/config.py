"""Library configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """PixelStag settings, overridable through ``PIXELSTAG_*`` variables."""

    # Execution
    NUM_WORKERS: int | None = None  # Parallel workers, None = CPU count
    ASYNC_MODE: str = "row"  # Default AsyncFilter granularity: 'row' or 'pixel'

    # Filter defaults
    DEFAULT_GAMMA: float = 2.2
    DEFAULT_EDGE_STRATEGY: str = "constant"  # Edge strategy of new kernels

    model_config = {"env_prefix": "PIXELSTAG_"}


settings = Settings()
