"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully
validated, normalized, and contains NO optional fields that processing
code depends on ("auto" concurrency is already a number here).
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict, model_validator
from stemstream.schemas.base import StemBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalStreamConfig(StemBaseModel):
    """Runtime stream configuration.

    Note: path is validated as non-None in resolve_config().
    """
    path: Optional[str]
    stream_id: int = Field(ge=0, le=999)


class InternalPipelineConfig(StemBaseModel):
    """Runtime worker pool configuration."""
    concurrency: int = Field(ge=1)
    max_in_flight: Optional[int] = Field(ge=1)


class InternalDetectorConfig(StemBaseModel):
    """Runtime mask geometry."""
    inner_radius: float = Field(ge=0)
    outer_radius: float = Field(gt=0)

    @model_validator(mode="after")
    def check_radii_order(self):
        if self.inner_radius >= self.outer_radius:
            raise ValueError(
                f"inner_radius ({self.inner_radius}) must be smaller than "
                f"outer_radius ({self.outer_radius})"
            )
        return self


class InternalOutputConfig(StemBaseModel):
    """Runtime output configuration."""
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    image_id: int = Field(ge=0, le=999)
    sink: Literal["file", "live"]


class InternalLiveConfig(StemBaseModel):
    """Runtime live sink configuration."""
    url: str
    namespace: str
    wait_timeout: float


class InternalVisualizationConfig(StemBaseModel):
    """Runtime visualization settings."""
    enabled: bool
    dpi: int
    figsize: tuple[float, float]
    cmap: str
    output_format: Literal["png", "pdf", "jpeg"]


class InternalLoggingConfig(StemBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(StemBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.concurrency = config.pipeline.concurrency  # NOT .get()
            self.width = config.output.width

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation in runtime code

    All of that happens during config resolution.
    """

    base_dir: str
    stream: InternalStreamConfig
    pipeline: InternalPipelineConfig
    detector: InternalDetectorConfig
    output: InternalOutputConfig
    live: InternalLiveConfig
    visualization: InternalVisualizationConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
