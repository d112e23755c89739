"""ParamConfig: Expert defaults for the stemstream pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives
InternalConfig.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator, model_validator
from stemstream.schemas.base import StemBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class StreamConfig(StemBaseModel):
    """Input stream configuration."""
    path: Optional[str] = Field(None, description="Stream file path, '-' for stdin")
    stream_id: int = Field(0, ge=0, le=999, description="Stream identifier used in output names")


class PipelineConfig(StemBaseModel):
    """Worker pool and draining configuration."""
    concurrency: Union[Literal["auto"], int] = Field(
        "auto", description="Worker threads, or 'auto' for the host CPU count"
    )
    max_in_flight: Optional[int] = Field(
        None, ge=1,
        description="Drain results while reading once this many blocks are pending. "
                    "None keeps every block resident until the stream ends."
    )

    @field_validator("concurrency", mode="before")
    @classmethod
    def normalize_concurrency(cls, v):
        """Accept 'AUTO', -1, and numeric strings."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "auto":
                return v
            return int(v)
        if v == -1:
            return "auto"
        return v

    @field_validator("concurrency")
    @classmethod
    def check_concurrency(cls, v):
        if v != "auto" and v < 1:
            raise ValueError(f"concurrency must be >= 1 or 'auto', got {v}")
        return v


class DetectorConfig(StemBaseModel):
    """Bright/dark field mask geometry (pixels from frame center)."""
    inner_radius: float = Field(40.0, ge=0, description="Bright/dark boundary radius")
    outer_radius: float = Field(288.0, gt=0, description="Outer dark field radius")

    @model_validator(mode="after")
    def check_radii_order(self):
        if self.inner_radius >= self.outer_radius:
            raise ValueError(
                f"inner_radius ({self.inner_radius}) must be smaller than "
                f"outer_radius ({self.outer_radius})"
            )
        return self


class OutputConfig(StemBaseModel):
    """Output image configuration."""
    width: int = Field(160, ge=1, description="Scan width in pixels")
    height: int = Field(160, ge=1, description="Scan height in pixels")
    image_id: int = Field(1, ge=0, le=999, description="Image identifier used in output names")
    sink: Literal["file", "live"] = "file"

    @field_validator("sink", mode="before")
    @classmethod
    def normalize_sink(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v


class LiveConfig(StemBaseModel):
    """Socket.IO live sink configuration."""
    url: str = "http://localhost:5000"
    namespace: str = "/stem"
    wait_timeout: float = Field(10.0, gt=0, description="Seconds to wait for connection")

    @field_validator("namespace", mode="before")
    @classmethod
    def ensure_leading_slash(cls, v):
        if isinstance(v, str) and not v.startswith("/"):
            return "/" + v
        return v


class VisualizationConfig(StemBaseModel):
    """Preview rendering settings."""
    enabled: bool = False
    dpi: int = Field(150, ge=50)
    figsize: tuple[float, float] = (12.0, 6.0)
    cmap: str = "gray"
    output_format: Literal["png", "pdf", "jpeg"] = "png"


class LoggingConfig(StemBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(StemBaseModel):
    """Complete expert configuration with all defaults.

    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    base_dir: str = "."
    stream: StreamConfig = Field(default_factory=StreamConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
