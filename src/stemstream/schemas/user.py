"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for common naming patterns
(e.g., STREAM_PATH -> stream_path, CONCURRENCY -> concurrency).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Validation is lenient: uppercase and
lowercase keys both work and unknown legacy keys are ignored.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from stemstream.schemas.base import StemBaseModel


class UserStreamConfig(StemBaseModel):
    """User-facing stream config."""
    path: Optional[str] = None
    stream_id: Optional[int] = None


class UserPipelineConfig(StemBaseModel):
    """User-facing pipeline config."""
    concurrency: Optional[Union[Literal["auto"], int]] = None
    max_in_flight: Optional[int] = None


class UserDetectorConfig(StemBaseModel):
    """User-facing detector geometry config."""
    inner_radius: Optional[float] = None
    outer_radius: Optional[float] = None


class UserOutputConfig(StemBaseModel):
    """User-facing output config."""
    width: Optional[int] = None
    height: Optional[int] = None
    image_id: Optional[int] = None
    sink: Optional[str] = None


class UserLiveConfig(StemBaseModel):
    """User-facing live sink config."""
    url: Optional[str] = None
    namespace: Optional[str] = None
    wait_timeout: Optional[float] = None


class UserVisualizationConfig(StemBaseModel):
    """User-facing visualization config."""
    enabled: Optional[bool] = None
    dpi: Optional[int] = None
    figsize: Optional[tuple[float, float]] = None
    cmap: Optional[str] = None
    output_format: Optional[str] = None


class UserConfig(StemBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify what
    they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            stream_path="/data/scan_042.bin",
            stream_id=42,
            width=256,
            height=256,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    base_dir: Optional[str] = Field(None, alias="BASE_DIR")

    # Stream settings
    stream_path: Optional[str] = Field(None, alias="STREAM_PATH")
    stream_id: Optional[int] = Field(None, alias="STREAM_ID")

    # Pipeline settings
    concurrency: Optional[Union[Literal["auto"], int]] = Field(None, alias="CONCURRENCY")
    max_in_flight: Optional[int] = Field(None, alias="MAX_IN_FLIGHT")

    # Detector geometry
    inner_radius: Optional[float] = Field(None, alias="INNER_RADIUS")
    outer_radius: Optional[float] = Field(None, alias="OUTER_RADIUS")

    # Output settings
    width: Optional[int] = Field(None, alias="WIDTH")
    height: Optional[int] = Field(None, alias="HEIGHT")
    image_id: Optional[int] = Field(None, alias="IMAGE_ID")
    sink: Optional[str] = Field(None, alias="SINK")
    live_url: Optional[str] = Field(None, alias="LIVE_URL")

    plot: Optional[bool] = Field(None, alias="PLOT")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        None, alias="LOG_LEVEL"
    )

    # Nested overrides (advanced users)
    stream: Optional[UserStreamConfig] = None
    pipeline: Optional[UserPipelineConfig] = None
    detector: Optional[UserDetectorConfig] = None
    output: Optional[UserOutputConfig] = None
    live: Optional[UserLiveConfig] = None
    visualization: Optional[UserVisualizationConfig] = None

    model_config = StemBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("concurrency", mode="before")
    @classmethod
    def normalize_concurrency(cls, v):
        """Accept 'AUTO' and numeric strings."""
        if isinstance(v, str):
            v = v.strip().lower()
            return v if v == "auto" else int(v)
        return v

    @field_validator("inner_radius", "outer_radius", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for radii."""
        if v is not None:
            return float(v)
        return v

    @field_validator("sink", mode="before")
    @classmethod
    def normalize_sink(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        stream = {}
        if self.stream_path is not None:
            stream["path"] = self.stream_path
        if self.stream_id is not None:
            stream["stream_id"] = self.stream_id
        if self.stream is not None:
            stream.update(self.stream.model_dump(exclude_none=True))
        if stream:
            overrides["stream"] = stream

        pipeline = {}
        if self.concurrency is not None:
            pipeline["concurrency"] = self.concurrency
        if self.max_in_flight is not None:
            pipeline["max_in_flight"] = self.max_in_flight
        if self.pipeline is not None:
            pipeline.update(self.pipeline.model_dump(exclude_none=True))
        if pipeline:
            overrides["pipeline"] = pipeline

        detector = {}
        if self.inner_radius is not None:
            detector["inner_radius"] = self.inner_radius
        if self.outer_radius is not None:
            detector["outer_radius"] = self.outer_radius
        if self.detector is not None:
            detector.update(self.detector.model_dump(exclude_none=True))
        if detector:
            overrides["detector"] = detector

        output = {}
        if self.width is not None:
            output["width"] = self.width
        if self.height is not None:
            output["height"] = self.height
        if self.image_id is not None:
            output["image_id"] = self.image_id
        if self.sink is not None:
            output["sink"] = self.sink
        if self.output is not None:
            output.update(self.output.model_dump(exclude_none=True))
        if output:
            overrides["output"] = output

        live = {}
        if self.live_url is not None:
            live["url"] = self.live_url
        if self.live is not None:
            live.update(self.live.model_dump(exclude_none=True))
        if live:
            overrides["live"] = live

        visualization = {}
        if self.plot is not None:
            visualization["enabled"] = self.plot
        if self.visualization is not None:
            visualization.update(self.visualization.model_dump(exclude_none=True))
        if visualization:
            overrides["visualization"] = visualization

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
