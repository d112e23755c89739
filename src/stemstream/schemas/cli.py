"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: stream path and id, concurrency, scan size, sink, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional, Union
from pydantic import field_validator
from stemstream.schemas.base import StemBaseModel


class CLIConfig(StemBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            stream_path="-",
            stream_id=7,
            concurrency=8,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    stream_path: Optional[str] = None
    stream_id: Optional[int] = None
    concurrency: Optional[Union[Literal["auto"], int]] = None
    width: Optional[int] = None
    height: Optional[int] = None
    sink: Optional[Literal["file", "live"]] = None
    url: Optional[str] = None
    base_dir: Optional[str] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("concurrency", mode="before")
    @classmethod
    def normalize_concurrency(cls, v):
        """argparse hands over strings: 'auto' or a number."""
        if isinstance(v, str):
            v = v.strip().lower()
            return v if v == "auto" else int(v)
        return v

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

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
        if stream:
            overrides["stream"] = stream

        if self.concurrency is not None:
            overrides["pipeline"] = {"concurrency": self.concurrency}

        output = {}
        if self.width is not None:
            output["width"] = self.width
        if self.height is not None:
            output["height"] = self.height
        if self.sink is not None:
            output["sink"] = self.sink
        if output:
            overrides["output"] = output

        if self.url is not None:
            overrides["live"] = {"url": self.url}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
