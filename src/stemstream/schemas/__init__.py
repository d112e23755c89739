"""Pydantic configuration schemas for the stemstream pipeline.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from stemstream.schemas.resolve import resolve_config
from stemstream.schemas.internal import InternalConfig
from stemstream.schemas.param import ParamConfig
from stemstream.schemas.user import UserConfig
from stemstream.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
