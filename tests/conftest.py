"""Root-level pytest fixtures for the stemstream test suite.

Provides shared configuration fixtures following the Pydantic-based config
layer. Tests build InternalConfig through resolve_config() rather than by
hand so the precedence rules are always exercised.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from stemstream.schemas import ParamConfig, UserConfig, resolve_config
from stemstream.setup_directories import setup_output_directories


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def output_dirs(temp_dir):
    """Standard output directory structure: base, images, plots, logs."""
    return setup_output_directories(temp_dir / "output")


@pytest.fixture
def stream_path(temp_dir):
    """Path for a test stream file (not created)."""
    return temp_dir / "stream.bin"


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config, stream_path):
    """Fully validated runtime configuration pointing at ``stream_path``."""
    return resolve_config(param_config, UserConfig(stream_path=str(stream_path)), None)


@pytest.fixture
def make_config(param_config, stream_path):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs. The
    stream path defaults to the ``stream_path`` fixture.

    Examples
    --------
    >>> def test_small_scan(make_config):
    ...     config = make_config(width=4, height=4, concurrency=2)
    ...     assert config.output.width == 4
    """
    def _make(**user_overrides):
        user_overrides.setdefault("stream_path", str(stream_path))
        return resolve_config(param_config, UserConfig(**user_overrides), None)

    return _make
