"""UserConfig and CLIConfig input normalization."""

import pytest

from stemstream.schemas import CLIConfig, ParamConfig, UserConfig, resolve_config

pytestmark = pytest.mark.unit


def test_uppercase_aliases():
    user = UserConfig.model_validate({
        "STREAM_PATH": "/data/scan.bin",
        "STREAM_ID": 12,
        "INNER_RADIUS": 30,
        "OUTER_RADIUS": 200,
        "SINK": "LIVE",
        "LIVE_URL": "http://host:5000",
    })

    assert user.stream_path == "/data/scan.bin"
    assert user.stream_id == 12
    assert user.inner_radius == 30.0
    assert isinstance(user.outer_radius, float)
    assert user.sink == "live"


def test_unknown_keys_ignored():
    user = UserConfig.model_validate({"STREAM_PATH": "x", "RADAR_ID": "KDIX"})

    assert user.stream_path == "x"


@pytest.mark.parametrize("raw,expected", [("AUTO", "auto"), (" auto ", "auto"), ("4", 4), (3, 3)])
def test_concurrency_normalization(raw, expected):
    assert UserConfig(concurrency=raw).concurrency == expected
    assert CLIConfig(concurrency=raw).concurrency == expected


def test_minus_one_concurrency_means_auto():
    param = ParamConfig.model_validate({"pipeline": {"concurrency": -1}})

    assert param.pipeline.concurrency == "auto"


def test_plot_flag_enables_visualization():
    config = resolve_config(ParamConfig(), UserConfig(stream_path="x", plot=True), None)

    assert config.visualization.enabled is True


def test_namespace_gets_leading_slash():
    config = resolve_config(
        ParamConfig(), {"STREAM_PATH": "x", "live": {"namespace": "stem"}}, None
    )

    assert config.live.namespace == "/stem"


def test_cli_overrides_structure():
    cli = CLIConfig(stream_path="-", stream_id=3, width=10, sink="live", url="http://h",
                    base_dir="out", log_level="DEBUG")

    assert cli.to_internal_overrides() == {
        "base_dir": "out",
        "stream": {"path": "-", "stream_id": 3},
        "output": {"width": 10, "sink": "live"},
        "live": {"url": "http://h"},
        "logging": {"level": "DEBUG"},
    }


def test_empty_cli_has_no_overrides():
    assert CLIConfig().to_internal_overrides() == {}
