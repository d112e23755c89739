"""Preview rendering with the Agg backend."""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from stemstream.pipeline.aggregator import StemImages
from stemstream.sinks import FileSink
from stemstream.visualization import StemPlotter, load_stem_dataset


@pytest.fixture
def images():
    rng = np.random.default_rng(0)
    bright = rng.integers(0, 2 ** 40, size=(6, 8), dtype=np.uint64)
    dark = rng.integers(0, 2 ** 20, size=(6, 8), dtype=np.uint64)
    return StemImages(3, 1, 8, 6, bright, dark)


def test_plot_saves_png(images, tmp_path):
    path = StemPlotter().plot(images.to_dataset(), tmp_path / "plots" / "preview.png")

    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_plot_without_path_returns_none(images):
    assert StemPlotter().plot(images.to_dataset()) is None


def test_plotter_reads_visualization_config(make_config):
    config = make_config(visualization={"dpi": 80, "cmap": "viridis", "figsize": (4, 2)})

    plotter = StemPlotter(config)

    assert plotter.dpi == 80
    assert plotter.cmap == "viridis"
    assert plotter.figsize == (4.0, 2.0)


def test_load_stem_dataset_from_file_sink(images, tmp_path):
    FileSink(tmp_path).emit(images)

    ds = load_stem_dataset(tmp_path, 3, 1, width=8, height=6)

    np.testing.assert_array_equal(ds["bright"].values, images.bright)
    assert ds.attrs == {"stream_id": 3, "image_id": 1}
