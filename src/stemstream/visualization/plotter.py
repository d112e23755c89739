"""STEM image preview rendering.

Renders the bright and dark field images side by side. Used by the
pipeline when visualization is enabled, and by scripts/plot_stem_images.py
to inspect saved ``.bin`` outputs offline.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import xarray as xr
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from stemstream.sinks.file_sink import get_image_path, load_stem_image

__all__ = ['StemPlotter', 'load_stem_dataset']

logger = logging.getLogger(__name__)


def load_stem_dataset(images_dir: Union[str, Path], stream_id: int, image_id: int,
                      width: int, height: int) -> xr.Dataset:
    """Load a bright/dark pair written by FileSink into an xarray Dataset."""
    bright = load_stem_image(get_image_path(images_dir, "bright", stream_id, image_id),
                             width, height)
    dark = load_stem_image(get_image_path(images_dir, "dark", stream_id, image_id),
                           width, height)
    return xr.Dataset(
        {
            "bright": (("y", "x"), bright, {"long_name": "Bright field intensity"}),
            "dark": (("y", "x"), dark, {"long_name": "Dark field intensity"}),
        },
        coords={"y": np.arange(height), "x": np.arange(width)},
        attrs={"stream_id": stream_id, "image_id": image_id},
    )


class StemPlotter:
    """Side-by-side bright/dark field preview.

    Parameters
    ----------
    config : InternalConfig, optional
        Runtime configuration; only the ``visualization`` section is read.
        Defaults match ParamConfig when omitted.
    """

    def __init__(self, config=None):
        if config is not None:
            viz = config.visualization
            self.dpi = viz.dpi
            self.figsize = tuple(viz.figsize)
            self.cmap = viz.cmap
            self.output_format = viz.output_format
        else:
            self.dpi = 150
            self.figsize = (12.0, 6.0)
            self.cmap = "gray"
            self.output_format = "png"

    def plot(self, ds: xr.Dataset, output_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
        """Render ``ds`` (with ``bright`` and ``dark`` variables).

        Returns the saved path, or None when ``output_path`` is None.
        """
        fig, axes = plt.subplots(1, 2, figsize=self.figsize, dpi=self.dpi)
        try:
            for ax, name in zip(axes, ("bright", "dark")):
                # float64 keeps imshow happy with uint64 sums
                data = ds[name].values.astype(np.float64)
                im = ax.imshow(data, origin='upper', cmap=self.cmap, interpolation='nearest')
                ax.set_title(f"{name.capitalize()} field")
                ax.set_xlabel("x (scan position)")
                ax.set_ylabel("y (scan position)")
                plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04)

            stream_id = ds.attrs.get("stream_id")
            image_id = ds.attrs.get("image_id")
            if stream_id is not None:
                fig.suptitle(f"Stream {stream_id:03d}, image {image_id:03d}")
            fig.tight_layout()

            if output_path is None:
                return None

            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(output_path, format=output_path.suffix.lstrip(".") or self.output_format)
            logger.info("Preview saved: %s", output_path)
            return output_path
        finally:
            plt.close(fig)
