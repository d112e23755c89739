#!/usr/bin/env python3
"""Render saved bright/dark field images.

Reads the ``bright-NNN.NNN.bin`` and ``dark-NNN.NNN.bin`` files written by
the file sink and draws them side by side. Independent of the pipeline: it
only needs the image files and the scan size.

Usage
-----
Plot stream 7, image 1 from the default output directory::

    python scripts/plot_stem_images.py output/images --stream-id 7

Non-square scan, saved as PDF::

    python scripts/plot_stem_images.py output/images --stream-id 7 \
        --width 256 --height 128 --output stem-007.pdf
"""

import argparse
import logging
import sys
from pathlib import Path

from stemstream.visualization import StemPlotter, load_stem_dataset

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Plot saved STEM images")
    parser.add_argument("images_dir", help="Directory holding the .bin images")
    parser.add_argument("--stream-id", type=int, required=True, help="Stream id")
    parser.add_argument("--image-id", type=int, default=1, help="Image id (default: 1)")
    parser.add_argument("--width", type=int, default=160, help="Scan width (default: 160)")
    parser.add_argument("--height", type=int, default=160, help="Scan height (default: 160)")
    parser.add_argument("--output", help="Output figure path (default: next to the images)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    try:
        ds = load_stem_dataset(args.images_dir, args.stream_id, args.image_id,
                               args.width, args.height)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Cannot load images: %s", e)
        return 1

    output = args.output
    if output is None:
        output = Path(args.images_dir) / f"stem-{args.stream_id:03d}.{args.image_id:03d}.png"

    path = StemPlotter().plot(ds, output)
    print(f"Saved {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
