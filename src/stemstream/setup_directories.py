"""
Directory setup for the STEM stream pipeline.

Flat structure under one base directory:
- images/: bright/dark ``.bin`` outputs
- plots/: optional preview renders
- logs/: pipeline log files
"""

from pathlib import Path


def setup_output_directories(base_output_dir=None):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base output directory. If None, uses ``./output``.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'images', 'plots', 'logs'
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "images": base_output_dir / "images",
        "plots": base_output_dir / "plots",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    return directories


def get_log_path(output_dirs, stream_id):
    """
    Get the pipeline log file path for a stream.

    Example
    -------
    >>> get_log_path(dirs, 7)
    Path('output/logs/stem_007.log')
    """
    return Path(output_dirs["logs"]) / f"stem_{stream_id:03d}.log"


def get_plot_path(output_dirs, stream_id, image_id, output_format="png"):
    """
    Get the preview plot path for a stream image.

    Example
    -------
    >>> get_plot_path(dirs, 7, 1)
    Path('output/plots/stem-007.001.png')
    """
    return Path(output_dirs["plots"]) / f"stem-{stream_id:03d}.{image_id:03d}.{output_format}"
