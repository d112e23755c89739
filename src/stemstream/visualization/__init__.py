"""Visualization module for STEM images."""

from .plotter import StemPlotter, load_stem_dataset

__all__ = ['StemPlotter', 'load_stem_dataset']
