"""Command-line interface modules for stemstream pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from stemstream.cli.run_stream import run_stem_pipeline

__all__ = ['run_stem_pipeline']
