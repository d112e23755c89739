"""Core STEM stream pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import sys
import json
import argparse
import logging
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

from stemstream.contracts import ContractViolation, StemStreamError
from stemstream.setup_directories import setup_output_directories
from stemstream.pipeline.orchestrator import StemPipeline
from stemstream.pipeline.aggregator import StemImages
from stemstream.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig


logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def run_stem_pipeline(
    user_config_path: Optional[str],
    cli_args: Optional[Dict[str, Any]] = None,
    verbose: bool = False
) -> StemImages:
    """Execute the STEM stream pipeline for one stream.

    It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories
    3. Runs the pipeline over the whole stream
    4. Returns the images that were handed to the sink

    Parameters
    ----------
    user_config_path : str or None
        Path to user config file (Python file with CONFIG dict). None runs
        on expert defaults plus CLI overrides only.

    cli_args : dict, optional
        CLI argument overrides. Keys: stream_path, stream_id, concurrency,
        width, height, sink, url, base_dir, log_level. All optional.

    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If configuration validation fails.
    StemStreamError
        If the stream cannot be read to completion or a task fails.

    Examples
    --------
    Run with user config only::

        run_stem_pipeline("config/my_config.py")

    Read stdin and override the scan size::

        run_stem_pipeline(
            "config/my_config.py",
            cli_args={"stream_path": "-", "width": 256, "height": 256},
        )
    """
    param_cfg = ParamConfig()

    if user_config_path is not None:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))
    else:
        user_cfg = UserConfig()

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"

    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    output_dirs = setup_output_directories(config.base_dir)

    # Run summary on stderr
    print(f"\n{'='*60}", file=sys.stderr)
    print("stemstream STEM Image Pipeline", file=sys.stderr)
    print('='*60, file=sys.stderr)
    print(f"Config:  {user_config_path}", file=sys.stderr)
    print(f"Stream:  {config.stream.path} (id {config.stream.stream_id:03d})", file=sys.stderr)
    print(f"Workers: {config.pipeline.concurrency}", file=sys.stderr)
    print(f"Scan:    {config.output.width}x{config.output.height}", file=sys.stderr)
    print(f"Sink:    {config.output.sink}", file=sys.stderr)
    print(f"Output:  {output_dirs['base']}", file=sys.stderr)
    print('='*60, file=sys.stderr)

    if verbose:
        print("\nFull Internal Configuration:", file=sys.stderr)
        print(json.dumps(config.model_dump(), indent=2), file=sys.stderr)
        print('='*60, file=sys.stderr)

    pipeline = StemPipeline(config, output_dirs)
    pipeline.setup_logging()
    return pipeline.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reduce a 4D-STEM detector stream to bright and dark field images"
    )
    parser.add_argument("config", nargs="?", help="Path to user config file")
    parser.add_argument("--stream-path", help="Stream file, or '-' for stdin")
    parser.add_argument("--stream-id", type=int, help="Stream id (0-999)")
    parser.add_argument("--concurrency", help="Worker threads: 'auto' or a number")
    parser.add_argument("--width", type=int, help="Scan width in scan positions")
    parser.add_argument("--height", type=int, help="Scan height in scan positions")
    parser.add_argument("--sink", choices=["file", "live"], help="Output sink")
    parser.add_argument("--url", help="socket.io server URL for the live sink")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    cli_args = {
        "stream_path": args.stream_path,
        "stream_id": args.stream_id,
        "concurrency": args.concurrency,
        "width": args.width,
        "height": args.height,
        "sink": args.sink,
        "url": args.url,
        "base_dir": args.base_dir,
    }

    try:
        run_stem_pipeline(args.config, cli_args=cli_args, verbose=args.verbose)
    except (StemStreamError, ContractViolation, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
