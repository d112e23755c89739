#!/usr/bin/env python3
"""``stemstream`` STEM Image Pipeline Runner.

Usage:
    python scripts/run_stem_pipeline.py scripts/user_config.py
    python scripts/run_stem_pipeline.py scripts/user_config.py --stream-path data/scan.bin
    cat data/scan.bin | python scripts/run_stem_pipeline.py scripts/user_config.py --stream-path -

Note: User config in scripts/user_config.py, expert defaults in stemstream.schemas.param
"""

import sys

from stemstream.cli.run_stream import main


if __name__ == "__main__":
    sys.exit(main())
