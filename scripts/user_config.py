"""stemstream User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Advanced settings are in stemstream/schemas/param.py

Usage:
    python scripts/run_stem_pipeline.py scripts/user_config.py
    python scripts/run_stem_pipeline.py scripts/user_config.py --stream-id 8
    python scripts/run_stem_pipeline.py scripts/user_config.py --sink live
"""

CONFIG = {
    # ========================================================================
    # STREAM
    # ========================================================================
    "STREAM_PATH": "data/stream.bin",  # Block stream file, or "-" for stdin
    "STREAM_ID": 0,                    # 0-999, used in output file names
    "BASE_DIR": "output",              # All outputs go here

    # ========================================================================
    # SCAN
    # ========================================================================
    "WIDTH": 160,             # Probe positions per row
    "HEIGHT": 160,            # Rows of scan positions
    "IMAGE_ID": 1,

    # ========================================================================
    # DETECTOR GEOMETRY (pixels from frame center)
    # ========================================================================
    "INNER_RADIUS": 40,       # Bright field disk radius
    "OUTER_RADIUS": 288,      # Dark field annulus outer edge

    # ========================================================================
    # PERFORMANCE
    # ========================================================================
    "CONCURRENCY": "auto",    # Worker threads, "auto" = CPU count
    "MAX_IN_FLIGHT": None,    # Bound on pending blocks (None = unbounded)

    # ========================================================================
    # OUTPUT
    # ========================================================================
    "SINK": "file",           # "file" or "live"
    "LIVE_URL": "http://localhost:5000",
    "PLOT": False,            # Save a preview PNG under plots/
}
