"""Combine per-node resource usage with benchmark results and compare systems."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from analysis.compare import compare_systems
from analysis.config import AnalyzeConfig
from analysis.errors import AnalyzeError
from analysis.logging_utils import configure_logging, load_env, setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help="YAML run configuration")
    parser.add_argument("--log-level", type=str, default="INFO")
    parser.add_argument("--log-dir", type=Path, default=None, help="Also write analysis.log here")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_env()
    if args.log_dir is not None:
        configure_logging(args.log_dir, args.log_level)
    else:
        setup_logging(args.log_level)

    config_path = args.config or os.getenv("BENCH_ANALYZE_CONFIG")
    if not config_path:
        logger.error("No configuration given; pass --config or set BENCH_ANALYZE_CONFIG")
        return 2

    try:
        config = AnalyzeConfig.from_yaml(Path(config_path))
        compared = compare_systems(config)
    except (AnalyzeError, OSError) as exc:
        logger.error("Analysis failed: %s", exc)
        return 1
    logger.info("Compared %d systems over %d rows", len(config.systems), len(compared))
    return 0


if __name__ == "__main__":
    sys.exit(main())
