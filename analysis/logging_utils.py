"""Logging helpers for the analysis commands."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def configure_logging(output_dir: Path, level: str = "INFO") -> Path:
    """Log to ``output_dir/analysis.log`` as well as the console."""
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / "analysis.log"

    setup_logging(level)
    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(file_handler)
    return log_path


def load_env(path: Optional[str] = None) -> None:
    if path is None:
        path = os.getenv("ENV_FILE", ".env")
    load_dotenv(path)
