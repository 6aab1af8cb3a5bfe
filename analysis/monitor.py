"""Sample one process's CPU and memory usage into a per-node resource CSV.

Run it on every worker node next to the database process; the files it writes
are what ``analysis.loader.read_csvs`` expects for ``server-<n>.csv``.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

import psutil

from analysis.loader import PROCESS_COLUMNS
from analysis.logging_utils import setup_logging
from analysis.table import Table

logger = logging.getLogger(__name__)


def sample_process(proc: psutil.Process) -> List[str]:
    with proc.oneshot():
        cpu = proc.cpu_percent(interval=None)
        rss = proc.memory_info().rss
    return [str(int(time.time())), f"{cpu:.2f}", f"{rss / (1024 ** 2):.2f}"]


class ProcessMonitor:
    def __init__(self, pid: int, interval: float = 1.0, output_path: Optional[Path] = None):
        self.proc = psutil.Process(pid)
        self.interval = interval
        self.output_path = output_path
        self.table = Table.from_columns(PROCESS_COLUMNS)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def __enter__(self) -> "ProcessMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        # first reading is meaningless, see psutil.Process.cpu_percent
        self.proc.cpu_percent(interval=None)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="process-monitor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            # the table is only written once the sampler can no longer append to it
            self._thread.join()
        if self.output_path:
            self.table.to_csv(self.output_path)
            logger.info("Saved %d samples to %s", len(self.table), self.output_path)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.table.rows.append(sample_process(self.proc))
            except (psutil.NoSuchProcess, psutil.ZombieProcess):
                logger.info("Process %s exited", self.proc.pid)
                return
            self._stop_event.wait(self.interval)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Sample a process's CPU and memory usage")
    parser.add_argument("pid", type=int)
    parser.add_argument("--output", type=Path, required=True)
    parser.add_argument("--interval", type=float, default=1.0, help="Sampling interval in seconds")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        monitor = ProcessMonitor(args.pid, interval=args.interval, output_path=args.output)
    except psutil.NoSuchProcess:
        logger.error("Process %s not found", args.pid)
        return 1

    stop_event = threading.Event()

    def handle_signal(signum, frame):  # noqa: ANN001
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, handle_signal)

    logger.info("Monitoring pid %s every %ss", args.pid, args.interval)
    with monitor:
        while monitor.is_running() and not stop_event.is_set():
            stop_event.wait(args.interval)
    return 0


if __name__ == "__main__":
    sys.exit(main())
