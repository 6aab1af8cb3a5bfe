"""Line up several per-system tables side by side."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from analysis.combine import combine_system
from analysis.config import AnalyzeConfig
from analysis.errors import CadenceError, ColumnError
from analysis.loader import parse_int
from analysis.table import ColumnLayout, Table

logger = logging.getLogger(__name__)

COMPARED_METRICS = ("avg_latency_ms", "throughput", "avg_cpu", "avg_memory_mb")


def sampling_intervals(table: Table, key: str = "unix_ts") -> Set[int]:
    stamps = [parse_int(value, key) for value in table.column(key)]
    return {later - earlier for earlier, later in zip(stamps, stamps[1:])}


def check_cadence(tables: Sequence[Table], suffixes: Sequence[str], key: str = "unix_ts") -> None:
    """Raise CadenceError unless every table is sampled at one shared interval."""
    seen: Optional[Set[int]] = None
    for table, suffix in zip(tables, suffixes):
        intervals = sampling_intervals(table, key)
        if len(intervals) > 1:
            raise CadenceError(f"{suffix}: irregular sampling intervals {sorted(intervals)}")
        if not intervals:
            continue
        if seen is not None and intervals != seen:
            raise CadenceError(f"{suffix}: sampled every {intervals.pop()}, others every {seen.pop()}")
        seen = intervals


def compare(
    tables: Sequence[Table],
    suffixes: Sequence[str],
    *,
    validate_cadence: bool = False,
    key: str = "unix_ts",
) -> Table:
    """Build one row per sample position with each system's key metrics.

    Rows are matched by position only. A system with fewer rows leaves its
    cells empty in the trailing rows.
    """
    if len(tables) != len(suffixes):
        raise ValueError(f"{len(tables)} tables but {len(suffixes)} suffixes")
    if len(set(suffixes)) != len(suffixes):
        raise ValueError(f"duplicate suffixes in {list(suffixes)}")
    if validate_cadence:
        check_cadence(tables, suffixes, key)

    layout = ColumnLayout().add("second")
    for suffix in suffixes:
        layout.extend(f"{metric}_{suffix}" for metric in COMPARED_METRICS)
    compared = Table.from_columns(layout.build())

    metric_idxs = []
    for table, suffix in zip(tables, suffixes):
        missing = [metric for metric in COMPARED_METRICS if metric not in table.columns]
        if missing:
            raise ColumnError(f"{suffix}: missing columns {missing}")
        metric_idxs.append([table.columns[metric] for metric in COMPARED_METRICS])
    size = max((len(table.rows) for table in tables), default=0)
    blank = [""] * len(COMPARED_METRICS)
    for j in range(size):
        row: List[str] = [str(j)]
        for table, idxs in zip(tables, metric_idxs):
            if j < len(table.rows):
                row.extend(table.rows[j][idx] for idx in idxs)
            else:
                row.extend(blank)
        compared.rows.append(row)
    return compared


def compare_systems(config: AnalyzeConfig) -> Table:
    tables = [combine_system(system, config) for system in config.systems]
    suffixes = [system.name for system in config.systems]
    compared = compare(tables, suffixes, validate_cadence=config.validate_cadence)
    compared.to_csv(config.compared_path)
    logger.info("Successfully saved %s", config.compared_path)
    return compared
