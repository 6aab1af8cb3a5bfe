"""Merge one system's benchmark time series with its per-node resource usage."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from analysis.config import AnalyzeConfig, SystemSpec
from analysis.errors import AlignmentError, ColumnError, ConfigError
from analysis.loader import BENCHMARK_COLUMNS, PROCESS_COLUMNS, parse_float, parse_int, read_csv, read_csvs
from analysis.table import ColumnLayout, Table

logger = logging.getLogger(__name__)

ON_MISALIGNED = ("fail", "degrade")


@dataclass(frozen=True)
class AggregationRule:
    """Average every resource column starting with ``prefix`` into ``output``."""

    prefix: str
    output: str


DEFAULT_RULES: Tuple[AggregationRule, ...] = (
    AggregationRule(prefix="cpu_", output="avg_cpu"),
    AggregationRule(prefix="memory_", output="avg_memory_mb"),
)


def alignment_offset(resources: Table, timestamp: int, key_index: int = 0) -> int:
    """Index of the first resource row recorded at ``timestamp``.

    Raises AlignmentError when no row matches.
    """
    for i, row in enumerate(resources.rows):
        if parse_int(row[key_index], f"resource row {i} key") == timestamp:
            return i
    raise AlignmentError(f"no resource row at timestamp {timestamp}")


def _resolve_offset(resources: Table, timestamp: int, on_misaligned: str) -> int:
    if on_misaligned not in ON_MISALIGNED:
        raise ConfigError(f"on_misaligned must be one of {ON_MISALIGNED}, got {on_misaligned!r}")
    try:
        return alignment_offset(resources, timestamp)
    except AlignmentError:
        if on_misaligned == "fail":
            raise
        logger.warning("No resource sample at %s; keeping all %d resource rows", timestamp, len(resources))
        return 0


def combine(
    bench: Table,
    resources: Table,
    *,
    rules: Sequence[AggregationRule] = DEFAULT_RULES,
    on_misaligned: str = "fail",
) -> Table:
    resource_names = resources.column_order[1:]
    layout = ColumnLayout().extend(bench.column_order).extend(resource_names)
    layout.extend(rule.output for rule in rules)

    groups: List[Tuple[AggregationRule, List[int]]] = []
    for rule in rules:
        idxs = [resources.columns[name] for name in resource_names if name.startswith(rule.prefix)]
        if not idxs:
            raise ColumnError(f"no resource column starts with {rule.prefix!r}")
        groups.append((rule, idxs))

    merged = Table.from_columns(layout.build())
    merged.min_ts = bench.min_ts
    merged.max_ts = bench.max_ts
    if not bench.rows:
        logger.warning("Benchmark table is empty; nothing to align")
        return merged
    if bench.min_ts is None:
        raise AlignmentError("benchmark table has no minimum timestamp")

    offset = _resolve_offset(resources, bench.min_ts, on_misaligned)
    aligned = resources.rows[offset:]
    if len(aligned) < len(bench.rows):
        raise AlignmentError(
            f"{len(bench.rows)} benchmark rows but only {len(aligned)} resource rows from offset {offset}"
        )

    for i, row in enumerate(bench.rows):
        sample = aligned[i]
        averages = []
        for rule, idxs in groups:
            total = sum(parse_float(sample[idx], f"resource row {offset + i} {rule.prefix}") for idx in idxs)
            averages.append(f"{total / len(idxs):.2f}")
        merged.rows.append(list(row) + sample[1:] + averages)
    return merged


def combine_system(system: SystemSpec, config: AnalyzeConfig) -> Table:
    """Load, combine and persist the artifacts of one tested system."""
    node_paths = system.node_paths(config.node_count)
    logger.info("Combine %s", [str(p) for p in node_paths])

    resources = read_csvs(PROCESS_COLUMNS, *node_paths)
    bench = read_csv(BENCHMARK_COLUMNS, system.timeseries_path)
    merged = combine(bench, resources, on_misaligned=config.on_misaligned)

    merged.to_csv(system.final_path)
    logger.info("Successfully saved %s", system.final_path)
    return merged
