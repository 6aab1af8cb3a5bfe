"""Load benchmark and per-node resource CSV files into tables."""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pandas as pd

from analysis.errors import ParseError
from analysis.table import ColumnLayout, Table

logger = logging.getLogger(__name__)

BENCHMARK_COLUMNS: Dict[str, int] = {
    "unix_ts": 0,
    "avg_latency_ms": 1,
    "throughput": 2,
}

# Layout written by analysis.monitor for one node.
PROCESS_COLUMNS: Dict[str, int] = {
    "unix_ts": 0,
    "cpu": 1,
    "memory_mb": 2,
}


def parse_int(value: str, where: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ParseError(f"{where}: {value!r} is not an integer") from exc


def parse_float(value: str, where: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ParseError(f"{where}: {value!r} is not a number") from exc


def _check_field_counts(path: Path, width: int, header: bool) -> None:
    """Raise ParseError unless every data line holds exactly ``width`` fields.

    Blank lines are only tolerated after the last data line.
    """
    blank_line = None
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        if header:
            next(reader, None)
        for record in reader:
            if not record:
                blank_line = blank_line or reader.line_num
                continue
            if blank_line is not None:
                raise ParseError(f"{path}: blank line {blank_line} between data rows")
            if len(record) != width:
                raise ParseError(f"{path}: line {reader.line_num} has {len(record)} fields, expected {width}")


def _read_rows(path: Path, width: int, header: bool) -> List[List[str]]:
    _check_field_counts(path, width, header)
    try:
        df = pd.read_csv(
            path,
            header=None,
            skiprows=1 if header else 0,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as exc:
        raise ParseError(f"{path}: {exc}") from exc

    if df.shape[1] != width:
        raise ParseError(f"{path}: expected {width} fields per row, found {df.shape[1]}")
    return df.values.tolist()


def _set_bounds(table: Table, key_index: int, path: Path) -> None:
    stamps = [parse_int(row[key_index], f"{path} key column") for row in table.rows]
    if stamps:
        table.min_ts = min(stamps)
        table.max_ts = max(stamps)


def read_csv(
    columns: Mapping[str, int],
    path: Path,
    *,
    header: bool = True,
    key_index: Optional[int] = 0,
) -> Table:
    """Read one delimited file whose fields are described by ``columns``.

    The file's own header line, if any, is skipped; names come from ``columns``.
    Cells are kept as the raw strings found in the file. When ``key_index`` is
    set, that column must hold integer timestamps and the table's bounds are
    filled from it.
    """
    path = Path(path)
    table = Table.from_columns(columns)
    table.rows = _read_rows(path, table.column_count, header)
    if key_index is not None:
        _set_bounds(table, key_index, path)
    logger.debug("Read %d rows from %s", len(table.rows), path)
    return table


def read_csvs(
    columns: Mapping[str, int],
    *paths: Path,
    header: bool = True,
    key_index: int = 0,
) -> Table:
    """Read files sharing one column layout and join them side by side.

    The key column of the first file is kept once. Every other column of the
    ``i``-th file (1-based) is renamed ``<name>_<i>`` and appended in file
    order, so the first file's columns keep their indices. Rows are joined by
    position and every file must have the same number of rows.
    """
    if not paths:
        raise ValueError("read_csvs needs at least one path")

    sources = [read_csv(columns, p, header=header, key_index=None) for p in paths]

    layout = ColumnLayout()
    for ordinal, source in enumerate(sources, start=1):
        for i, name in enumerate(source.column_order):
            if i != key_index:
                layout.add(f"{name}_{ordinal}")
            elif ordinal == 1:
                layout.add(name)

    expected = len(sources[0].rows)
    for p, source in zip(paths, sources):
        if len(source.rows) != expected:
            raise ParseError(f"{p}: {len(source.rows)} rows, expected {expected} like {paths[0]}")

    table = Table.from_columns(layout.build())
    for r in range(expected):
        row = list(sources[0].rows[r])
        for source in sources[1:]:
            row.extend(cell for i, cell in enumerate(source.rows[r]) if i != key_index)
        table.rows.append(row)

    _set_bounds(table, key_index, Path(paths[0]))
    logger.debug("Merged %d files into %d columns", len(paths), table.column_count)
    return table
