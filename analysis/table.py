"""Named tabular container shared by every stage of the pipeline."""
from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from analysis.errors import ColumnError

logger = logging.getLogger(__name__)


class ColumnLayout:
    """Allocates consecutive indices to named columns."""

    def __init__(self) -> None:
        self._columns: Dict[str, int] = {}

    def add(self, name: str) -> "ColumnLayout":
        if name in self._columns:
            raise ColumnError(f"duplicate column {name!r}")
        self._columns[name] = len(self._columns)
        return self

    def extend(self, names: Iterable[str]) -> "ColumnLayout":
        for name in names:
            self.add(name)
        return self

    def build(self) -> Dict[str, int]:
        return dict(self._columns)


@dataclass
class Table:
    columns: Dict[str, int] = field(default_factory=dict)
    column_order: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    min_ts: Optional[int] = None
    max_ts: Optional[int] = None

    @classmethod
    def from_columns(cls, columns: Mapping[str, int]) -> "Table":
        table = cls()
        table.set_many(columns)
        return table

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.column_order)

    def set(self, name: str, index: int) -> None:
        """Register ``name`` at ``index``, which must be the next free slot."""
        if name in self.columns:
            raise ColumnError(f"column {name!r} already registered at {self.columns[name]}")
        if index != len(self.column_order):
            raise ColumnError(
                f"column {name!r} at index {index} leaves a gap (next free index is {len(self.column_order)})"
            )
        self.columns[name] = index
        self.column_order.append(name)

    def set_many(self, columns: Mapping[str, int]) -> None:
        """Register a batch whose indices continue the existing range without gaps."""
        start = len(self.column_order)
        ordered = sorted(columns.items(), key=lambda item: item[1])
        expected = list(range(start, start + len(ordered)))
        if [index for _, index in ordered] != expected:
            raise ColumnError(f"column indices {sorted(columns.values())} do not continue from {start}")
        for name, index in ordered:
            self.set(name, index)

    def column(self, name: str) -> List[str]:
        if name not in self.columns:
            raise ColumnError(f"unknown column {name!r}")
        idx = self.columns[name]
        return [row[idx] for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.column_order, dtype=str)

    def to_csv(self, path: Path) -> None:
        """Write header and rows to ``path``; nothing is left behind on failure."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                self.to_frame().to_csv(f, index=False, lineterminator="\n")
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote %d rows x %d columns to %s", len(self.rows), self.column_count, path)
