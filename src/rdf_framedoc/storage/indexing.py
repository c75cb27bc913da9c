"""
Column index for a graph snapshot's triple table.

Maps each distinct value of one column (subject or object) to the row
positions holding it. Keys are kept sorted so lookups are a binary search;
positions are ascending, which keeps table order for scans.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass

import polars as pl


@dataclass
class IndexStats:
    column_name: str
    num_keys: int
    num_entries: int


class SortedIndex:
    """
    Sorted key -> row positions index over one column.

    Example:
        idx = SortedIndex("object")
        idx.build(df)
        rows = idx.lookup(term_id)

    Built once per snapshot and read-only afterwards.
    """

    def __init__(self, column_name: str):
        self.column_name = column_name
        self._keys: list[int] = []
        self._positions: list[list[int]] = []
        self._num_entries = 0

    def build(self, df: pl.DataFrame) -> None:
        """(Re)build from ``df``; a missing column or an empty table gives an empty index."""
        if self.column_name not in df.columns or df.height == 0:
            self._keys, self._positions, self._num_entries = [], [], 0
            return

        grouped = (
            df.select(self.column_name)
            .with_row_index("row")
            .group_by(self.column_name)
            .agg(pl.col("row").sort())
            .sort(self.column_name)
        )
        self._keys = grouped[self.column_name].to_list()
        self._positions = grouped["row"].to_list()
        self._num_entries = df.height

    def _find(self, key: int) -> int:
        idx = bisect.bisect_left(self._keys, key)
        if idx < len(self._keys) and self._keys[idx] == key:
            return idx
        return -1

    def lookup(self, key: int) -> list[int]:
        """Row positions holding ``key``, ascending; empty if absent."""
        idx = self._find(key)
        return self._positions[idx] if idx >= 0 else []

    def contains(self, key: int) -> bool:
        return self._find(key) >= 0

    def keys(self) -> list[int]:
        return list(self._keys)

    def stats(self) -> IndexStats:
        return IndexStats(self.column_name, len(self._keys), self._num_entries)
