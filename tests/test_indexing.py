"""
Tests for the sorted column index.
"""

import polars as pl
import pytest

from rdf_framedoc.storage.indexing import SortedIndex, IndexStats


@pytest.fixture
def sample_df():
    """Create a sample triple table for testing."""
    return pl.DataFrame({
        "subject": [1, 1, 1, 2, 2, 3],  # Subject 1 appears 3 times
        "predicate": [10, 10, 20, 10, 30, 20],
        "object": [100, 105, 103, 101, 104, 100],
    }).cast({
        "subject": pl.UInt64,
        "predicate": pl.UInt64,
        "object": pl.UInt64,
    })


class TestSortedIndex:
    """Tests for SortedIndex."""

    def test_build_index(self, sample_df):
        idx = SortedIndex("subject")
        idx.build(sample_df)

        stats = idx.stats()
        assert isinstance(stats, IndexStats)
        assert stats.num_keys == 3
        assert stats.num_entries == 6

    def test_lookup(self, sample_df):
        """Positions come back ascending, in table order."""
        idx = SortedIndex("subject")
        idx.build(sample_df)

        assert idx.lookup(1) == [0, 1, 2]
        assert idx.lookup(2) == [3, 4]
        assert idx.lookup(3) == [5]

    def test_lookup_missing(self, sample_df):
        idx = SortedIndex("subject")
        idx.build(sample_df)

        assert idx.lookup(999) == []
        assert not idx.contains(999)
        assert idx.contains(2)

    def test_object_index(self, sample_df):
        """Object 100 appears in rows 0 and 5."""
        idx = SortedIndex("object")
        idx.build(sample_df)

        assert idx.lookup(100) == [0, 5]
        assert idx.keys() == [100, 101, 103, 104, 105]

    def test_empty_dataframe(self):
        df = pl.DataFrame({"subject": pl.Series([], dtype=pl.UInt64)})
        idx = SortedIndex("subject")
        idx.build(df)

        assert idx.lookup(1) == []
        assert idx.stats().num_keys == 0

    def test_missing_column(self, sample_df):
        idx = SortedIndex("graph")
        idx.build(sample_df)

        assert idx.keys() == []

    def test_rebuild_replaces_contents(self, sample_df):
        idx = SortedIndex("subject")
        idx.build(sample_df)
        idx.build(sample_df.filter(pl.col("subject") == 3))

        assert idx.keys() == [3]
        assert idx.lookup(3) == [0]
