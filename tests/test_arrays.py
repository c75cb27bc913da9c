"""
Tests for RDF list and indexed array reconstruction.
"""

import pytest

from rdf_framedoc.documents.arrays import (
    ArrayIterator,
    Cursor,
    RdfListIterator,
    collect_array,
    flatten_array,
)
from rdf_framedoc.exceptions import InternalConsistencyError, SchemaContractError
from rdf_framedoc.storage import GraphBuilder
from rdf_framedoc.storage.vocab import RDF_FIRST, RDF_NIL, RDF_REST, SYS_VALUE, sys_index

EX = "http://example.org/"


class TestCollectArray:
    """Folding (index, value) pairs into nested lists."""

    def test_collect_single_array(self):
        elements = [([0], True), ([1], False), ([2], True)]
        assert collect_array(elements) == [True, False, True]

    def test_collect_single_array_with_offset(self):
        elements = [([3], True), ([4], False), ([5], True)]
        assert collect_array(elements) == [None, None, None, True, False, True]

    def test_collect_single_array_with_holes(self):
        elements = [([3], True), ([5], False), ([9], True)]
        assert collect_array(elements) == [
            None, None, None, True, None, False, None, None, None, True,
        ]

    def test_collect_double_array(self):
        elements = [
            ([0, 0], 0), ([0, 1], 1), ([0, 2], 2),
            ([1, 0], 3), ([1, 1], 4), ([1, 2], 5),
            ([2, 0], 6), ([2, 1], 7), ([2, 2], 8),
        ]
        assert collect_array(elements) == [[0, 1, 2], [3, 4, 5], [6, 7, 8]]

    def test_collect_two_by_two(self):
        elements = [([0, 0], True), ([0, 1], False), ([1, 0], False), ([1, 1], True)]
        assert collect_array(elements) == [[True, False], [False, True]]

    def test_collect_double_array_with_offset(self):
        elements = [
            ([3, 3], 0), ([3, 4], 1), ([3, 5], 2),
            ([4, 3], 3), ([4, 4], 4), ([4, 5], 5),
            ([5, 3], 6), ([5, 4], 7), ([5, 5], 8),
        ]
        assert collect_array(elements) == [
            None,
            None,
            None,
            [None, None, None, 0, 1, 2],
            [None, None, None, 3, 4, 5],
            [None, None, None, 6, 7, 8],
        ]

    def test_collect_double_array_with_holes(self):
        elements = [
            ([3, 3], 0), ([3, 5], 1), ([3, 9], 2),
            ([5, 3], 3), ([5, 5], 4), ([5, 9], 5),
            ([9, 3], 6), ([9, 5], 7), ([9, 9], 8),
        ]
        row = lambda a, b, c: [None, None, None, a, None, b, None, None, None, c]
        assert collect_array(elements) == [
            None, None, None, row(0, 1, 2), None, row(3, 4, 5), None, None, None, row(6, 7, 8),
        ]

    def test_input_order_does_not_matter(self):
        elements = [([2], "c"), ([0], "a"), ([1], "b")]
        assert collect_array(elements) == ["a", "b", "c"]

    def test_empty(self):
        assert collect_array([]) == []

    def test_dimension_mismatch(self):
        with pytest.raises(InternalConsistencyError):
            collect_array([([0], 1), ([0, 1], 2)])

    def test_flatten_inverts_collect(self):
        nested = [[0, None, 2], None, [None, 5]]
        pairs = list(flatten_array(nested, 2))
        assert pairs == [([0, 0], 0), ([0, 2], 2), ([2, 1], 5)]
        assert collect_array(pairs) == nested


class TestCursor:

    def test_peek_does_not_consume(self):
        cursor = Cursor([1, 2])
        assert cursor.peek() == 1
        assert cursor.peek() == 1
        assert next(cursor) == 1
        assert list(cursor) == [2]
        assert cursor.peek() is None


def _list_graph(items):
    b = GraphBuilder()
    head = b.add_list(f"{EX}s", f"{EX}p", items)
    graph = b.build()
    return graph, head


class TestRdfListIterator:

    def test_walks_cells(self):
        graph, head = _list_graph(["a", "b", "c"])
        it = RdfListIterator(
            graph,
            graph.subject_id(head),
            graph.predicate_id(RDF_FIRST),
            graph.predicate_id(RDF_REST),
            graph.object_node_id(RDF_NIL),
        )
        assert [graph.id_object_value(i).lex for i in it] == ["a", "b", "c"]

    def test_nil_head_is_empty(self):
        graph, head = _list_graph([])
        nil = graph.object_node_id(RDF_NIL)
        assert list(RdfListIterator(graph, nil, None, None, nil)) == []

    def test_non_cell_ends_list(self):
        graph, _ = _list_graph(["a"])
        s = graph.subject_id(f"{EX}s")
        it = RdfListIterator(
            graph, s, graph.predicate_id(RDF_FIRST), graph.predicate_id(RDF_REST), None
        )
        assert list(it) == []


class TestArrayIterator:

    def _fields(self, graph):
        return Cursor(graph.triples_s(graph.subject_id(f"{EX}s")))

    def test_yields_values_and_indexes(self):
        b = GraphBuilder()
        b.add_array_cell(f"{EX}s", f"{EX}grid", [0, 1], "a")
        b.add_array_cell(f"{EX}s", f"{EX}grid", [1, 0], "b")
        b.add_value(f"{EX}s", f"{EX}zzz", "after")
        graph = b.build()

        fields = self._fields(graph)
        index_ids = (graph.predicate_id(sys_index(1)), graph.predicate_id(sys_index(2)))
        it = ArrayIterator(graph, fields, index_ids, graph.predicate_id(SYS_VALUE))

        seen = []
        for value_id in it:
            seen.append((it.last_index, graph.id_object_value(value_id).lex))
        assert seen == [([0, 1], "a"), ([1, 0], "b")]

        # the cursor is left on the first field after the array
        rest = fields.peek()
        assert graph.id_object_value(rest.object).lex == "after"

    def test_missing_value_is_a_contract_error(self):
        b = GraphBuilder()
        b.add(f"{EX}s", f"{EX}grid", "_:cell")
        b.add_value("_:cell", sys_index(1), 0)
        b.add_value("_:other", SYS_VALUE, 0)
        graph = b.build()

        it = ArrayIterator(
            graph,
            self._fields(graph),
            (graph.predicate_id(sys_index(1)),),
            graph.predicate_id(SYS_VALUE),
        )
        with pytest.raises(SchemaContractError):
            next(it)

    def test_exhausted_cursor(self):
        graph = GraphBuilder().build()
        with pytest.raises(InternalConsistencyError):
            ArrayIterator(graph, Cursor([]), (), None)
