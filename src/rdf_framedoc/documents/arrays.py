"""
Reconstruction of ordered collections from their triple encodings.

Two encodings are supported:

- RDF lists: a chain of cons cells linked by ``rdf:first``/``rdf:rest``
  and terminated by ``rdf:nil``.
- Indexed arrays: one cell per element, each cell carrying one index
  predicate per dimension (``sys:index``, ``sys:index2``, ... stored least
  significant first) and a ``sys:value`` link to the element.

collect_array folds the flat (index vector, value) pairs of an indexed array
back into nested lists, padding unseen positions with None.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Iterator, Optional, Sequence, TypeVar

from rdf_framedoc.exceptions import InternalConsistencyError, SchemaContractError
from rdf_framedoc.storage.graph import Graph, IdTriple
from rdf_framedoc.storage.values import value_to_usize

T = TypeVar("T")

_NOTHING = object()


class Cursor(Generic[T]):
    """An iterator that can look at its next item without consuming it."""

    __slots__ = ("_it", "_head")

    def __init__(self, iterable: Iterable[T]):
        self._it = iter(iterable)
        self._head: Any = _NOTHING

    def peek(self) -> Optional[T]:
        """Return the next item, or None when exhausted."""
        if self._head is _NOTHING:
            self._head = next(self._it, _NOTHING)
        return None if self._head is _NOTHING else self._head

    def __iter__(self) -> "Cursor[T]":
        return self

    def __next__(self) -> T:
        if self._head is not _NOTHING:
            head, self._head = self._head, _NOTHING
            return head
        return next(self._it)


class RdfListIterator:
    """Iterates the element ids of an RDF list starting at cons cell ``head``."""

    def __init__(
        self,
        graph: Graph,
        head: int,
        rdf_first_id: Optional[int],
        rdf_rest_id: Optional[int],
        rdf_nil_id: Optional[int],
    ):
        self._graph = graph
        self._cur: Optional[int] = head
        self._rdf_first_id = rdf_first_id
        self._rdf_rest_id = rdf_rest_id
        self._rdf_nil_id = rdf_nil_id

    def __iter__(self) -> "RdfListIterator":
        return self

    def __next__(self) -> int:
        cur = self._cur
        if cur is None or cur == self._rdf_nil_id or self._rdf_first_id is None:
            raise StopIteration
        first = self._graph.single_triple_sp(cur, self._rdf_first_id)
        if first is None:
            # Not a cons cell: the list ends here
            self._cur = None
            raise StopIteration
        rest = None
        if self._rdf_rest_id is not None:
            rest = self._graph.single_triple_sp(cur, self._rdf_rest_id)
        self._cur = rest.object if rest is not None else None
        return first.object


class ArrayIterator:
    """
    Consumes the array cells of one (subject, predicate) run from a document's
    field cursor, yielding element value ids.

    After each step ``last_index`` holds the index vector of the element
    just returned, most significant dimension first.
    """

    def __init__(
        self,
        graph: Graph,
        fields: Cursor[IdTriple],
        index_ids: Sequence[int],
        value_id: Optional[int],
    ):
        head = fields.peek()
        if head is None:
            raise InternalConsistencyError("array iterator created on an exhausted field cursor")
        self.graph = graph
        self.fields = fields
        self.subject = head.subject
        self.predicate = head.predicate
        self.last_index: Optional[list[int]] = None
        self._index_ids = index_ids
        self._value_id = value_id

    def __iter__(self) -> "ArrayIterator":
        return self

    def __next__(self) -> int:
        t = self.fields.peek()
        if t is None or t.subject != self.subject or t.predicate != self.predicate:
            raise StopIteration

        indexes = []
        for index_id in self._index_ids:
            index_triple = self.graph.single_triple_sp(t.object, index_id)
            if index_triple is None:
                break
            index_value = self.graph.id_object_value(index_triple.object)
            if index_value is None:
                raise SchemaContractError(f"array index of cell {t.object} is not a value")
            indexes.append(value_to_usize(index_value))
        indexes.reverse()

        value_triple = None
        if self._value_id is not None:
            value_triple = self.graph.single_triple_sp(t.object, self._value_id)
        if value_triple is None:
            raise SchemaContractError(f"expected value property on array element {t.object}")

        # The cell is complete, so the field cursor may move on
        next(self.fields)
        self.last_index = indexes
        return value_triple.object


def collect_array(elements: list[tuple[Sequence[int], Any]]) -> list:
    """
    Fold (index vector, value) pairs into nested lists.

    Pairs are sorted by index vector, then walked while keeping one
    accumulator per dimension. When an index jumps ahead, finished deeper
    accumulators are pushed into their parent and the current dimension is
    padded with None up to the new index. Trailing accumulators are folded
    upwards at the end.

    Example:
        >>> collect_array([([3], True), ([4], False)])
        [None, None, None, True, False]
    """
    if not elements:
        return []
    elements = sorted(elements, key=lambda element: list(element[0]))

    dimensions = len(elements[0][0])
    collect: list[list] = [[] for _ in range(dimensions)]

    for index, value in elements:
        if len(index) != dimensions:
            raise InternalConsistencyError(
                f"array element did not have expected amount of dimensions: "
                f"{len(index)} != {dimensions}"
            )

        for d in range(dimensions):
            if len(collect[d]) < index[d]:
                # less significant dimensions are complete; gather them up
                for n in range(dimensions - 1, d, -1):
                    if collect[n]:
                        collect[n - 1].append(collect[n])
                        collect[n] = []
                # pad to the expected index; the gather may already have advanced by one
                collect[d].extend([None] * (index[d] - len(collect[d])))

        collect[dimensions - 1].append(value)

    for d in range(dimensions - 2, -1, -1):
        finished = collect.pop()
        if finished:
            collect[d].append(finished)

    return collect.pop()


def flatten_array(array: list, dimensions: int) -> Iterator[tuple[list[int], Any]]:
    """
    Inverse of collect_array: yield (index vector, value) for every non-None
    leaf of a ``dimensions``-deep nested list.
    """
    def walk(node: list, prefix: list[int], depth: int) -> Iterator[tuple[list[int], Any]]:
        for i, item in enumerate(node):
            if item is None:
                continue
            if depth == dimensions:
                yield prefix + [i], item
            else:
                yield from walk(item, prefix + [i], depth + 1)

    return walk(array, [], 1)
