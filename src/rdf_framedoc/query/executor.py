"""
Lazy evaluation of compiled filters over a Graph.

compile_query threads an iterator of candidate ids through the edges of a
FilterObject, each edge wrapping the iterator in a narrower one. Nothing is
read from the graph until the result is consumed, except where a combinator
needs the full candidate set (``Or`` snapshots it, ``Not`` takes a set
difference).

run_query adds seeding (class scan, id/ids lookup, path reachability),
ordering and paging on top. Without an ordering the paged result is taken
straight from the lazy pipeline; only an ordered query materializes and
sorts all candidates.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from itertools import chain, islice
from typing import (
    Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union,
)

from rdf_framedoc.config import QueryConfig
from rdf_framedoc.exceptions import QueryArgumentError
from rdf_framedoc.query.filters import (
    And,
    Collection,
    CollectionOperation,
    EnumFilter,
    EnumOperation,
    FilterObject,
    FilterType,
    NodeFilter,
    Not,
    Or,
    Required,
    TextFilter,
    ValueFilter,
    compile_filter,
    ordering_matches_op,
)
from rdf_framedoc.query.frames import AllFrames
from rdf_framedoc.query.path.compile import path_to_class
from rdf_framedoc.query.path.parser import parse_path
from rdf_framedoc.storage.graph import Graph
from rdf_framedoc.storage.values import (
    BaseTypeKind, Node, ObjectType, TypedValue, compare_scalars, value_to_python, value_to_string,
)
from rdf_framedoc.storage.vocab import RDF_TYPE

logger = logging.getLogger(__name__)

Restrictions = Union[Mapping[str, Callable[[int], bool]], Callable[[str, int], bool]]


def _unique(ids: Iterable[int]) -> Iterator[int]:
    seen = set()
    for i in ids:
        if i not in seen:
            seen.add(i)
            yield i


# =============================================================================
# Scalar tests
# =============================================================================

def _native(kind: BaseTypeKind, value: TypedValue) -> Any:
    """Read a literal as the type a filter of ``kind`` compares; ValueError if ill-typed."""
    lex = value.lex
    if kind in (BaseTypeKind.SMALL_INTEGER, BaseTypeKind.BIG_INTEGER):
        return int(lex)
    if kind == BaseTypeKind.FLOAT:
        return float(lex)
    if kind == BaseTypeKind.DECIMAL:
        try:
            return Decimal(lex)
        except InvalidOperation:
            raise ValueError(f"not a decimal: {lex!r}") from None
    if kind == BaseTypeKind.BOOLEAN:
        if lex in ("true", "1"):
            return True
        if lex in ("false", "0"):
            return False
        raise ValueError(f"not a boolean: {lex!r}")
    return value_to_string(value)


def _value_matches(filter_type: ValueFilter, value: TypedValue) -> bool:
    try:
        native = _native(filter_type.kind, value)
    except ValueError:
        logger.debug(f"Skipping ill-typed value {value.lex!r} for {filter_type.type_name}")
        return False
    if filter_type.kind == BaseTypeKind.DATETIME:
        # newer timestamps sort first, so the operand is on the left
        ordering = compare_scalars(filter_type.operand, native)
    else:
        ordering = compare_scalars(native, filter_type.operand)
    return ordering_matches_op(ordering, filter_type.op)


def object_type_filter(graph: Graph, filter_type: FilterType, objects: Iterable[int]) -> Iterator[int]:
    """Keep the object ids whose value satisfies a scalar filter."""
    if isinstance(filter_type, EnumFilter):
        target = graph.object_node_id(filter_type.value)
        if target is None:
            if filter_type.op == EnumOperation.EQ:
                return iter(())
            return iter(objects)
        if filter_type.op == EnumOperation.EQ:
            return (o for o in objects if o == target)
        return (o for o in objects if o != target)

    def matching() -> Iterator[int]:
        for o in objects:
            value = graph.id_object_value(o)
            if value is None:
                continue
            if isinstance(filter_type, TextFilter):
                if filter_type.op.matches(value_to_string(value)):
                    yield o
            elif _value_matches(filter_type, value):
                yield o

    return matching()


# =============================================================================
# Filter pipeline
# =============================================================================

def _restriction_check(restrictions: Optional[Restrictions], name: str) -> Callable[[int], bool]:
    if restrictions is None:
        raise QueryArgumentError(f"No restriction named {name!r} is available")
    if isinstance(restrictions, Mapping):
        check = restrictions.get(name)
        if check is None:
            raise QueryArgumentError(f"No restriction named {name!r} is available")
        return check
    return lambda i: bool(restrictions(name, i))


def _matches_object(
    graph: Graph,
    object_type,
    objects: Sequence[int],
    restrictions: Optional[Restrictions],
) -> Iterator[int]:
    if isinstance(object_type, NodeFilter):
        return compile_query(graph, object_type.filter, objects, restrictions)
    return object_type_filter(graph, object_type, objects)


def _required(graph, candidates, property_id, object_type, restrictions) -> Iterator[int]:
    for subject in candidates:
        t = graph.single_triple_sp(subject, property_id)
        if t is None:
            continue
        if next(_matches_object(graph, object_type, [t.object], restrictions), None) is not None:
            yield subject


def _some_have(graph, candidates, property_id, object_type, restrictions) -> Iterator[int]:
    for subject in candidates:
        objects = [t.object for t in graph.triples_sp(subject, property_id)]
        if next(_matches_object(graph, object_type, objects, restrictions), None) is not None:
            yield subject


def _all_have(graph, candidates, property_id, object_type, restrictions) -> Iterator[int]:
    for subject in candidates:
        objects = [t.object for t in graph.triples_sp(subject, property_id)]
        passing = set(_matches_object(graph, object_type, objects, restrictions))
        # vacuously true when there are no values
        if all(o in passing for o in objects):
            yield subject


def _restricted(candidates: Iterable[int], check: Callable[[int], bool]) -> Iterator[int]:
    for i in candidates:
        if check(i):
            yield i


def compile_query(
    graph: Graph,
    filter: FilterObject,
    candidates: Iterable[int],
    restrictions: Optional[Restrictions] = None,
) -> Iterator[int]:
    """Narrow ``candidates`` to the ids satisfying ``filter``."""
    it: Iterable[int] = candidates
    if filter.restriction is not None:
        it = _restricted(it, _restriction_check(restrictions, filter.restriction))

    for predicate, value in filter.edges:
        if isinstance(value, And):
            for sub_filter in value.filters:
                it = compile_query(graph, sub_filter, it, restrictions)
        elif isinstance(value, Or):
            snapshot = list(it)
            it = chain.from_iterable(
                compile_query(graph, sub_filter, snapshot, restrictions)
                for sub_filter in value.filters
            )
        elif isinstance(value, Not):
            initial = list(_unique(it))
            passing = set(compile_query(graph, value.filter, initial, restrictions))
            it = [i for i in initial if i not in passing]
        else:
            property_id = graph.predicate_id(predicate)
            if property_id is None:
                # no entity has a value, so only allHave can hold
                if isinstance(value, Collection) and value.op == CollectionOperation.ALL_HAVE:
                    continue
                logger.debug(f"Predicate {predicate} does not occur in the graph; no results")
                return iter(())
            if isinstance(value, Required):
                it = _required(graph, it, property_id, value.object_type, restrictions)
            elif value.op == CollectionOperation.SOME_HAVE:
                it = _some_have(graph, it, property_id, value.object_type, restrictions)
            else:
                it = _all_have(graph, it, property_id, value.object_type, restrictions)
    return iter(it)


# =============================================================================
# Seeding
# =============================================================================

def _object_id(graph: Graph, obj: ObjectType) -> Optional[int]:
    if isinstance(obj, Node):
        return graph.object_node_id(obj.name)
    return graph.object_value_id(obj)


def predicate_value_iter(graph: Graph, prop: str, obj: ObjectType) -> Iterator[int]:
    """Subjects with ``prop`` pointing at ``obj``."""
    property_id = graph.predicate_id(prop)
    object_id = _object_id(graph, obj)
    if property_id is None or object_id is None:
        return iter(())
    return (t.subject for t in graph.triples_o(object_id) if t.predicate == property_id)


def predicate_value_filter(graph: Graph, prop: str, obj: ObjectType, candidates: Iterable[int]) -> Iterator[int]:
    """Candidates with ``prop`` pointing at ``obj``."""
    property_id = graph.predicate_id(prop)
    object_id = _object_id(graph, obj)
    if property_id is None or object_id is None:
        return iter(())
    return (s for s in candidates if graph.triple_exists(s, property_id, object_id))


def generate_initial_iterator(graph: Graph, all_frames: AllFrames, class_name: str) -> Iterator[int]:
    """All instances of ``class_name`` and its subclasses."""
    return chain.from_iterable(
        predicate_value_iter(graph, RDF_TYPE, Node(all_frames.fully_qualified_class_name(c)))
        for c in all_frames.subsumed(class_name)
    )


# =============================================================================
# Ordering
# =============================================================================

@total_ordering
class QueryOrderKey:
    """
    Sort key over ``(value, descending)`` pairs, one per ordering field.

    Fields compare in order, each in its own direction; the first unequal
    field decides. A missing value sorts after any present value in both
    directions.
    """

    __slots__ = ("values",)

    def __init__(self, values: Sequence[Tuple[Any, bool]]):
        self.values = tuple(values)

    def _compare(self, other: "QueryOrderKey") -> int:
        for (value, descending), (other_value, _) in zip(self.values, other.values):
            if value is None and other_value is None:
                continue
            if value is None:
                return 1
            if other_value is None:
                return -1
            res = compare_scalars(value, other_value)
            if descending:
                res = -res
            if res:
                return res
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryOrderKey):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: "QueryOrderKey") -> bool:
        return self._compare(other) < 0

    def __repr__(self) -> str:
        return f"QueryOrderKey({list(self.values)!r})"


def _order_fields(order_by) -> List[Tuple[str, bool]]:
    items = order_by.items() if isinstance(order_by, Mapping) else order_by
    fields = []
    for name, direction in items:
        direction = str(direction).lower()
        if direction not in ("asc", "desc"):
            raise QueryArgumentError(f"Unknown ordering direction {direction!r} for {name}")
        fields.append((name, direction == "desc"))
    return fields


def create_query_order_key(
    graph: Graph,
    entity_id: int,
    fields: Sequence[Tuple[Optional[int], bool]],
) -> QueryOrderKey:
    values = []
    for predicate_id, descending in fields:
        t = graph.single_triple_sp(entity_id, predicate_id)
        value = None
        if t is not None:
            obj = graph.id_object(t.object)
            if isinstance(obj, TypedValue):
                value = value_to_python(obj)
            elif obj is not None:
                value = obj.name
        values.append((value, descending))
    return QueryOrderKey(values)


# =============================================================================
# Entry point
# =============================================================================

def run_query(
    graph: Graph,
    all_frames: AllFrames,
    class_name: str,
    filter: Union[FilterObject, Dict[str, Any], None] = None,
    seed: Optional[Iterable[int]] = None,
    id: Optional[str] = None,
    ids: Optional[Sequence[str]] = None,
    path: Optional[str] = None,
    order_by=None,
    offset: int = 0,
    limit: Optional[int] = None,
    restrictions: Optional[Restrictions] = None,
    config: Optional[QueryConfig] = None,
) -> List[int]:
    """
    Ids of ``class_name`` instances matching a filter, ordered and paged.

    Args:
        filter: compiled FilterObject or raw filter input
        seed: candidate ids to start from instead of a class scan
        id, ids: restrict candidates to known instance ids (mutually exclusive)
        path: path expression applied to the seed
        order_by: ``[(field, "asc"|"desc"), ...]`` or ``{field: direction}``
        restrictions: named predicates for ``_restriction``

    Raises:
        QueryArgumentError: For inconsistent arguments
        FilterCompileError: If a raw filter does not compile
        PathParseError: If ``path`` does not parse

    Both compile errors are raised before any candidate is read.
    """
    config = config or QueryConfig()
    prefixes = all_frames.context

    if id is not None and ids is not None:
        raise QueryArgumentError("You must not specify 'id' and 'ids' simultaneously")
    if offset < 0 or (limit is not None and limit < 0):
        raise QueryArgumentError(f"offset and limit must not be negative ({offset}, {limit})")
    if path is not None and seed is None and id is None and ids is None:
        raise QueryArgumentError("We need some starting id for our path")

    # input errors surface before the seed or the graph is touched
    if isinstance(filter, dict):
        filter = compile_filter(all_frames, class_name, filter)
    parsed_path = parse_path(path) if path is not None else None

    if id is not None or ids is not None:
        wanted = [id] if id is not None else list(ids)
        wanted_ids = [
            i for i in (graph.subject_id(prefixes.expand(name)) for name in wanted)
            if i is not None
        ]
        if seed is None:
            class_node = Node(all_frames.fully_qualified_class_name(class_name))
            seed = predicate_value_filter(graph, RDF_TYPE, class_node, wanted_ids)
        else:
            wanted_set = set(wanted_ids)
            seed = (i for i in seed if i in wanted_set)

    if parsed_path is not None:
        seed = path_to_class(parsed_path, graph, all_frames, class_name, seed)

    candidates = seed if seed is not None else generate_initial_iterator(graph, all_frames, class_name)
    if filter is not None:
        candidates = compile_query(graph, filter, candidates, restrictions)

    limit = config.effective_limit(limit)
    if order_by:
        order_fields = []
        for name, descending in _order_fields(order_by):
            predicate_id = graph.predicate_id(prefixes.expand_schema(name))
            if predicate_id is None:
                logger.warning(f"Ordering field {name!r} does not occur in the graph; ignored")
                continue
            order_fields.append((predicate_id, descending))
        results = list(_unique(candidates))
        logger.debug(f"Sorting {len(results)} candidates of {class_name} on {len(order_fields)} fields")
        keys = {i: create_query_order_key(graph, i, order_fields) for i in results}
        results.sort(key=keys.__getitem__)
        paged: Iterable[int] = results[offset:]
    else:
        if config.dedupe_unordered:
            candidates = _unique(candidates)
        paged = islice(candidates, offset, None)

    if limit is not None:
        paged = islice(paged, limit)
    return list(paged)
