"""
Evaluation of path expressions over a Graph.

compile_path turns a Path AST into a function from candidate ids to the ids
reachable from them. Repetitions are evaluated breadth first with a visited
set, so cycles terminate.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, List, Optional, Union

from rdf_framedoc.query.frames import AllFrames
from rdf_framedoc.query.path.ast import (
    AnyPred, Choice, Negative, Path, Plus, Positive, Pred, Seq, Star, Times,
)
from rdf_framedoc.query.path.parser import parse_path
from rdf_framedoc.storage.graph import Graph
from rdf_framedoc.storage.prefixes import Prefixes
from rdf_framedoc.storage.vocab import RDF_TYPE

logger = logging.getLogger(__name__)

Step = Callable[[Iterable[int]], Iterator[int]]


def _unique(ids: Iterable[int]) -> Iterator[int]:
    seen = set()
    for i in ids:
        if i not in seen:
            seen.add(i)
            yield i


def _predicate(graph: Graph, prefixes: Prefixes, pred: Pred) -> Optional[int]:
    return graph.predicate_id(prefixes.expand_schema(pred.name))


def _forward(graph: Graph, prefixes: Prefixes, pred: Pred) -> Step:
    if isinstance(pred, AnyPred):
        def step(ids: Iterable[int]) -> Iterator[int]:
            for i in ids:
                for t in graph.triples_s(i):
                    yield t.object
        return step

    predicate_id = _predicate(graph, prefixes, pred)

    def step(ids: Iterable[int]) -> Iterator[int]:
        if predicate_id is None:
            return
        for i in ids:
            for t in graph.triples_sp(i, predicate_id):
                yield t.object
    return step


def _backward(graph: Graph, prefixes: Prefixes, pred: Pred) -> Step:
    predicate_id = None if isinstance(pred, AnyPred) else _predicate(graph, prefixes, pred)
    if predicate_id is None and not isinstance(pred, AnyPred):
        return lambda ids: iter(())

    def step(ids: Iterable[int]) -> Iterator[int]:
        for i in ids:
            for t in graph.triples_o(i):
                if predicate_id is None or t.predicate == predicate_id:
                    yield t.subject
    return step


def _closure(step: Step, include_start: bool) -> Step:
    def run(ids: Iterable[int]) -> Iterator[int]:
        start = list(_unique(ids))
        visited = set()
        if include_start:
            visited.update(start)
            yield from start
        frontier = start
        while frontier:
            next_frontier = []
            for i in step(frontier):
                if i not in visited:
                    visited.add(i)
                    next_frontier.append(i)
                    yield i
            frontier = next_frontier
    return run


def _times(step: Step, low: int, high: int) -> Step:
    def run(ids: Iterable[int]) -> Iterator[int]:
        level = list(_unique(ids))
        emitted = set()
        for depth in range(high + 1):
            if depth > 0:
                level = list(_unique(step(level)))
            if not level:
                return
            if depth >= low:
                for i in level:
                    if i not in emitted:
                        emitted.add(i)
                        yield i
    return run


def compile_path(path: Path, graph: Graph, prefixes: Prefixes) -> Step:
    """Build the reachability function for ``path`` over ``graph``."""
    if isinstance(path, Positive):
        return _forward(graph, prefixes, path.pred)
    if isinstance(path, Negative):
        return _backward(graph, prefixes, path.pred)
    if isinstance(path, Seq):
        steps = [compile_path(p, graph, prefixes) for p in path.paths]

        def run_seq(ids: Iterable[int]) -> Iterator[int]:
            for step in steps:
                ids = step(ids)
            return iter(ids)
        return run_seq
    if isinstance(path, Choice):
        steps = [compile_path(p, graph, prefixes) for p in path.paths]

        def run_choice(ids: Iterable[int]) -> Iterator[int]:
            snapshot: List[int] = list(ids)
            for step in steps:
                yield from step(snapshot)
        return run_choice
    if isinstance(path, Plus):
        return _closure(compile_path(path.path, graph, prefixes), include_start=False)
    if isinstance(path, Star):
        return _closure(compile_path(path.path, graph, prefixes), include_start=True)
    if isinstance(path, Times):
        return _times(compile_path(path.path, graph, prefixes), path.min, path.max)
    raise TypeError(f"Unknown path node {path!r}")


def path_to_class(
    path: Union[str, Path],
    graph: Graph,
    all_frames: AllFrames,
    class_name: str,
    seed: Iterable[int],
) -> Iterator[int]:
    """
    Ids reachable from ``seed`` along ``path`` (text or parsed) whose rdf:type is
    ``class_name`` or one of its subclasses. Each id is produced once.
    """
    if isinstance(path, str):
        path = parse_path(path)
    reach = compile_path(path, graph, all_frames.context)

    rdf_type_id = graph.predicate_id(RDF_TYPE)
    type_ids = {
        type_id
        for type_id in (
            graph.object_node_id(all_frames.fully_qualified_class_name(c))
            for c in all_frames.subsumed(class_name)
        )
        if type_id is not None
    }
    logger.debug(f"Path {path} to {class_name}: {len(type_ids)} candidate types")
    if rdf_type_id is None or not type_ids:
        return iter(())

    return (
        i for i in _unique(reach(seed))
        if any(graph.triple_exists(i, rdf_type_id, t) for t in type_ids)
    )
