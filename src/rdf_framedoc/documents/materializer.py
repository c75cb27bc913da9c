"""
Document materialization.

Turns the triples reachable from an entity into a nested document: a dict
keyed by contracted property names, with sub-documents, RDF lists and
indexed arrays rebuilt in place.

The traversal uses an explicit stack of frames instead of recursion, so the
depth of the graph never maps onto the Python call stack. Each frame owns a
cursor; a frame is popped only when its cursor is exhausted, at which point
its finished value is integrated into the frame below.

Referenced entities of a document type terminate as a string reference
unless the type is unfoldable. The root of a call is always expanded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from rdf_framedoc.config import MaterializerConfig
from rdf_framedoc.documents.arrays import ArrayIterator, Cursor, RdfListIterator, collect_array
from rdf_framedoc.documents.parallel import materialize_all_parallel
from rdf_framedoc.documents.schema_index import SchemaIndex
from rdf_framedoc.exceptions import InternalConsistencyError, SchemaContractError
from rdf_framedoc.storage.graph import Graph, IdTriple
from rdf_framedoc.storage.values import TypedValue, value_to_python

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def add_field(doc: Document, key: str, value: Any, is_set: bool) -> None:
    """
    Add a property value to a document.

    The first occurrence stores the bare value, a second one turns the
    entry into a list. Multi-valued properties are always lists.
    """
    existing = doc.get(key)
    if key not in doc:
        doc[key] = [value] if is_set else value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        doc[key] = [existing, value]


# =============================================================================
# Stack frames
# =============================================================================

class StackEntry:
    """A partially built value on the materializer stack."""

    json: bool = False

    def peek(self) -> Optional[int]:
        """Object id of the next pending element, or None when exhausted."""
        raise NotImplementedError

    def integrate_value(self, materializer: "DocumentMaterializer", value: Any) -> None:
        """Consume the pending element, storing its finished value."""
        raise NotImplementedError

    def integrate(self, materializer: "DocumentMaterializer", child: "StackEntry") -> None:
        """Consume the pending element using a finished child frame."""
        if isinstance(child, ArrayEntry):
            raise InternalConsistencyError(f"array frame cannot be integrated into {type(self).__name__}")
        self.integrate_value(materializer, child.into_value())

    def into_value(self) -> Any:
        raise NotImplementedError


@dataclass
class DocumentEntry(StackEntry):
    doc: Document
    type_id: Optional[int]
    fields: Optional[Cursor[IdTriple]]
    json: bool = False

    def peek(self) -> Optional[int]:
        if self.fields is None:
            raise InternalConsistencyError("document fields are owned by an array frame")
        t = self.fields.peek()
        return None if t is None else t.object

    def integrate_value(self, materializer: "DocumentMaterializer", value: Any) -> None:
        t = next(self.fields)
        is_set = self.type_id is not None and (self.type_id, t.predicate) in materializer.index.set_pairs
        add_field(self.doc, materializer.property_name(t.predicate), value, is_set)

    def integrate(self, materializer: "DocumentMaterializer", child: StackEntry) -> None:
        if isinstance(child, ArrayEntry):
            # hand the field cursor back, past the array cells
            self.fields = child.entries.fields
            key = materializer.property_name(child.entries.predicate)
            add_field(self.doc, key, collect_array(child.collect), False)
        else:
            super().integrate(materializer, child)

    def into_value(self) -> Document:
        return self.doc


@dataclass
class ListEntry(StackEntry):
    entries: Cursor[int]
    collect: List[Any] = field(default_factory=list)
    json: bool = False

    def peek(self) -> Optional[int]:
        return self.entries.peek()

    def integrate_value(self, materializer: "DocumentMaterializer", value: Any) -> None:
        next(self.entries)
        self.collect.append(value)

    def into_value(self) -> List[Any]:
        return self.collect


@dataclass
class ArrayEntry(StackEntry):
    entries: ArrayIterator
    collect: List[Tuple[List[int], Any]] = field(default_factory=list)

    def peek(self) -> Optional[int]:
        # advances: the array iterator has already consumed the cell
        return next(self.entries, None)

    def integrate_value(self, materializer: "DocumentMaterializer", value: Any) -> None:
        index = self.entries.last_index
        if index is None:
            raise InternalConsistencyError("array value integrated without a pending index")
        self.entries.last_index = None
        self.collect.append((index, value))

    def into_value(self) -> Any:
        raise InternalConsistencyError("array frames are only integrated into documents")


# =============================================================================
# Materializer
# =============================================================================

class DocumentMaterializer:
    """
    Builds documents from an instance graph.

    Example:
        index = SchemaIndex.build(schema, instance, prefixes)
        materializer = DocumentMaterializer(instance, index)
        doc = materializer.get_document("Person/alice")
    """

    def __init__(
        self,
        graph: Graph,
        index: SchemaIndex,
        config: Optional[MaterializerConfig] = None,
    ):
        self.graph = graph
        self.index = index
        self.config = config or MaterializerConfig(
            compress=index.compress, unfold=index.unfold, minimized=index.minimized
        )

    @property
    def prefixes(self):
        return self.index.prefixes

    def property_name(self, predicate_id: int) -> str:
        name = self.graph.id_predicate(predicate_id)
        if name is None:
            raise SchemaContractError(f"unknown predicate id {predicate_id}")
        return self.prefixes.schema_contract(name)

    # -------------------------------------------------------------------------
    # Stubs and fields
    # -------------------------------------------------------------------------

    def _get_doc_stub(self, entity_id: int, terminate: bool) -> Union[StackEntry, Any]:
        index = self.index
        obj = self.graph.id_object(entity_id)
        if obj is None:
            raise SchemaContractError(f"unknown entity id {entity_id}")
        if isinstance(obj, TypedValue):
            return value_to_python(obj)

        contracted = self.prefixes.instance_contract(obj.name)
        type_id = None
        type_name = None
        json = False
        if index.rdf_type_id is not None:
            t = self.graph.single_triple_sp(entity_id, index.rdf_type_id)
            if t is not None:
                if terminate and (
                    not index.unfold
                    or (t.object in index.document_types and t.object not in index.unfoldable_ids)
                ):
                    return contracted
                type_id = t.object
                json = type_id is not None and type_id in (
                    index.sys_json_type_id, index.sys_json_document_type_id
                )
                if not json:
                    type_iri = self.graph.id_object_node(type_id)
                    if type_iri is None:
                        raise SchemaContractError(f"type of {obj.name} is not a node")
                    type_name = self.prefixes.schema_contract(type_iri)

        fields = Cursor(
            t for t in self.graph.triples_s(entity_id)
            if t.predicate != index.rdf_type_id
        )
        if type_id is None and fields.peek() is None:
            return contracted

        doc: Document = {}
        if type_id is None or type_id != index.sys_json_type_id:
            doc["@id"] = contracted
        if type_name is not None:
            doc["@type"] = type_name
        return DocumentEntry(doc=doc, type_id=type_id, fields=fields, json=json)

    def _get_field(self, object_id: int) -> Union[StackEntry, Any]:
        enum_value = self.index.enums.get(object_id)
        if enum_value is not None:
            return enum_value
        if object_id == self.index.rdf_nil_id:
            return []
        return self._get_doc_stub(object_id, terminate=True)

    def _collection_frame(self, top: StackEntry, object_id: int) -> Optional[StackEntry]:
        """A List or Array frame if the pending object heads one, else None."""
        index = self.index
        if not (top.json or isinstance(top, DocumentEntry)) or index.rdf_type_id is None:
            return None
        t = self.graph.single_triple_sp(object_id, index.rdf_type_id)
        if t is None:
            return None
        if (
            index.sys_array_id is not None
            and t.object == index.sys_array_id
            and isinstance(top, DocumentEntry)
        ):
            # the array iterator borrows the document's field cursor until it is done
            fields = top.fields
            top.fields = None
            return ArrayEntry(
                entries=ArrayIterator(self.graph, fields, index.sys_index_ids, index.sys_value_id)
            )
        if index.rdf_list_id is not None and t.object == index.rdf_list_id:
            cells = RdfListIterator(
                self.graph, object_id, index.rdf_first_id, index.rdf_rest_id, index.rdf_nil_id
            )
            return ListEntry(entries=Cursor(cells), json=top.json)
        return None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def _run(self, root: StackEntry) -> Any:
        stack: List[StackEntry] = [root]
        while True:
            top = stack[-1]
            object_id = top.peek()
            if object_id is not None:
                frame = self._collection_frame(top, object_id)
                if frame is not None:
                    stack.append(frame)
                    continue
                result = self._get_field(object_id)
                if isinstance(result, StackEntry):
                    stack.append(result)
                else:
                    top.integrate_value(self, result)
                continue

            finished = stack.pop()
            if not stack:
                return finished.into_value()
            stack[-1].integrate(self, finished)

    def materialize(self, entity_id: int) -> Any:
        """
        Build the document rooted at an entity.

        Returns a dict, or a scalar when the id is a literal value or an
        untyped node without properties (rendered as its contracted name).
        """
        stub = self._get_doc_stub(entity_id, terminate=False)
        if not isinstance(stub, StackEntry):
            return stub
        return self._run(stub)

    def get_id_document(self, entity_id: int) -> Document:
        result = self.materialize(entity_id)
        if not isinstance(result, dict):
            raise SchemaContractError(f"entity {entity_id} is not a document")
        return result

    def get_document(self, iri: str) -> Optional[Document]:
        """Document for an instance IRI or name, None if it is not a subject."""
        entity_id = self.graph.subject_id(self.prefixes.expand(iri))
        if entity_id is None:
            return None
        return self.get_id_document(entity_id)

    def _type_ids(self, type_filter: Optional[Iterable[str]]) -> List[int]:
        candidates = self.index.document_types if self.index.unfold else self.index.types
        if type_filter is not None:
            wanted = set()
            for name in type_filter:
                type_id = self.graph.object_node_id(self.prefixes.expand_schema(name))
                if type_id is not None:
                    wanted.add(type_id)
            candidates = candidates & wanted
        return sorted(candidates)

    def document_ids(
        self,
        type_filter: Optional[Iterable[str]] = None,
        skip: int = 0,
        count: Optional[int] = None,
    ) -> Iterator[int]:
        """Ids of all documents of the selected types, by type then id."""
        rdf_type_id = self.index.rdf_type_id
        if rdf_type_id is None:
            return iter(())

        def ids() -> Iterator[int]:
            for type_id in self._type_ids(type_filter):
                for t in self.graph.triples_o(type_id):
                    if t.predicate == rdf_type_id:
                        yield t.subject

        stop = None if count is None else skip + count
        return islice(ids(), skip, stop)

    def materialize_all(
        self,
        type_filter: Optional[Iterable[str]] = None,
        skip: int = 0,
        count: Optional[int] = None,
    ) -> Iterator[Document]:
        for entity_id in self.document_ids(type_filter, skip, count):
            yield self.get_id_document(entity_id)

    def materialize_all_parallel(
        self,
        type_filter: Optional[Iterable[str]] = None,
        skip: int = 0,
        count: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> Iterator[Document]:
        """Like materialize_all, fanned out over a thread pool; output order is unchanged."""
        return materialize_all_parallel(self, type_filter, skip, count, workers)
