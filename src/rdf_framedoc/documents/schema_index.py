"""
Schema index: the well-known ids and derived type sets shared by document
materialization and query compilation.

The index is computed once per (schema graph, instance graph) pair. Schema
facts are read from the schema graph and translated into instance ids by
IRI; anything the instance graph never mentions is dropped, since it cannot
occur in a document anyway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Tuple
from urllib.parse import unquote

from rdf_framedoc.documents.arrays import RdfListIterator
from rdf_framedoc.storage.graph import Graph
from rdf_framedoc.storage.prefixes import Prefixes
from rdf_framedoc.storage.vocab import (
    RDF_FIRST,
    RDF_LIST,
    RDF_NIL,
    RDF_REST,
    RDF_TYPE,
    SYS_ARRAY,
    SYS_CARDINALITY,
    SYS_CLASS,
    SYS_ENUM,
    SYS_JSON,
    SYS_JSON_DOCUMENT,
    SYS_SET,
    SYS_SUBDOCUMENT,
    SYS_TAGGED_UNION,
    SYS_UNFOLDABLE,
    SYS_VALUE,
    sys_index,
)

logger = logging.getLogger(__name__)


def decode_enum(iri: str) -> str:
    """Enum value nodes are ``<Enum IRI>/<urlencoded value>``."""
    return unquote(iri.rsplit("/", 1)[-1])


@dataclass(frozen=True)
class SchemaIndex:
    """
    Immutable view of the schema facts the materializer needs, expressed in
    instance graph ids.

    Each well-known id is None when the instance graph does not contain it.
    """
    prefixes: Prefixes = field(default_factory=Prefixes)
    unfold: bool = True
    compress: bool = True
    minimized: bool = False

    rdf_type_id: Optional[int] = None
    rdf_first_id: Optional[int] = None
    rdf_rest_id: Optional[int] = None
    rdf_nil_id: Optional[int] = None
    rdf_list_id: Optional[int] = None
    sys_index_ids: Tuple[int, ...] = ()
    sys_array_id: Optional[int] = None
    sys_value_id: Optional[int] = None
    sys_json_type_id: Optional[int] = None
    sys_json_document_type_id: Optional[int] = None

    types: FrozenSet[int] = frozenset()
    document_types: FrozenSet[int] = frozenset()
    unfoldable_ids: FrozenSet[int] = frozenset()
    enums: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))
    set_pairs: FrozenSet[Tuple[int, int]] = frozenset()

    @classmethod
    def without_instance(
        cls,
        prefixes: Optional[Prefixes] = None,
        unfold: bool = True,
        compress: bool = True,
        minimized: bool = False,
    ) -> "SchemaIndex":
        """An index for a database that has no instance data yet."""
        return cls(
            prefixes=prefixes or Prefixes(),
            unfold=unfold,
            compress=compress,
            minimized=minimized,
        )

    @classmethod
    def build(
        cls,
        schema: Graph,
        instance: Optional[Graph],
        prefixes: Optional[Prefixes] = None,
        unfold: bool = True,
        compress: bool = True,
        minimized: bool = False,
    ) -> "SchemaIndex":
        prefixes = prefixes or Prefixes()
        if not compress and prefixes.compress:
            prefixes = Prefixes(prefixes.base, prefixes.schema, prefixes.extra, compress=False)
        if instance is None:
            return cls.without_instance(prefixes, unfold, compress, minimized)

        sys_index_ids = []
        n = 1
        while True:
            index_id = instance.predicate_id(sys_index(n))
            if index_id is None:
                break
            sys_index_ids.append(index_id)
            n += 1

        schema_type = schema.predicate_id(RDF_TYPE)
        class_names = _subjects_typed(schema, schema_type, SYS_CLASS)
        class_names |= _subjects_typed(schema, schema_type, SYS_TAGGED_UNION)

        subdocument_id = schema.predicate_id(SYS_SUBDOCUMENT)
        unfoldable_id = schema.predicate_id(SYS_UNFOLDABLE)

        types = set()
        document_types = set()
        unfoldable_ids = set()
        for name in class_names:
            type_id = instance.object_node_id(name)
            if type_id is None:
                continue
            types.add(type_id)
            schema_id = schema.subject_id(name)
            if subdocument_id is None or schema.single_triple_sp(schema_id, subdocument_id) is None:
                document_types.add(type_id)
            if unfoldable_id is not None and schema.single_triple_sp(schema_id, unfoldable_id) is not None:
                unfoldable_ids.add(type_id)

        sys_json_type_id = instance.object_node_id(SYS_JSON)
        sys_json_document_type_id = instance.object_node_id(SYS_JSON_DOCUMENT)
        if sys_json_document_type_id is not None:
            document_types.add(sys_json_document_type_id)

        index = cls(
            prefixes=prefixes,
            unfold=unfold,
            compress=compress,
            minimized=minimized,
            rdf_type_id=instance.predicate_id(RDF_TYPE),
            rdf_first_id=instance.predicate_id(RDF_FIRST),
            rdf_rest_id=instance.predicate_id(RDF_REST),
            rdf_nil_id=instance.object_node_id(RDF_NIL),
            rdf_list_id=instance.object_node_id(RDF_LIST),
            sys_index_ids=tuple(sys_index_ids),
            sys_array_id=instance.object_node_id(SYS_ARRAY),
            sys_value_id=instance.predicate_id(SYS_VALUE),
            sys_json_type_id=sys_json_type_id,
            sys_json_document_type_id=sys_json_document_type_id,
            types=frozenset(types),
            document_types=frozenset(document_types),
            unfoldable_ids=frozenset(unfoldable_ids),
            enums=MappingProxyType(_enum_values(schema, instance, schema_type)),
            set_pairs=_set_pairs(schema, instance, schema_type, class_names),
        )
        logger.debug(
            f"Schema index: {len(index.types)} types, {len(index.document_types)} document types, "
            f"{len(index.enums)} enum values, {len(index.set_pairs)} set pairs"
        )
        return index


def _subjects_typed(schema: Graph, schema_type: Optional[int], type_name: str) -> set[str]:
    if schema_type is None:
        return set()
    type_id = schema.object_node_id(type_name)
    if type_id is None:
        return set()
    return {
        schema.id_subject(t.subject)
        for t in schema.triples_o(type_id)
        if t.predicate == schema_type
    }


def _enum_values(schema: Graph, instance: Graph, schema_type: Optional[int]) -> Dict[int, str]:
    enums: Dict[int, str] = {}
    value_id = schema.predicate_id(SYS_VALUE)
    if value_id is None:
        return enums
    first_id = schema.predicate_id(RDF_FIRST)
    rest_id = schema.predicate_id(RDF_REST)
    nil_id = schema.object_node_id(RDF_NIL)
    for enum_name in sorted(_subjects_typed(schema, schema_type, SYS_ENUM)):
        head = schema.single_triple_sp(schema.subject_id(enum_name), value_id)
        if head is None:
            continue
        for member in RdfListIterator(schema, head.object, first_id, rest_id, nil_id):
            member_name = schema.id_object_node(member)
            if member_name is None:
                continue
            instance_id = instance.object_node_id(member_name)
            if instance_id is not None:
                enums[instance_id] = decode_enum(member_name)
    return enums


def _set_pairs(
    schema: Graph,
    instance: Graph,
    schema_type: Optional[int],
    class_names: set[str],
) -> FrozenSet[Tuple[int, int]]:
    if schema_type is None:
        return frozenset()
    multi_valued = {
        type_id
        for type_id in (schema.object_node_id(SYS_SET), schema.object_node_id(SYS_CARDINALITY))
        if type_id is not None
    }
    if not multi_valued:
        return frozenset()

    pairs = set()
    for name in class_names:
        class_id = instance.object_node_id(name)
        if class_id is None:
            continue
        for t in schema.triples_s(schema.subject_id(name)):
            range_type = schema.single_triple_sp(t.object, schema_type)
            if range_type is None or range_type.object not in multi_valued:
                continue
            predicate_id = instance.predicate_id(schema.id_predicate(t.predicate))
            if predicate_id is not None:
                pairs.add((class_id, predicate_id))
    return frozenset(pairs)
