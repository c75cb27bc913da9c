"""
Tests for SchemaIndex construction.
"""

import pytest

from rdf_framedoc.documents import SchemaIndex, decode_enum
from rdf_framedoc.storage.vocab import (
    RDF_LIST,
    RDF_NIL,
    RDF_TYPE,
    SYS_ARRAY,
    SYS_JSON,
    SYS_JSON_DOCUMENT,
    SYS_VALUE,
    sys_index,
)

from conftest import D, S


class TestDecodeEnum:

    def test_plain(self):
        assert decode_enum(S("Colour/red")) == "red"

    def test_url_encoded(self):
        assert decode_enum(S("Colour/light%20blue")) == "light blue"


class TestSchemaIndex:
    """Ids and type sets derived from the fixture schema."""

    def test_well_known_ids(self, schema_index, instance_graph):
        g = instance_graph
        assert schema_index.rdf_type_id == g.predicate_id(RDF_TYPE)
        assert schema_index.rdf_list_id == g.object_node_id(RDF_LIST)
        assert schema_index.rdf_nil_id == g.object_node_id(RDF_NIL)
        assert schema_index.sys_array_id == g.object_node_id(SYS_ARRAY)
        assert schema_index.sys_value_id == g.predicate_id(SYS_VALUE)
        assert schema_index.sys_index_ids == (g.predicate_id(sys_index(1)),)
        assert schema_index.sys_json_type_id == g.object_node_id(SYS_JSON)
        assert schema_index.sys_json_document_type_id == g.object_node_id(SYS_JSON_DOCUMENT)

    def test_document_types(self, schema_index, instance_graph):
        g = instance_graph
        person = g.object_node_id(S("Person"))
        address = g.object_node_id(S("Address"))
        pet = g.object_node_id(S("Pet"))

        assert person in schema_index.types
        assert address in schema_index.types
        assert person in schema_index.document_types
        assert address not in schema_index.document_types
        assert g.object_node_id(SYS_JSON_DOCUMENT) in schema_index.document_types
        assert schema_index.unfoldable_ids == frozenset({pet})

    def test_enums(self, schema_index, instance_graph):
        g = instance_graph
        # green is never used by an instance, so it has no instance id
        assert schema_index.enums == {
            g.object_node_id(S("Colour/red")): "red",
            g.object_node_id(S("Colour/light%20blue")): "light blue",
        }

    def test_enums_are_read_only(self, schema_index):
        with pytest.raises(TypeError):
            schema_index.enums[0] = "purple"
        with pytest.raises(TypeError):
            SchemaIndex.without_instance().enums[0] = "purple"

    def test_set_pairs(self, schema_index, instance_graph):
        g = instance_graph
        person = g.object_node_id(S("Person"))
        assert schema_index.set_pairs == frozenset({(person, g.predicate_id(S("friend")))})

    def test_options(self, schema_graph, instance_graph, prefixes):
        index = SchemaIndex.build(
            schema_graph, instance_graph, prefixes, unfold=False, compress=False, minimized=True
        )
        assert not index.unfold
        assert index.minimized
        assert not index.prefixes.compress
        assert index.prefixes.instance_contract(D("Person/alice")) == D("Person/alice")

    def test_without_instance(self, schema_graph, prefixes):
        index = SchemaIndex.build(schema_graph, None, prefixes)
        assert index.rdf_type_id is None
        assert index.types == frozenset()
        assert index.enums == {}
