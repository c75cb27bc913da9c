"""
Shared fixtures: a small schema graph, an instance graph and the matching
type frames.

Instances:
    Person/alice  name Alice, age 30, born 2000, friend bob, address a1,
                  colour red, pet rex, scores [1, 2, 3], tags ["x", "y"]
    Person/bob    name Bob, age 25, born 1990, friends alice and carol
    Person/carol  name Carol, colour "light blue"
    Student/dave  name Dave, age 20
"""

import pytest

from rdf_framedoc.documents import DocumentMaterializer, SchemaIndex
from rdf_framedoc.query import AllFrames
from rdf_framedoc.storage import GraphBuilder, Node, Prefixes, TypedValue
from rdf_framedoc.storage.vocab import (
    RDF_NIL,
    RDF_TYPE,
    SYS_CLASS,
    SYS_ENUM,
    SYS_INHERITS,
    SYS_JSON,
    SYS_JSON_DOCUMENT,
    SYS_SET,
    SYS_SUBDOCUMENT,
    SYS_UNFOLDABLE,
    SYS_VALUE,
    XSD,
)

BASE = "terminusdb:///data/"
SCHEMA = "terminusdb:///schema#"


def S(name):
    return f"{SCHEMA}{name}"


def D(name):
    return f"{BASE}{name}"


@pytest.fixture
def prefixes():
    return Prefixes(base=BASE, schema=SCHEMA)


@pytest.fixture
def schema_graph():
    b = GraphBuilder()
    for cls in ("Person", "Student", "Address", "Pet"):
        b.add(S(cls), RDF_TYPE, SYS_CLASS)
    b.add(S("Student"), SYS_INHERITS, S("Person"))
    b.add(S("Address"), SYS_SUBDOCUMENT, RDF_NIL)
    b.add(S("Pet"), SYS_UNFOLDABLE, RDF_NIL)

    b.add(S("Person"), S("name"), f"{XSD}string")
    b.add(S("Person"), S("age"), f"{XSD}integer")
    b.add(S("Person"), S("friend"), "_:friend_range")
    b.add("_:friend_range", RDF_TYPE, SYS_SET)
    b.add(S("Person"), S("address"), S("Address"))
    b.add(S("Person"), S("pet"), S("Pet"))
    b.add(S("Address"), S("street"), f"{XSD}string")
    b.add(S("Pet"), S("name"), f"{XSD}string")

    b.add(S("Colour"), RDF_TYPE, SYS_ENUM)
    b.add_list(S("Colour"), SYS_VALUE, [
        Node(S("Colour/red")),
        Node(S("Colour/green")),
        Node(S("Colour/light%20blue")),
    ])
    return b.build()


@pytest.fixture
def instance_graph():
    b = GraphBuilder()
    alice, bob, carol, dave = D("Person/alice"), D("Person/bob"), D("Person/carol"), D("Student/dave")

    b.add(alice, RDF_TYPE, S("Person"))
    b.add_value(alice, S("name"), "Alice")
    b.add_value(alice, S("age"), 30)
    b.add_value(alice, S("born"), TypedValue("2000-01-01T00:00:00Z", f"{XSD}dateTime"))
    b.add(alice, S("friend"), bob)
    b.add(alice, S("address"), D("Address/a1"))
    b.add(alice, S("colour"), S("Colour/red"))
    b.add(alice, S("pet"), D("Pet/rex"))
    b.add_array(alice, S("scores"), [1, 2, 3])
    b.add_list(alice, S("tags"), ["x", "y"])

    b.add(D("Address/a1"), RDF_TYPE, S("Address"))
    b.add_value(D("Address/a1"), S("street"), "Main St")

    b.add(D("Pet/rex"), RDF_TYPE, S("Pet"))
    b.add_value(D("Pet/rex"), S("name"), "Rex")

    b.add(bob, RDF_TYPE, S("Person"))
    b.add_value(bob, S("name"), "Bob")
    b.add_value(bob, S("age"), 25)
    b.add_value(bob, S("born"), TypedValue("1990-06-01T00:00:00Z", f"{XSD}dateTime"))
    b.add(bob, S("friend"), alice)
    b.add(bob, S("friend"), carol)

    b.add(carol, RDF_TYPE, S("Person"))
    b.add_value(carol, S("name"), "Carol")
    b.add(carol, S("colour"), S("Colour/light%20blue"))

    b.add(dave, RDF_TYPE, S("Student"))
    b.add_value(dave, S("name"), "Dave")
    b.add_value(dave, S("age"), 20)

    b.add(D("JSONDocument/j1"), RDF_TYPE, SYS_JSON_DOCUMENT)
    b.add_value(D("JSONDocument/j1"), S("title"), "Hello")
    b.add(D("JSONDocument/j1"), S("meta"), "_:meta")
    b.add("_:meta", RDF_TYPE, SYS_JSON)
    b.add_value("_:meta", S("k"), 1)
    return b.build()


@pytest.fixture
def schema_index(schema_graph, instance_graph, prefixes):
    return SchemaIndex.build(schema_graph, instance_graph, prefixes)


@pytest.fixture
def materializer(instance_graph, schema_index):
    return DocumentMaterializer(instance_graph, schema_index)


@pytest.fixture
def frames_dict():
    person_fields = {
        "name": "xsd:string",
        "age": "xsd:integer",
        "born": {"@type": "Optional", "@class": "xsd:dateTime"},
        "friend": {"@type": "Set", "@class": "Person"},
        "address": {"@class": "Address", "@subdocument": []},
        "colour": "Colour",
        "pet": "Pet",
        "scores": {"@type": "Array", "@class": "xsd:integer"},
        "tags": {"@type": "List", "@class": "xsd:string"},
    }
    return {
        "@context": {"@base": BASE, "@schema": SCHEMA, "@type": "Context"},
        "Person": {"@type": "Class", **person_fields},
        "Student": {"@type": "Class", "@inherits": ["Person"], **person_fields},
        "Address": {"@type": "Class", "@subdocument": [], "street": "xsd:string"},
        "Pet": {"@type": "Class", "name": "xsd:string"},
        "Colour": {"@type": "Enum", "@values": ["red", "green", "light blue"]},
    }


@pytest.fixture
def all_frames(frames_dict):
    return AllFrames.from_dict(frames_dict)


@pytest.fixture
def ids(instance_graph):
    """Instance ids by short name."""
    return {
        name: instance_graph.subject_id(D(path))
        for name, path in (
            ("alice", "Person/alice"),
            ("bob", "Person/bob"),
            ("carol", "Person/carol"),
            ("dave", "Student/dave"),
        )
    }
