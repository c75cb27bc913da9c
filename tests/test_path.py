"""
Tests for path expression parsing and evaluation.
"""

import pytest

from rdf_framedoc.exceptions import PathParseError
from rdf_framedoc.query.path import (
    AnyPred,
    Choice,
    NamedPred,
    Negative,
    PathParser,
    Plus,
    Positive,
    Seq,
    Star,
    Times,
    compile_path,
    parse_path,
    path_to_class,
)
from rdf_framedoc.storage import GraphBuilder, Prefixes

from conftest import D, S


def pos(name):
    return Positive(NamedPred(name))


def neg(name):
    return Negative(NamedPred(name))


class TestPathParser:
    """Grammar tests."""

    def test_single_predicate(self):
        assert parse_path("rdf:first") == pos("rdf:first")

    def test_explicit_forward(self):
        assert parse_path("friend>") == pos("friend")

    def test_sequence_with_star(self):
        assert parse_path("p,rdf:rest*,rdf:first") == Seq((
            pos("p"),
            Star(pos("rdf:rest")),
            pos("rdf:first"),
        ))

    def test_grouped_plus(self):
        assert parse_path("(<effect,cause)+") == Plus(Seq((neg("effect"), pos("cause"))))

    def test_any_predicate(self):
        assert parse_path(".") == Positive(AnyPred())

    def test_mixed_group(self):
        assert parse_path("(forward,.,<backward)+") == Plus(Seq((
            pos("forward"),
            Positive(AnyPred()),
            neg("backward"),
        )))

    def test_choice(self):
        assert parse_path("(child|database)*") == Star(Choice((pos("child"), pos("database"))))

    def test_times(self):
        assert parse_path("first,(second,third){1,4}") == Seq((
            pos("first"),
            Times(Seq((pos("second"), pos("third"))), 1, 4),
        ))

    def test_choice_binds_tighter_than_sequence(self):
        assert parse_path("a,b|c") == Seq((pos("a"), Choice((pos("b"), pos("c")))))

    def test_whitespace_is_tolerated(self):
        assert parse_path(" a , b ") == Seq((pos("a"), pos("b")))

    def test_str_round_trip(self):
        path = parse_path("first,(second|<third){1,4}")
        assert parse_path(str(path)) == path

    @pytest.mark.parametrize("text", ["", "(a", "a,,b", "a{1}", "a)", "<", "a{x,2}"])
    def test_invalid(self, text):
        with pytest.raises(PathParseError) as info:
            parse_path(text)
        assert info.value.text == text

    def test_parser_instance(self):
        assert PathParser().parse("a|b") == Choice((pos("a"), pos("b")))


EX = "http://example.org/"


@pytest.fixture
def chain_graph():
    """a -next-> b -next-> c -next-> a, plus a -label-> "A" and d -next-> b."""
    b = GraphBuilder()
    b.add(f"{EX}a", f"{EX}next", f"{EX}b")
    b.add(f"{EX}b", f"{EX}next", f"{EX}c")
    b.add(f"{EX}c", f"{EX}next", f"{EX}a")
    b.add(f"{EX}d", f"{EX}next", f"{EX}b")
    b.add_value(f"{EX}a", f"{EX}label", "A")
    return b.build()


@pytest.fixture
def ex_prefixes():
    return Prefixes(base=EX, schema=EX)


class TestCompilePath:

    def run(self, graph, prefixes, text, start):
        step = compile_path(parse_path(text), graph, prefixes)
        ids = [graph.subject_id(f"{EX}{name}") for name in start]
        return [graph.id_object_node(i) or graph.id_object_value(i).lex for i in step(ids)]

    def test_forward(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next", ["a"]) == [f"{EX}b"]

    def test_backward(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "<next", ["b"]) == [f"{EX}a", f"{EX}d"]

    def test_sequence(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next,next", ["a"]) == [f"{EX}c"]

    def test_any_forward(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, ".", ["a"]) == [f"{EX}b", "A"]

    def test_plus_terminates_on_cycle(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next+", ["a"]) == [f"{EX}b", f"{EX}c", f"{EX}a"]

    def test_star_includes_start(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next*", ["d"]) == [
            f"{EX}d", f"{EX}b", f"{EX}c", f"{EX}a",
        ]

    def test_times(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next{2,3}", ["d"]) == [f"{EX}c", f"{EX}a"]
        assert self.run(chain_graph, ex_prefixes, "next{0,1}", ["d"]) == [f"{EX}d", f"{EX}b"]

    def test_choice(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "next|label", ["a"]) == [f"{EX}b", "A"]

    def test_unknown_predicate(self, chain_graph, ex_prefixes):
        assert self.run(chain_graph, ex_prefixes, "missing", ["a"]) == []
        assert self.run(chain_graph, ex_prefixes, "<missing", ["b"]) == []


class TestPathToClass:

    def test_filters_by_class(self, instance_graph, all_frames, ids):
        result = list(path_to_class("friend,friend", instance_graph, all_frames, "Person", [ids["alice"]]))
        assert result == [ids["alice"], ids["carol"]]

    def test_reaches_subdocuments(self, instance_graph, all_frames, ids):
        result = list(path_to_class("address", instance_graph, all_frames, "Address", [ids["alice"]]))
        assert [instance_graph.id_subject(i) for i in result] == [D("Address/a1")]

    def test_backward_step(self, instance_graph, all_frames, ids):
        result = list(path_to_class("<friend", instance_graph, all_frames, "Person", [ids["carol"]]))
        assert result == [ids["bob"]]

    def test_wrong_class_is_dropped(self, instance_graph, all_frames, ids):
        assert list(path_to_class("address", instance_graph, all_frames, "Person", [ids["alice"]])) == []

    def test_parse_error_is_eager(self, instance_graph, all_frames, ids):
        with pytest.raises(PathParseError):
            path_to_class("(", instance_graph, all_frames, "Person", [ids["alice"]])

    def test_results_are_unique(self, instance_graph, all_frames, ids):
        result = list(path_to_class("friend|friend", instance_graph, all_frames, "Person", [ids["alice"]]))
        assert result == [ids["bob"]]
