"""
Dictionary encoding for graph snapshots.

Nodes (IRIs and blank nodes) and literals are each interned once into a
TermDict and referred to by integer id everywhere else. The two high bits
of an id carry its kind, so the document and query layers can tell nodes
from literals without a lookup. Id 0 is never handed out.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, Optional, Tuple


class TermKind(IntEnum):
    """Kind tag stored in the top two bits of a TermId."""
    IRI = 0
    LITERAL = 1
    BNODE = 2


TermId = int

KIND_SHIFT = 62
KIND_MASK = 0x3
PAYLOAD_MASK = (1 << KIND_SHIFT) - 1

XSD_STRING = "http://www.w3.org/2001/XMLSchema#string"
RDF_LANGSTRING = "http://www.w3.org/1999/02/22-rdf-syntax-ns#langString"


def make_term_id(kind: TermKind, sequence: int) -> TermId:
    return (kind << KIND_SHIFT) | (sequence & PAYLOAD_MASK)


def get_term_kind(term_id: TermId) -> TermKind:
    return TermKind((term_id >> KIND_SHIFT) & KIND_MASK)


def is_literal(term_id: TermId) -> bool:
    return get_term_kind(term_id) == TermKind.LITERAL


@dataclass(frozen=True, slots=True)
class Term:
    """
    A decoded term.

    For nodes ``lex`` is the IRI or the ``_:label``; for literals it is the
    lexical form, with ``datatype`` always set and ``lang`` only on
    language-tagged strings.
    """
    kind: TermKind
    lex: str
    datatype: Optional[str] = None
    lang: Optional[str] = None

    @property
    def is_node(self) -> bool:
        return self.kind != TermKind.LITERAL


def _literal_key(lex: str, datatype: Optional[str], lang: Optional[str]) -> Tuple[str, str, Optional[str]]:
    if lang is not None:
        return lex, RDF_LANGSTRING, lang
    return lex, datatype or XSD_STRING, None


class TermDict:
    """
    Two-way mapping between terms and TermIds.

    Nodes are keyed by name alone; a name starting with ``_:`` is a blank
    node. Literals are keyed by (lexical form, datatype, language), so
    ``"1"`` as a string and ``"1"`` as an integer are different terms.

    Interning is single-threaded (it happens while a GraphBuilder collects
    triples); lookups on a finished snapshot may run from any thread.
    """

    def __init__(self):
        self._sequence: Dict[TermKind, int] = {kind: 0 for kind in TermKind}
        self._nodes: Dict[str, TermId] = {}
        self._literals: Dict[Tuple[str, str, Optional[str]], TermId] = {}
        self._terms: Dict[TermId, Term] = {}

    def _register(self, term: Term) -> TermId:
        self._sequence[term.kind] += 1
        term_id = make_term_id(term.kind, self._sequence[term.kind])
        self._terms[term_id] = term
        return term_id

    def intern_node(self, name: str) -> TermId:
        term_id = self._nodes.get(name)
        if term_id is None:
            kind = TermKind.BNODE if name.startswith("_:") else TermKind.IRI
            term_id = self._register(Term(kind, name))
            self._nodes[name] = term_id
        return term_id

    def intern_literal(self, lex: str, datatype: Optional[str] = None, lang: Optional[str] = None) -> TermId:
        """Intern a literal; without a datatype it is an xsd:string."""
        key = _literal_key(lex, datatype, lang)
        term_id = self._literals.get(key)
        if term_id is None:
            term_id = self._register(Term(TermKind.LITERAL, *key))
            self._literals[key] = term_id
        return term_id

    def get_node_id(self, name: str) -> Optional[TermId]:
        return self._nodes.get(name)

    def get_literal_id(self, lex: str, datatype: Optional[str] = None, lang: Optional[str] = None) -> Optional[TermId]:
        return self._literals.get(_literal_key(lex, datatype, lang))

    def lookup(self, term_id: TermId) -> Optional[Term]:
        return self._terms.get(term_id)

    def items(self) -> Iterator[Tuple[TermId, Term]]:
        return iter(self._terms.items())

    def count_by_kind(self) -> Dict[TermKind, int]:
        return dict(self._sequence)

    def __len__(self) -> int:
        return len(self._terms)
