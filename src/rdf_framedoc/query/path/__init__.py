"""
Path expressions: AST, parser and evaluation over a Graph.
"""

from rdf_framedoc.query.path.ast import (
    AnyPred,
    NamedPred,
    Pred,
    Path,
    Positive,
    Negative,
    Seq,
    Choice,
    Plus,
    Star,
    Times,
)
from rdf_framedoc.query.path.parser import PathParser, parse_path
from rdf_framedoc.query.path.compile import compile_path, path_to_class

__all__ = [
    "AnyPred",
    "NamedPred",
    "Pred",
    "Path",
    "Positive",
    "Negative",
    "Seq",
    "Choice",
    "Plus",
    "Star",
    "Times",
    "PathParser",
    "parse_path",
    "compile_path",
    "path_to_class",
]
