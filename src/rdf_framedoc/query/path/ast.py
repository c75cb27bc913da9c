"""
AST for path expressions.

A path is a regular expression over graph edges. Steps follow a predicate
forwards (``p`` or ``p>``) or backwards (``<p``); ``.`` matches any
predicate. Steps combine by sequence, choice and repetition.
"""

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class AnyPred:
    """Matches every predicate (``.``)."""

    def __str__(self) -> str:
        return "."


@dataclass(frozen=True)
class NamedPred:
    name: str

    def __str__(self) -> str:
        return self.name


Pred = Union[AnyPred, NamedPred]


@dataclass(frozen=True)
class Positive:
    """Follow a predicate from subject to object."""
    pred: Pred

    def __str__(self) -> str:
        return str(self.pred)


@dataclass(frozen=True)
class Negative:
    """Follow a predicate from object back to subject."""
    pred: Pred

    def __str__(self) -> str:
        return f"<{self.pred}"


@dataclass(frozen=True)
class Seq:
    paths: Tuple["Path", ...]

    def __str__(self) -> str:
        return f"({','.join(str(p) for p in self.paths)})"


@dataclass(frozen=True)
class Choice:
    paths: Tuple["Path", ...]

    def __str__(self) -> str:
        return f"({'|'.join(str(p) for p in self.paths)})"


@dataclass(frozen=True)
class Plus:
    path: "Path"

    def __str__(self) -> str:
        return f"{self.path}+"


@dataclass(frozen=True)
class Star:
    path: "Path"

    def __str__(self) -> str:
        return f"{self.path}*"


@dataclass(frozen=True)
class Times:
    """Between ``min`` and ``max`` repetitions, inclusive."""
    path: "Path"
    min: int
    max: int

    def __str__(self) -> str:
        return f"{self.path}{{{self.min},{self.max}}}"


Path = Union[Positive, Negative, Seq, Choice, Plus, Star, Times]
