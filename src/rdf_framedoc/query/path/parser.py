"""
Path expression parser using pyparsing.

Grammar, loosest binding first:

    ands    := ors ("," ors)*
    ors     := repeat ("|" repeat)*
    repeat  := pattern ("+" | "*" | "{" n "," m "}")?
    pattern := "(" ands ")" | "<" pred | pred ">"?
    pred    := "." | name
    name    := [alphanumeric : / _ -]+
"""

from typing import Optional

import pyparsing as pp
from pyparsing import (
    Forward, Literal as Lit, Optional as Opt, Regex, Suppress, Word, ZeroOrMore, nums,
)

from rdf_framedoc.exceptions import PathParseError
from rdf_framedoc.query.path.ast import (
    AnyPred, Choice, NamedPred, Negative, Path, Plus, Positive, Seq, Star, Times,
)


class PathParser:
    """Parser for path expressions."""

    def __init__(self):
        self._build_grammar()

    def _build_grammar(self):
        pp.ParserElement.enable_packrat()

        LPAREN, RPAREN = Suppress("("), Suppress(")")
        LBRACE, RBRACE = Suppress("{"), Suppress("}")
        COMMA, BAR = Suppress(","), Suppress("|")

        any_pred = Lit(".").set_parse_action(lambda t: AnyPred())
        named = Regex(r"[\w:/-]+").set_parse_action(lambda t: NamedPred(t[0]))
        pred = any_pred | named

        negative = (Suppress("<") + pred).set_parse_action(lambda t: Negative(t[0]))
        positive = (pred + Opt(Suppress(">"))).set_parse_action(lambda t: Positive(t[0]))

        ands = Forward()
        pattern = (LPAREN + ands + RPAREN) | negative | positive

        num = Word(nums).set_parse_action(lambda t: int(t[0]))
        size_bracket = LBRACE + num + COMMA + num + RBRACE

        def make_repeat(tokens):
            path = tokens[0]
            if len(tokens) == 1:
                return path
            if len(tokens) == 3:
                return Times(path, tokens[1], tokens[2])
            if tokens[1] == "+":
                return Plus(path)
            return Star(path)

        repeat = (pattern + Opt(Lit("+") | Lit("*") | size_bracket)).set_parse_action(make_repeat)

        def make_choice(tokens):
            if len(tokens) == 1:
                return tokens[0]
            return Choice(tuple(tokens))

        ors = (repeat + ZeroOrMore(BAR + repeat)).set_parse_action(make_choice)

        def make_seq(tokens):
            if len(tokens) == 1:
                return tokens[0]
            return Seq(tuple(tokens))

        ands <<= (ors + ZeroOrMore(COMMA + ors)).set_parse_action(make_seq)

        self.path = ands

    def parse(self, text: str) -> Path:
        """
        Parse a path expression into its AST.

        Raises:
            PathParseError: If the text is not a valid path
        """
        try:
            result = self.path.parse_string(text, parse_all=True)
        except pp.ParseBaseException as e:
            raise PathParseError(text, e.loc, e.msg) from e
        return result[0]


# Module-level parser instance for convenience
_parser: Optional[PathParser] = None


def parse_path(text: str) -> Path:
    """Parse a path expression with a cached parser instance."""
    global _parser
    if _parser is None:
        _parser = PathParser()
    return _parser.parse(text)
