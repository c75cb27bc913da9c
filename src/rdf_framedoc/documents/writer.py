"""
JSON output of materialized documents.

Pretty output uses a two space indent; minimized output has no
whitespace. A stream of documents is written either one per line or as a
single JSON list.

Containers are walked here and every other value is handed to ``json``.
xsd:decimal values arrive as ``Decimal`` and are written from their digits,
so they keep their full precision.
"""

import json
from decimal import Decimal
from typing import Any, Iterable, Iterator, TextIO


def _decimal_literal(value: Decimal) -> str:
    if not value.is_finite():
        return json.dumps(float(value))
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


def _iterencode(doc: Any, indent: bool, level: int) -> Iterator[str]:
    if isinstance(doc, Decimal):
        yield _decimal_literal(doc)
    elif isinstance(doc, dict):
        if not doc:
            yield "{}"
            return
        yield "{"
        inner = "\n" + "  " * (level + 1) if indent else ""
        for n, (key, value) in enumerate(doc.items()):
            if n:
                yield ","
            yield inner
            yield json.dumps(key, ensure_ascii=False)
            yield ": " if indent else ":"
            yield from _iterencode(value, indent, level + 1)
        if indent:
            yield "\n" + "  " * level
        yield "}"
    elif isinstance(doc, (list, tuple)):
        if not doc:
            yield "[]"
            return
        yield "["
        inner = "\n" + "  " * (level + 1) if indent else ""
        for n, value in enumerate(doc):
            if n:
                yield ","
            yield inner
            yield from _iterencode(value, indent, level + 1)
        if indent:
            yield "\n" + "  " * level
        yield "]"
    else:
        yield json.dumps(doc, ensure_ascii=False)


def dumps_document(doc: Any, minimized: bool = False) -> str:
    return "".join(_iterencode(doc, not minimized, 0))


def write_document(stream: TextIO, doc: Any, minimized: bool = False) -> None:
    stream.write(dumps_document(doc, minimized))
    stream.write("\n")


def write_documents(
    stream: TextIO,
    docs: Iterable[Any],
    as_list: bool = False,
    minimized: bool = False,
) -> int:
    """
    Write a sequence of documents and return how many were written.

    With ``as_list`` the output is one JSON array, elements separated by
    ``",\\n"``; otherwise each document is written on its own.
    """
    written = 0
    if as_list:
        stream.write("[")
    for doc in docs:
        if as_list and written:
            stream.write(",\n")
        if as_list:
            stream.write(dumps_document(doc, minimized))
        else:
            write_document(stream, doc, minimized)
        written += 1
    if as_list:
        stream.write("]\n")
    return written
