"""
Exceptions raised by rdf_framedoc.

Three families:
- QueryInputError and subclasses: the caller sent a malformed query. Raised
  before any graph scan starts.
- SchemaContractError: the schema or type frames are inconsistent with what
  a query or document requires.
- InternalConsistencyError: a traversal invariant was broken. These indicate
  a bug and are never caught inside the library.
"""

from typing import Optional


class FrameDocError(Exception):
    """Base class for all rdf_framedoc errors."""
    pass


class QueryInputError(FrameDocError):
    """Exception raised when query input is malformed."""
    pass


class FilterCompileError(QueryInputError):
    """Exception raised when a filter input cannot be compiled."""
    pass


class QueryArgumentError(QueryInputError):
    """Exception raised for inconsistent query arguments (id/ids/path/paging)."""
    pass


class PathParseError(QueryInputError):
    """Exception raised when a path expression cannot be parsed."""

    def __init__(self, text: str, position: Optional[int] = None, message: str = ""):
        self.text = text
        self.position = position
        detail = f" at position {position}" if position is not None else ""
        super().__init__(f"Unable to parse path {text!r}{detail}: {message}".rstrip(": "))


class SchemaContractError(FrameDocError):
    """Exception raised when the schema does not provide what is required."""
    pass


class InternalConsistencyError(FrameDocError):
    """Exception raised when an internal traversal invariant is violated."""
    pass
