"""
Document materialization: schema index, collection rebuilding, the
materializer itself, the ordered parallel driver and JSON output.
"""

from rdf_framedoc.documents.arrays import (
    ArrayIterator,
    Cursor,
    RdfListIterator,
    collect_array,
    flatten_array,
)
from rdf_framedoc.documents.schema_index import SchemaIndex, decode_enum
from rdf_framedoc.documents.materializer import DocumentMaterializer, add_field
from rdf_framedoc.documents.parallel import materialize_all_parallel, ordered_parallel_map
from rdf_framedoc.documents.writer import dumps_document, write_document, write_documents

__all__ = [
    "ArrayIterator",
    "Cursor",
    "RdfListIterator",
    "collect_array",
    "flatten_array",
    "SchemaIndex",
    "decode_enum",
    "DocumentMaterializer",
    "add_field",
    "materialize_all_parallel",
    "ordered_parallel_map",
    "dumps_document",
    "write_document",
    "write_documents",
]
