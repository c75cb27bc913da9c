"""
rdf-framedoc: schema-aware documents and filter queries over immutable,
dictionary-encoded triple graphs, stored with Polars.
"""

__version__ = "0.1.0"

from rdf_framedoc.config import FrameDocConfig, MaterializerConfig, QueryConfig, load_config, save_config
from rdf_framedoc.exceptions import (
    FrameDocError,
    QueryInputError,
    FilterCompileError,
    QueryArgumentError,
    PathParseError,
    SchemaContractError,
    InternalConsistencyError,
)
from rdf_framedoc.storage import Graph, GraphBuilder, Prefixes, TypedValue, Node
from rdf_framedoc.documents import (
    SchemaIndex,
    DocumentMaterializer,
    collect_array,
    materialize_all_parallel,
    write_document,
    write_documents,
)
from rdf_framedoc.query import AllFrames, compile_filter, run_query, parse_path

__all__ = [
    "FrameDocConfig",
    "MaterializerConfig",
    "QueryConfig",
    "load_config",
    "save_config",
    "FrameDocError",
    "QueryInputError",
    "FilterCompileError",
    "QueryArgumentError",
    "PathParseError",
    "SchemaContractError",
    "InternalConsistencyError",
    "Graph",
    "GraphBuilder",
    "Prefixes",
    "TypedValue",
    "Node",
    # Documents
    "SchemaIndex",
    "DocumentMaterializer",
    "collect_array",
    "materialize_all_parallel",
    "write_document",
    "write_documents",
    # Queries
    "AllFrames",
    "compile_filter",
    "run_query",
    "parse_path",
]
