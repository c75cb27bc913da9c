"""
Well-known namespaces and IRIs shared by the schema index, the document
materializer and the query compiler.
"""

RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS = "http://www.w3.org/2000/01/rdf-schema#"
XSD = "http://www.w3.org/2001/XMLSchema#"
SYS = "http://terminusdb.com/schema/sys#"

RDF_TYPE = f"{RDF}type"
RDF_FIRST = f"{RDF}first"
RDF_REST = f"{RDF}rest"
RDF_NIL = f"{RDF}nil"
RDF_LIST = f"{RDF}List"

SYS_CLASS = f"{SYS}Class"
SYS_TAGGED_UNION = f"{SYS}TaggedUnion"
SYS_ENUM = f"{SYS}Enum"
SYS_SUBDOCUMENT = f"{SYS}subdocument"
SYS_UNFOLDABLE = f"{SYS}unfoldable"
SYS_INHERITS = f"{SYS}inherits"
SYS_VALUE = f"{SYS}value"
SYS_INDEX = f"{SYS}index"
SYS_ARRAY = f"{SYS}Array"
SYS_SET = f"{SYS}Set"
SYS_CARDINALITY = f"{SYS}Cardinality"
SYS_JSON = f"{SYS}JSON"
SYS_JSON_DOCUMENT = f"{SYS}JSONDocument"

# Prefixes that are always known, independent of a database context
STANDARD_PREFIXES = {
    "rdf": RDF,
    "rdfs": RDFS,
    "xsd": XSD,
    "sys": SYS,
}


def sys_index(n: int) -> str:
    """Index predicate for dimension ``n`` (1-based): sys:index, sys:index2, ..."""
    if n == 1:
        return SYS_INDEX
    return f"{SYS_INDEX}{n}"
