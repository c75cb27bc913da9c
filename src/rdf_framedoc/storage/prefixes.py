"""
Prefix contraction and expansion.

A database context names an instance base (``@base``), a schema base
(``@schema``) and any number of extra prefixes. Instance IRIs are contracted
against the base, schema IRIs (types and properties) against the schema
base; both fall back to ``prefix:local`` forms for the extra and standard
prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from rdf_framedoc.storage.vocab import STANDARD_PREFIXES


@dataclass(frozen=True)
class Prefixes:
    """Prefix context for one database."""
    base: str = ""
    schema: str = ""
    extra: Dict[str, str] = field(default_factory=dict)
    compress: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Prefixes":
        """Build from a ``@context`` mapping (``@base``, ``@schema`` and extra prefixes)."""
        extra = {
            key: value for key, value in data.items()
            if not key.startswith("@") and isinstance(value, str)
        }
        return cls(
            base=data.get("@base", ""),
            schema=data.get("@schema", ""),
            extra=extra,
        )

    @classmethod
    def identity(cls, base: str = "", schema: str = "") -> "Prefixes":
        """A context that expands names but never contracts IRIs."""
        return cls(base=base, schema=schema, compress=False)

    def _all_prefixes(self) -> Dict[str, str]:
        merged = dict(STANDARD_PREFIXES)
        merged.update(self.extra)
        return merged

    def expand(self, name: str) -> str:
        """Expand an instance name against ``@base``."""
        return self._expand_curie(name) or f"{self.base}{name}"

    def expand_schema(self, name: str) -> str:
        """Expand a schema name (type or property) against ``@schema``."""
        return self._expand_curie(name) or f"{self.schema}{name}"

    def _expand_curie(self, name: str) -> Optional[str]:
        if "://" in name:
            return name
        prefix, sep, local = name.partition(":")
        if not sep:
            return None
        namespace = self._all_prefixes().get(prefix)
        if namespace is None:
            return None
        return f"{namespace}{local}"

    def _contract_curie(self, iri: str) -> str:
        best: Optional[tuple[str, str]] = None
        for prefix, namespace in self._all_prefixes().items():
            if namespace and iri.startswith(namespace):
                if best is None or len(namespace) > len(best[1]):
                    best = (prefix, namespace)
        if best is None:
            return iri
        return f"{best[0]}:{iri[len(best[1]):]}"

    def instance_contract(self, iri: str) -> str:
        """Contract an instance IRI for output."""
        if not self.compress:
            return iri
        if self.base and iri.startswith(self.base):
            return iri[len(self.base):]
        return self._contract_curie(iri)

    def schema_contract(self, iri: str) -> str:
        """Contract a schema IRI (type or property) for output."""
        if not self.compress:
            return iri
        if self.schema and iri.startswith(self.schema):
            return iri[len(self.schema):]
        return self._contract_curie(iri)
