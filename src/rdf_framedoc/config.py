"""
Configuration for document materialization and query execution.

Provides:
- Materializer options (prefix compression, unfolding, output style, workers)
- Query options (default and maximum page sizes, deduplication)
- JSON load/save of the combined configuration
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class MaterializerConfig:
    """Options for turning graph regions into documents."""
    compress: bool = True           # contract IRIs with the database prefixes
    unfold: bool = True             # expand unfoldable document references inline
    minimized: bool = False         # compact JSON output
    workers: Optional[int] = None   # parallel driver pool size, None = executor default

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compress": self.compress,
            "unfold": self.unfold,
            "minimized": self.minimized,
            "workers": self.workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MaterializerConfig":
        workers = data.get("workers")
        if workers is not None and (not isinstance(workers, int) or workers < 1):
            logger.warning(f"Ignoring invalid worker count {workers!r}")
            workers = None
        return cls(
            compress=data.get("compress", True),
            unfold=data.get("unfold", True),
            minimized=data.get("minimized", False),
            workers=workers,
        )


@dataclass
class QueryConfig:
    """Options for filter query execution."""
    default_limit: Optional[int] = None
    max_limit: Optional[int] = None
    dedupe_unordered: bool = False

    def effective_limit(self, limit: Optional[int]) -> Optional[int]:
        """Apply the default and the cap to a requested limit."""
        if limit is None:
            limit = self.default_limit
        if self.max_limit is not None:
            limit = self.max_limit if limit is None else min(limit, self.max_limit)
        return limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_limit": self.default_limit,
            "max_limit": self.max_limit,
            "dedupe_unordered": self.dedupe_unordered,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryConfig":
        return cls(
            default_limit=data.get("default_limit"),
            max_limit=data.get("max_limit"),
            dedupe_unordered=data.get("dedupe_unordered", False),
        )


@dataclass
class FrameDocConfig:
    """Complete configuration."""
    materializer: MaterializerConfig = field(default_factory=MaterializerConfig)
    query: QueryConfig = field(default_factory=QueryConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "materializer": self.materializer.to_dict(),
            "query": self.query.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrameDocConfig":
        return cls(
            materializer=MaterializerConfig.from_dict(data.get("materializer", {})),
            query=QueryConfig.from_dict(data.get("query", {})),
        )


def load_config(path: Path) -> FrameDocConfig:
    """Load configuration from a JSON file; a missing file gives the defaults."""
    path = Path(path)
    if not path.exists():
        logger.debug(f"No configuration at {path}, using defaults")
        return FrameDocConfig()
    with open(path, "r", encoding="utf-8") as f:
        return FrameDocConfig.from_dict(json.load(f))


def save_config(config: FrameDocConfig, path: Path) -> None:
    """Write configuration as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info(f"Saved configuration to {path}")
