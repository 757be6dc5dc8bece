"""JSON level catalog — development stub for LevelCatalog.

Reads levels from a single JSON file (content/levels.json by default):

    {"version": 1, "levels": {"runner": [{...Level...}, ...], ...}}

``load()`` never raises: a missing or invalid file leaves the catalog empty
and logs why, and LevelResolver then serves the built-in defaults.
``reload()`` swaps the index only when the new file parses, so readers
never see a half-built catalog.

Tier 2 service module: imports from mindbloom.hooks.interfaces (Tier 1)
and mindbloom.schemas (Tier 1).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from mindbloom.hooks.interfaces import LevelCatalog
from mindbloom.schemas import Level, Variant

logger = logging.getLogger("mindbloom.hooks.catalog")


class LevelCatalogFile(BaseModel):
    """On-disk shape of the level catalog."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = 1
    levels: dict[Variant, list[Level]]


class JsonLevelCatalog(LevelCatalog):
    """STUB — file-backed catalog, read once at startup.

    Args:
        path: Location of the catalog JSON file.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._levels: dict[Variant, list[Level]] = {}

    def _read(self) -> dict[Variant, list[Level]]:
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        parsed = LevelCatalogFile.model_validate(raw)
        for variant, levels in parsed.levels.items():
            ids = [level.id for level in levels]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate level ids for {variant}: {ids}")
        return dict(parsed.levels)

    def load(self) -> None:
        """Reads the catalog file. Logs and starts empty on any failure."""
        try:
            levels = self._read()
        except Exception:
            logger.exception("Level catalog load failed (%s); starting empty", self._path)
            return
        self._levels = levels
        logger.info(
            "Level catalog loaded: %d level(s) across %d variant(s)",
            sum(len(v) for v in levels.values()), len(levels),
        )

    def reload(self) -> None:
        """Re-reads the file. Keeps the old index if the new one is invalid."""
        try:
            levels = self._read()
        except Exception:
            logger.exception("Level catalog reload failed; keeping old index")
            return
        self._levels = levels
        logger.info("Level catalog reloaded")

    def get_levels(self, variant: Variant) -> list[Level]:
        return list(self._levels.get(variant, []))

    def get_level(self, variant: Variant, level_id: int) -> Level | None:
        for level in self._levels.get(variant, []):
            if level.id == level_id:
                return level
        return None
