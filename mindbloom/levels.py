"""Levels — built-in default set and the catalog fallback resolver.

A missing, empty, or broken level catalog is a configuration problem, not a
player-facing error. LevelResolver asks the configured LevelCatalog first
and substitutes the built-in DEFAULT_LEVELS (with a WARNING) whenever the
catalog can't answer.

Tier 2 module: imports from mindbloom.hooks.interfaces and mindbloom.schemas.
"""

from __future__ import annotations

import logging

from mindbloom.hooks.interfaces import LevelCatalog
from mindbloom.schemas import Level, Variant

logger = logging.getLogger("mindbloom.levels")


def _level(id: int, name: str, difficulty: str, speed: float, obstacles: int, limit: int) -> Level:
    return Level(
        id=id,
        name=name,
        difficulty=difficulty,
        speed=speed,
        obstacle_count=obstacles,
        time_limit_seconds=limit,
    )


DEFAULT_LEVELS: dict[Variant, tuple[Level, ...]] = {
    "runner": (
        _level(1, "Forest Path", "easy", 1, 5, 60),
        _level(2, "Castle Bridge", "medium", 1.5, 8, 50),
        _level(3, "Dragon Keep", "hard", 2, 12, 45),
    ),
    "grid_growth": (
        _level(1, "Garden Maze", "easy", 1, 0, 60),
        _level(2, "Forest Clearing", "medium", 1.5, 3, 50),
        _level(3, "Ancient Ruins", "hard", 2, 5, 45),
    ),
    "pattern_recall": (
        _level(1, "Village Square", "easy", 1, 0, 45),
        _level(2, "Crystal Cave", "medium", 1.5, 0, 40),
        _level(3, "Mystic Temple", "hard", 2, 0, 30),
    ),
    "maze_navigation": (
        _level(1, "Hedge Maze", "easy", 1, 0, 60),
        _level(2, "Desert Labyrinth", "medium", 1, 0, 75),
        _level(3, "Ice Cavern", "hard", 1, 3, 90),
    ),
}


class LevelResolver:
    """Catalog lookups with the built-in default set as fallback.

    Args:
        catalog: The configured catalog, or None to use defaults only.
    """

    def __init__(self, catalog: LevelCatalog | None = None) -> None:
        self._catalog = catalog

    def get_levels(self, variant: Variant) -> list[Level]:
        """Returns the variant's levels; defaults if the catalog has none."""
        levels: list[Level] = []
        if self._catalog is not None:
            try:
                levels = self._catalog.get_levels(variant)
            except Exception:
                logger.exception("Level catalog failed for %s; using defaults", variant)
                levels = []
        if not levels:
            if self._catalog is not None:
                logger.warning("No catalog levels for %s; using built-in defaults", variant)
            return list(DEFAULT_LEVELS[variant])
        return list(levels)

    def get_level(self, variant: Variant, level_id: int) -> Level:
        """Returns the requested level, never failing.

        Falls back first to the default level with the same id, then to the
        variant's first default level.
        """
        if self._catalog is not None:
            try:
                found = self._catalog.get_level(variant, level_id)
            except Exception:
                logger.exception(
                    "Level catalog failed for %s/%d; using defaults", variant, level_id,
                )
                found = None
            if found is not None:
                return found
            logger.warning(
                "Level %s/%d not in catalog; substituting a built-in level",
                variant, level_id,
            )

        defaults = DEFAULT_LEVELS[variant]
        for level in defaults:
            if level.id == level_id:
                return level
        return defaults[0]
