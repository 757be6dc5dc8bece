"""Variant registry — maps variant names to their rule classes.

Tier 2 module: imports the four variant modules (Tier 1).

Usage:
    from mindbloom.games.registry import create_variant
    game = create_variant("maze_navigation", level, random.Random(7))
"""

from __future__ import annotations

import random

from mindbloom.games.base import GameVariant
from mindbloom.games.grid_growth import GridGrowth
from mindbloom.games.maze_navigation import MazeNavigation
from mindbloom.games.pattern import PatternRecall
from mindbloom.games.runner import Runner
from mindbloom.schemas import Level, Variant

VARIANT_CLASSES: dict[Variant, type[GameVariant]] = {
    cls.name: cls for cls in (Runner, PatternRecall, GridGrowth, MazeNavigation)
}


def create_variant(
    variant: Variant, level: Level, rng: random.Random | None = None
) -> GameVariant:
    """Instantiates the rules for one variant.

    Raises:
        KeyError: If the variant name is unknown.
    """
    return VARIANT_CLASSES[variant](level, rng)
