"""Level catalog routes — read-only level listing per variant."""

from typing import Any

from fastapi import APIRouter, Depends

from mindbloom.api.deps import get_level_resolver
from mindbloom.levels import LevelResolver
from mindbloom.schemas import VARIANTS, ApiResponse, Variant

router = APIRouter()


@router.get("")
async def list_variants(
    resolver: LevelResolver = Depends(get_level_resolver),
) -> dict[str, Any]:
    data = {
        variant: [level.model_dump() for level in resolver.get_levels(variant)]
        for variant in VARIANTS
    }
    return ApiResponse(ok=True, data=data).model_dump()


@router.get("/{variant}")
async def list_levels(
    variant: Variant,
    resolver: LevelResolver = Depends(get_level_resolver),
) -> dict[str, Any]:
    levels = [level.model_dump() for level in resolver.get_levels(variant)]
    return ApiResponse(ok=True, data=levels).model_dump()
