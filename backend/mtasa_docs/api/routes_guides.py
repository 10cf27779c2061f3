"""Static scripting guides."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()

RESOURCE_STRUCTURE_GUIDE_PATH = Path(__file__).resolve().parent.parent / "data" / "resource_structure.md"


@lru_cache(maxsize=1)
def load_resource_structure_guide() -> str:
    return RESOURCE_STRUCTURE_GUIDE_PATH.read_text(encoding="utf-8")


@router.get(
    "/guides/resource-structure",
    response_class=PlainTextResponse,
    summary="How an MTA:SA resource folder and its meta.xml are laid out",
)
def resource_structure_guide() -> PlainTextResponse:
    return PlainTextResponse(load_resource_structure_guide(), media_type="text/markdown")


__all__ = ["router", "load_resource_structure_guide"]
