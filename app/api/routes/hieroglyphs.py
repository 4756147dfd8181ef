"""Hieroglyph endpoints."""

from typing import List

from fastapi import APIRouter, status
from sqlalchemy import select

from app.core.dependencies import AdminClaims, DbSession
from app.core.exceptions import NotFound
from app.models.hieroglyph import Hieroglyph
from app.schemas.hieroglyph import HieroglyphCreate, HieroglyphResponse

router = APIRouter()


@router.get("", response_model=List[HieroglyphResponse])
async def list_hieroglyphs(db: DbSession):
    """List all hieroglyphs."""
    result = await db.execute(select(Hieroglyph).order_by(Hieroglyph.id))
    return result.scalars().all()


@router.post("", response_model=HieroglyphResponse, status_code=status.HTTP_201_CREATED)
async def create_hieroglyph(payload: HieroglyphCreate, db: DbSession, admin: AdminClaims):
    """Create a hieroglyph. Admins only."""
    hieroglyph = Hieroglyph(**payload.model_dump())
    db.add(hieroglyph)
    await db.flush()
    await db.refresh(hieroglyph)
    return hieroglyph


@router.get("/{hieroglyph_id}", response_model=HieroglyphResponse)
async def get_hieroglyph(hieroglyph_id: int, db: DbSession):
    hieroglyph = await db.get(Hieroglyph, hieroglyph_id)
    if not hieroglyph:
        raise NotFound("Hieroglyph not found")
    return hieroglyph
