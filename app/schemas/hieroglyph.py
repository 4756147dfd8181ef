"""Hieroglyph schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class HieroglyphCreate(BaseModel):
    character: str = Field(min_length=1, max_length=16)
    pinyin: str = Field(min_length=1, max_length=64)
    translation: str = Field(min_length=1, max_length=255)
    example: Optional[str] = None


class HieroglyphResponse(BaseModel):
    id: int
    character: str
    pinyin: str
    translation: str
    example: Optional[str] = None

    class Config:
        from_attributes = True
