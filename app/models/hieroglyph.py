"""Hieroglyph (vocabulary item) model."""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base


class Hieroglyph(Base):
    __tablename__ = "hieroglyphs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    character: Mapped[str] = mapped_column(String(16), index=True)
    pinyin: Mapped[str] = mapped_column(String(64))
    translation: Mapped[str] = mapped_column(String(255))
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Hieroglyph(id={self.id}, character={self.character})>"
