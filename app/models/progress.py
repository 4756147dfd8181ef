"""Per-user learning progress model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum as SQLEnum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base

if TYPE_CHECKING:
    from app.models.user import User


class ContentType(str, Enum):
    """Kinds of learnable content."""
    HIEROGLYPH = "hieroglyph"
    WORD = "word"
    PHRASE = "phrase"
    GRAMMAR_RULE = "grammar_rule"
    LESSON = "lesson"


class UserProgress(Base):
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "content_type", "content_id", name="uq_user_progress_item"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    content_type: Mapped[ContentType] = mapped_column(
        SQLEnum(ContentType, values_callable=lambda kinds: [k.value for k in kinds]),
    )
    content_id: Mapped[int] = mapped_column()

    is_learned: Mapped[bool] = mapped_column(Boolean, default=False)
    learned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="progress")

    def __repr__(self) -> str:
        return f"<UserProgress(user_id={self.user_id}, {self.content_type}:{self.content_id})>"
