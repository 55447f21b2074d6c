from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Table and column names are shared with the other services of the
# application, hence the quoted camelCase identifiers.


# ---------------------------------------------------------------------------
# Diary
# ---------------------------------------------------------------------------
class Diary(Base):
    __tablename__ = "Diary"

    __table_args__ = (
        # A writer's diaries, newest first
        Index("ix_diary_user_id_created_at", "userId", "createdAt"),
    )

    diary_id: Mapped[int] = mapped_column(
        "diaryId", Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column("userId", Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column("imageUrl", String(500), nullable=True)

    # Denormalized count of "Diary-Like" rows; only changed by atomic
    # likes = likes +/- 1 statements.
    likes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # Stamped by content updates only, like/unlike leave it alone.
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        "updatedAt", DateTime(timezone=True), nullable=True
    )


# ---------------------------------------------------------------------------
# DiaryLike
# ---------------------------------------------------------------------------
class DiaryLike(Base):
    __tablename__ = "Diary-Like"

    diary_id: Mapped[int] = mapped_column(
        "diaryId", Integer, ForeignKey("Diary.diaryId"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column("userId", Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), server_default=func.now(), nullable=False
    )
