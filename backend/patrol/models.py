from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ShiftWindowRecord(Base):
    """Catalog row for a named daily shift window. One physical row per name."""

    __tablename__ = "shift_windows"
    __table_args__ = (
        Index("ix_shift_windows_active", "active"),
        Index("ix_shift_windows_start_time", "start_time"),
        Index("ix_shift_windows_deleted_at", "deleted_at"),
    )

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    # Zero-padded HH:MM:SS, compared as strings.
    start_time: Mapped[str] = mapped_column(String(8), nullable=False)
    end_time: Mapped[str] = mapped_column(String(8), nullable=False)
    wraps_midnight: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    deleted_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    events: Mapped[list["ShiftWindowEvent"]] = relationship(
        "ShiftWindowEvent", back_populates="window", order_by="ShiftWindowEvent.id"
    )


class ShiftWindowEvent(Base):
    """Append-only audit trail of lifecycle transitions on a shift window."""

    __tablename__ = "shift_window_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    window_name: Mapped[str] = mapped_column(ForeignKey("shift_windows.name"), index=True, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    changes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    window: Mapped["ShiftWindowRecord"] = relationship("ShiftWindowRecord", back_populates="events")
