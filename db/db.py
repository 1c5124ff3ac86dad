"""
Async DB helpers for scheduled reminder notifications.
Uses SQLAlchemy 2.0 – asyncpg in production, aiosqlite in tests.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any, AsyncGenerator, Iterable

from sqlalchemy import JSON, DateTime, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.types.reminder_contract import NotificationRequest
from app.utils.clock import as_utc

# ──────────────────────────────────────────────────────────────────────
# 1. Declarative metadata
# ──────────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    pass

# ──────────────────────────────────────────────────────────────────────
# 2. Lazy engine / session factory
# ──────────────────────────────────────────────────────────────────────
_engine = None
_session_maker: async_sessionmaker[AsyncSession] | None = None

def _build_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("DATABASE_PUBLIC_URL")
    if not url:
        raise RuntimeError("DATABASE_URL not set")
    if url.startswith("sqlite"):
        return url
    if "+asyncpg" not in url:
        url = url.replace("postgres://", "postgresql+asyncpg://", 1).replace(
            "postgresql://", "postgresql+asyncpg://", 1
        )
    return url

def get_engine():
    global _engine
    if _engine is None:
        url = _build_url()
        if url.startswith("sqlite"):
            _engine = create_async_engine(url)
        else:
            _engine = create_async_engine(url, pool_size=5, max_overflow=5)
    return _engine

def get_session() -> AsyncGenerator[AsyncSession, None]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), expire_on_commit=False)
    async def _session_scope():
        async with _session_maker() as session:
            yield session
    return _session_scope()

# ──────────────────────────────────────────────────────────────────────
# 3. ORM models
# ──────────────────────────────────────────────────────────────────────

class ScheduledNotification(Base):
    __tablename__ = "scheduled_notifications"

    # The reminder's notification_id, never its domain id
    identifier: Mapped[str] = mapped_column(primary_key=True)
    title:      Mapped[str]
    body:       Mapped[str]
    fire_at:    Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    payload:    Mapped[dict[str, Any]] = mapped_column(JSON)
    status:     Mapped[str] = mapped_column(default="pending")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "title": self.title,
            "body": self.body,
            "fire_at": as_utc(self.fire_at),
            "payload": dict(self.payload or {}),
            "status": self.status,
        }


# ──────────────────────────────────────────────────────────────────────
# 4. DDL helper (tests / local dev; production uses Alembic)
# ──────────────────────────────────────────────────────────────────────
async def create_all():
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ──────────────────────────────────────────────────────────────────────
# 5. CRUD helpers
# ──────────────────────────────────────────────────────────────────────

# 5.1 Replace-in-place submit -----------------------------------------
async def upsert_notification(request: NotificationRequest) -> None:
    async for s in get_session():
        await s.execute(
            delete(ScheduledNotification)
            .where(ScheduledNotification.identifier == request.identifier)
        )
        s.add(
            ScheduledNotification(
                identifier=request.identifier,
                title=request.title,
                body=request.body,
                fire_at=as_utc(request.fire_at),
                payload=request.payload.to_wire(),
                status="pending",
            )
        )
        await s.commit()


# 5.2 Cancel (pending + delivered) -------------------------------------
async def delete_notifications(identifiers: Iterable[str]) -> int:
    ids = list(identifiers)
    if not ids:
        return 0
    async for s in get_session():
        res = await s.execute(
            delete(ScheduledNotification)
            .where(ScheduledNotification.identifier.in_(ids))
        )
        await s.commit()
        return res.rowcount or 0


# 5.3 Claim due notifications -----------------------------------------
async def claim_due_notifications(now: datetime, limit: int = 100) -> list[dict]:
    """Mark up to ``limit`` due pending rows as delivered and return them."""
    async for s in get_session():
        stmt = (
            select(ScheduledNotification)
            .where(
                ScheduledNotification.status == "pending",
                ScheduledNotification.fire_at <= as_utc(now),
            )
            .order_by(ScheduledNotification.fire_at)
            .limit(limit)
        )
        rows = (await s.execute(stmt)).scalars().all()
        if not rows:
            return []
        await s.execute(
            update(ScheduledNotification)
            .where(
                ScheduledNotification.identifier.in_([r.identifier for r in rows]),
                ScheduledNotification.status == "pending",
            )
            .values(status="delivered", updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        await s.commit()
        claimed = []
        for row in rows:
            item = row.to_dict()
            item["status"] = "delivered"
            claimed.append(item)
        return claimed


# 5.4 Lookups ----------------------------------------------------------
async def fetch_notification(identifier: str) -> dict | None:
    async for s in get_session():
        row = await s.get(ScheduledNotification, identifier)
        return row.to_dict() if row else None


async def list_notifications(status: str | None = None) -> list[dict]:
    async for s in get_session():
        stmt = select(ScheduledNotification).order_by(ScheduledNotification.fire_at)
        if status:
            stmt = stmt.where(ScheduledNotification.status == status)
        res = await s.execute(stmt)
        return [row.to_dict() for row in res.scalars()]


async def dispose_engine():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
