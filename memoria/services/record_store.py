"""Repositories for recordings and chat messages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.models.chat_message import ChatMessage
from memoria.models.recording import Recording

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "audio_url",
        "duration",
        "transcript",
        "summary",
        "tasks",
        "diary_entry",
        "metadata_",
        "speakers",
        "analysis_source",
        "processed",
    }
)


class RecordStore:
    """CRUD access to recordings over a single ``AsyncSession``.

    Updates are single-row writes; there is no optimistic version check, so
    concurrent writers are last-write-wins (see ``AnalysisGuard``).
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, record_id: str) -> Recording | None:
        result = await self.session.execute(select(Recording).where(Recording.id == record_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Recording]:
        result = await self.session.execute(
            select(Recording).order_by(Recording.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_pending(self) -> list[Recording]:
        result = await self.session.execute(
            select(Recording)
            .where(Recording.processed.is_(False))
            .order_by(Recording.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_between(self, start: datetime, end: datetime) -> list[Recording]:
        result = await self.session.execute(
            select(Recording)
            .where(Recording.created_at >= start, Recording.created_at <= end)
            .order_by(Recording.created_at.desc())
        )
        return list(result.scalars().all())

    async def search(self, query: str) -> list[Recording]:
        pattern = f"%{query.strip()}%"
        result = await self.session.execute(
            select(Recording)
            .where(
                or_(
                    Recording.title.ilike(pattern),
                    Recording.transcript.ilike(pattern),
                    Recording.summary.ilike(pattern),
                )
            )
            .order_by(Recording.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(self, fields: Mapping[str, Any]) -> Recording:
        recording = Recording(**{k: v for k, v in fields.items() if k in _UPDATABLE_FIELDS})
        self.session.add(recording)
        await self._commit()
        await self.session.refresh(recording)
        return recording

    async def update(self, record_id: str, **fields: Any) -> Recording | None:
        """Overwrite the given columns; unknown keys are ignored."""

        recording = await self.get(record_id)
        if recording is None:
            return None
        for key, value in fields.items():
            if key in _UPDATABLE_FIELDS:
                setattr(recording, key, value)
            else:
                logger.debug("Ignoring non-updatable recording field %s", key)
        await self._commit()
        await self.session.refresh(recording)
        return recording

    async def delete(self, record_id: str) -> bool:
        recording = await self.get(record_id)
        if recording is None:
            return False
        await self.session.delete(recording)
        await self._commit()
        return True

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class ChatStore:
    """Append-only access to the assistant chat history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[ChatMessage]:
        result = await self.session.execute(
            select(ChatMessage).order_by(ChatMessage.created_at.asc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        role: str,
        content: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> ChatMessage:
        message = ChatMessage(role=role, content=content, metadata_=dict(metadata or {}))
        self.session.add(message)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(message)
        return message


__all__ = ["RecordStore", "ChatStore"]
