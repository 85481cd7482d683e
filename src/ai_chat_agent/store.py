"""
Durable message and file storage.

Wraps the SQLAlchemy models behind the small set of operations the session
layer needs: append and scan messages per session, attach and fetch files.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from .models import ChatMessage, StoredFile

logger = structlog.get_logger()


@dataclass
class StoredMessage:
    """A message as read back from storage."""

    role: str
    content: str
    model: str | None
    created_at: datetime | None
    id: int | None = None
    files: list["FileMetadata"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "model": self.model,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class FileMetadata:
    """File information without the payload."""

    id: int
    filename: str
    media_type: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "mediaType": self.media_type,
            "size": self.size,
        }


@dataclass
class FileBlob:
    """A stored file including its bytes."""

    filename: str
    media_type: str
    data: bytes
    size: int


class MessageStore:
    """Persistence for chat messages and their attachments."""

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def append_message(
        self,
        session_id: str,
        role: str,
        content: str,
        model: str | None = None,
    ) -> int:
        """Persist a message and return its id."""
        async with self.session_maker() as db:
            message = ChatMessage(
                session_id=session_id,
                role=role,
                content=content,
                model=model,
            )
            db.add(message)
            await db.commit()
            return message.id

    async def list_messages(self, session_id: str) -> list[StoredMessage]:
        """Return every message of a session in insertion order."""
        async with self.session_maker() as db:
            result = await db.execute(
                select(ChatMessage)
                .where(ChatMessage.session_id == session_id)
                .order_by(ChatMessage.id)
            )
            rows = result.scalars().all()

        return [
            StoredMessage(
                id=row.id,
                role=row.role,
                content=row.content,
                model=row.model,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def append_file(
        self,
        message_id: int,
        session_id: str,
        filename: str,
        media_type: str,
        data: bytes,
    ) -> int:
        """Attach a file to a message and return the file id."""
        async with self.session_maker() as db:
            stored = StoredFile(
                message_id=message_id,
                session_id=session_id,
                filename=filename,
                media_type=media_type,
                data=data,
                size=len(data),
            )
            db.add(stored)
            await db.commit()

        logger.info("Stored file", file_id=stored.id, message_id=message_id, size=stored.size)
        return stored.id

    async def get_file(self, file_id: int) -> FileBlob | None:
        """Fetch a file with its payload, or None when it does not exist."""
        async with self.session_maker() as db:
            stored = await db.get(StoredFile, file_id)
            if stored is None:
                return None
            return FileBlob(
                filename=stored.filename,
                media_type=stored.media_type,
                data=stored.data,
                size=stored.size,
            )

    async def list_files_for_message(self, message_id: int) -> list[FileMetadata]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StoredFile.id, StoredFile.filename, StoredFile.media_type, StoredFile.size)
                .where(StoredFile.message_id == message_id)
                .order_by(StoredFile.id)
            )
            return [
                FileMetadata(id=row.id, filename=row.filename, media_type=row.media_type, size=row.size)
                for row in result.all()
            ]

    async def list_messages_with_files(self, session_id: str) -> list[StoredMessage]:
        """Return the session history with attachment metadata per message."""
        messages = await self.list_messages(session_id)
        for message in messages:
            message.files = await self.list_files_for_message(message.id)
        return messages
