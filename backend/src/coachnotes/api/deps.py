"""Shared FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.redis_client import RedisClient
from ..core.services import NoteService
from ..database import get_db_session
from ..security import EncryptionCodec


def get_codec(request: Request) -> EncryptionCodec:
    """Codec created at startup."""
    return request.app.state.codec


def get_redis(request: Request) -> Optional[RedisClient]:
    return getattr(request.app.state, "redis", None)


async def get_note_service(
    session: AsyncSession = Depends(get_db_session),
    codec: EncryptionCodec = Depends(get_codec),
    redis_client: Optional[RedisClient] = Depends(get_redis),
) -> NoteService:
    """Request scoped note service."""
    return NoteService(session, codec, redis_client)
