from autoresponder.db.session import get_db
from autoresponder.services.responder import Responder, get_responder
from sqlalchemy.ext.asyncio import AsyncSession


async def get_db_session() -> AsyncSession:
    """Dependency for getting database session"""
    async for session in get_db():
        yield session


def get_responder_dep() -> Responder:
    """Dependency returning the process-wide responder (overridden in tests)."""
    return get_responder()
