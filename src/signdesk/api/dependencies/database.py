"""Database session dependency."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.core.database import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session; committed when the request succeeds."""
    async for session in get_session():
        yield session
