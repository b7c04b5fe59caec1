from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session_maker
from app.models import User
from app.services.orchestrator import RefreshOrchestrator


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DbSession,
    user_id: int = 1,
) -> User:
    """
    Resolve the acting user from the `user_id` query parameter.

    Authentication is handled upstream of this service.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_orchestrator(request: Request) -> RefreshOrchestrator:
    """The process-wide refresh orchestrator created at startup."""
    return request.app.state.orchestrator


Orchestrator = Annotated[RefreshOrchestrator, Depends(get_orchestrator)]
