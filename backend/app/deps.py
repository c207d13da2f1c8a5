"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.services.dependency_service import DependencyService
from app.worker import enqueue_dependency_change


async def get_dependency_service(
    session: AsyncSession = Depends(get_session),
) -> DependencyService:
    """One DependencyService per request, bound to the request's session."""
    settings = get_settings()
    notifier = enqueue_dependency_change if settings.notifications_enabled else None
    return DependencyService.from_session(session, settings=settings, notifier=notifier)
