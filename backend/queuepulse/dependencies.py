"""
FastAPI dependencies wiring the engine to a request-scoped session.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from queuepulse.config import get_settings
from queuepulse.database import get_db
from queuepulse.services.engine import QueueEngine
from queuepulse.services.storage import DatabaseStorage, QueueStorage


async def get_storage(db: AsyncSession = Depends(get_db)) -> QueueStorage:
    """Storage bound to the request's database session."""
    return DatabaseStorage(db)


async def get_engine(storage: QueueStorage = Depends(get_storage)) -> QueueEngine:
    """Prediction engine bound to the request's storage."""
    return QueueEngine(storage, get_settings())


async def verify_admin_access(
    x_admin_api_key: Optional[str] = Header(None, alias="X-Admin-API-Key"),
) -> None:
    """
    Guard admin endpoints with a static API key.

    Open when no `admin_api_key` is configured (local development).
    Raises 403 if a key is configured and the header does not match.
    """
    settings = get_settings()

    if not settings.admin_api_key:
        return

    if x_admin_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required. Provide a valid X-Admin-API-Key header.",
        )
