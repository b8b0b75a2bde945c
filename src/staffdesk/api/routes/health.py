import sqlalchemy as sa
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

import staffdesk
from staffdesk.api.deps import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    """Liveness plus one round trip to the database."""
    await db.execute(sa.text("SELECT 1"))
    return {"status": "ok", "database": "ok", "version": staffdesk.__version__}
