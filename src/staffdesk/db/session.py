from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staffdesk.db.engine import dispose_engine, get_engine

_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def close_db() -> None:
    """Drop the cached factory and dispose the engine.

    Called on API shutdown and at the end of every CLI run, since an
    asyncpg pool cannot outlive the event loop that opened it.
    """
    global _session_factory
    _session_factory = None
    await dispose_engine()
