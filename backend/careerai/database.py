"""Async SQLAlchemy engine and session factory.

Postgres (asyncpg) in deployment; a ``sqlite+aiosqlite`` DATABASE_URL works
for local runs. Each request gets its own session through ``get_db``:

    @router.get("/api/chat")
    async def get_chat_history(db: AsyncSession = Depends(get_db)):
        ...
"""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from careerai.config import settings


def _engine_options(url: str) -> dict:
    if make_url(url).get_backend_name() == "sqlite":
        return {"echo": False}
    return {"echo": False, "pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Objects stay usable after commit; the chat pipeline commits mid-request.
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session, rolled back on error."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
