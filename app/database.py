from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

# Guarded UPDATEs rely on Postgres re-checking the WHERE clause after a
# concurrent commit, which holds at the default READ COMMITTED level.
engine = create_async_engine(
    settings.database_url,
    echo=(settings.env == "development"),
    isolation_level="READ COMMITTED",
)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session
