from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from flashdecks.config import settings
from flashdecks.db.base import Base


def make_engine(url: str, **kwargs) -> AsyncEngine:
    """Create the async engine. SQLite connections get foreign keys switched on
    so ON DELETE CASCADE behaves the same as on PostgreSQL."""
    eng = create_async_engine(url, **kwargs)
    if eng.dialect.name == "sqlite":
        @event.listens_for(eng.sync_engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return eng


engine = make_engine(settings.database_url, echo=False, pool_pre_ping=True)

async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db():
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: AsyncEngine | None = None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
