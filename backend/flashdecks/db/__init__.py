from flashdecks.db.session import get_db, init_db, make_engine, async_session_maker
from flashdecks.db.base import Base, utcnow

__all__ = ["get_db", "init_db", "make_engine", "async_session_maker", "Base", "utcnow"]
