"""
devcom/DB/session.py
====================
Engine and session factory.

Every ClientSession opens its own Session from SessionLocal, so concurrent
device connections never share ORM state.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from devcom.Core.config import settings

# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================

# SQLite connections are used from the session threads of the listener
_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)

# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
