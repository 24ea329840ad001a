# devcom/DB/database.py

"""
Database session helpers.

get_db() is the dependency used by FastAPI endpoints; init_db() creates the
schema at startup (the server owns three small tables, no migration tool).
"""

from typing import Generator

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from devcom.DB.session import SessionLocal, engine


def get_db() -> Generator[Session, None, None]:
    """
    Yield a Session and always close it.

    The session is NOT committed here; callers commit explicitly.

    Example:
        @app.get("/devices")
        def list_devices(db: Session = Depends(get_db)):
            return db.query(Device).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """Create every registered table that does not exist yet."""
    from devcom.DB.base import Base

    Base.metadata.create_all(bind=bind)
    print(f"[DB] Schema ready ({', '.join(sorted(Base.metadata.tables))})")


def check_db_connection() -> bool:
    """Run SELECT 1; True when the database answers."""
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        print(f"[DB] Connection test failed: {e}")
        return False
