from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from sponsorwatch.db.session import SessionLocal


@contextmanager
def get_db_session(factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    """Open a session, roll back on error, always close."""
    db = (factory or SessionLocal)()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
