"""Database engine initialization and connection management."""

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .schema import Base, MeterStoreEntry

SCHEMA_VERSION = "1.1.0"


def init_database(db_path: str) -> sessionmaker[Any]:
    """Initialize database and return session factory."""
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # Snapshot writes run in worker threads
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)

    session_maker = sessionmaker(bind=engine)

    with session_maker() as session:
        if session.get(MeterStoreEntry, "schema_version") is None:
            session.add(MeterStoreEntry(key="schema_version", value=SCHEMA_VERSION))
            session.commit()

    return session_maker
