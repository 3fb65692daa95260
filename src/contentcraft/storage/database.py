"""Engine cache for the local SQLite content store."""

from __future__ import annotations

import threading
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

# Import models so SQLModel registers them
from contentcraft.storage import models as _models  # noqa: F401

_engines: dict[str, Engine] = {}
_lock = threading.Lock()


def get_engine(db_path: Path) -> Engine:
    """Return the engine for ``db_path``, creating the file and tables on first use."""
    key = str(db_path)
    with _lock:
        engine = _engines.get(key)
        if engine is None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            # Store calls run on threadpool workers, so pooled connections cross threads.
            engine = create_engine(
                f"sqlite:///{db_path}", connect_args={"check_same_thread": False}
            )
            SQLModel.metadata.create_all(engine)
            _engines[key] = engine
    return engine


def get_session(db_path: Path) -> Session:
    return Session(get_engine(db_path))


def dispose_engines() -> None:
    """Close every cached engine. Called on API shutdown and between tests."""
    with _lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()
