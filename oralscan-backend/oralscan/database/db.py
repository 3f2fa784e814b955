# oralscan/database/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base untuk model ORM
Base = declarative_base()


def make_engine(url: str, **kwargs):
    """
    SQLAlchemy engine untuk cloud history.
    Engine dibuat hanya kalau URL dikonfigurasi (lihat create_history_backend).
    """
    kwargs.setdefault("pool_pre_ping", True)
    kwargs.setdefault("future", True)
    return create_engine(url, **kwargs)


def make_session_factory(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
    )
