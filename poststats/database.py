from sqlalchemy import create_engine
from .config import DATABASE_URL
from sqlalchemy.orm import sessionmaker, declarative_base

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=engine):
    """Create every table the store needs on the given engine."""
    # Model modules register their tables on Base when imported
    from . import models, metadata  # noqa: F401
    Base.metadata.create_all(bind=bind)
