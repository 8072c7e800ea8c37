import os
import tempfile

# Configure an isolated writable database BEFORE any poststats import.
_tmp_db_path = os.path.join(tempfile.gettempdir(), f"poststats_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_db_path}"
if os.path.exists(_tmp_db_path):
    os.remove(_tmp_db_path)

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from poststats.database import init_db
from poststats.fields import FieldValueAccessor
from poststats.ingest import ImportCoordinator
from poststats.mapping import ColumnMappingResolver
from poststats.storage import KeyValueStore


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return KeyValueStore(session_factory)


@pytest.fixture
def resolver(store):
    return ColumnMappingResolver(store)


@pytest.fixture
def accessor(resolver):
    return FieldValueAccessor(resolver)


@pytest.fixture
def messages():
    return []


@pytest.fixture
def coordinator(store, resolver, messages):
    return ImportCoordinator(store, resolver, notify=messages.append)


def post_row(post_id, account_id="A1", account_name="Alpha", likes=0, comments=0, shares=0,
             saves=0, follows=0, reach=0, views=0, post_type="Bild", publish_time="2025-03-01 10:00"):
    """One row of a Swedish-locale export with every required column."""
    return {
        "Publicerings-id": post_id,
        "Konto-id": account_id,
        "Kontonamn": account_name,
        "Kontots användarnamn": account_name.lower(),
        "Beskrivning": f"Post {post_id}",
        "Publiceringstid": publish_time,
        "Inläggstyp": post_type,
        "Permalänk": f"https://example.com/p/{post_id}",
        "Visningar": views,
        "Räckvidd": reach,
        "Gilla-markeringar": likes,
        "Kommentarer": comments,
        "Delningar": shares,
        "Följer": follows,
        "Sparade objekt": saves,
    }


def to_csv(rows) -> str:
    return pd.DataFrame(rows).to_csv(index=False)


@pytest.fixture
def sample_csv():
    return to_csv([
        post_row("p1", "A1", "Alpha", likes=5, comments=1, shares=0, saves=2, follows=1, reach=100,
                 post_type="Bild", publish_time="2025-03-01 10:00"),
        post_row("p2", "A1", "Alpha", likes=3, comments=0, shares=2, saves=0, follows=0, reach=51,
                 post_type="Reel", publish_time="2025-03-03 18:30"),
        post_row("p3", "B2", "Beta", likes=10, comments=4, shares=1, saves=1, follows=3, reach=300,
                 post_type="Bild", publish_time="2025-03-02 09:15"),
    ])
