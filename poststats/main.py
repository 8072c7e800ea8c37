import logging

from fastapi import FastAPI
from .config import LOG_LEVEL
from .database import SessionLocal, init_db
from .ingest import ImportCoordinator
from .mapping import ColumnMappingResolver
from .storage import KeyValueStore
from .api import router as api_router

logging.basicConfig(level=LOG_LEVEL)

# Ensure tables exist at startup (safe for SQLite)
init_db()

store = KeyValueStore(SessionLocal)
resolver = ColumnMappingResolver(store)

app = FastAPI(title="Post Statistics API", version="0.1.0")
app.state.store = store
app.state.resolver = resolver
app.state.coordinator = ImportCoordinator(store, resolver)
app.include_router(api_router)
