import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./poststats.db")

# Largest JSON payload kept in the key-value table; bigger values spill to blobs
STORE_VALUE_LIMIT = int(os.getenv("STORE_VALUE_LIMIT", "5000000"))
BLOB_VALUE_LIMIT = int(os.getenv("BLOB_VALUE_LIMIT", "200000000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
