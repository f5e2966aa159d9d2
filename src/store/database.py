# manages the connection to the local cache db, helpers internal to the store package
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = settings.CACHE_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS catalog_items (
    kind     TEXT    NOT NULL CHECK (kind IN ('products', 'options')),
    position INTEGER NOT NULL,
    item_id  TEXT    NOT NULL,
    doc      TEXT    NOT NULL,
    PRIMARY KEY (kind, position)
);

CREATE TABLE IF NOT EXISTS catalog_meta (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_initialized = False
_init_lock = asyncio.Lock()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Creates the parent directory and the schema on first use.
    """
    global _initialized
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                _logger.info(f"Initializing catalog cache at {DB_PATH}...")
                await conn.executescript(SCHEMA)
                await conn.commit()
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
