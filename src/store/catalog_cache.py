from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from backend.models import Option, Product
from store import database
from utils.logger import get_logger

_logger = get_logger(__name__)


async def save_catalog(
    products: List[Product], options: List[Option], fetched_at: datetime
) -> None:
    """
    Replace the cached catalog with the given lists in one transaction.

    Products are stored as fetched, windows still in UTC.
    """
    async with database.connect() as conn:
        await conn.execute("DELETE FROM catalog_items;")
        await conn.executemany(
            "INSERT INTO catalog_items(kind, position, item_id, doc) VALUES (?, ?, ?, ?);",
            [
                ("products", i, p.id, json.dumps(p.to_json()))
                for i, p in enumerate(products)
            ]
            + [
                ("options", i, o.id, json.dumps(o.to_json()))
                for i, o in enumerate(options)
            ],
        )
        await conn.execute(
            "INSERT OR REPLACE INTO catalog_meta(key, value) VALUES ('fetched_at', ?);",
            (fetched_at.astimezone(timezone.utc).isoformat(),),
        )
        await conn.commit()
    _logger.debug(f"Cached {len(products)} products and {len(options)} options")


async def load_catalog() -> Optional[Tuple[List[Product], List[Option], datetime]]:
    """Return (products, options, fetched_at) of the last saved catalog, or None."""
    async with database.connect() as conn:
        cur = await conn.execute(
            "SELECT value FROM catalog_meta WHERE key = 'fetched_at';"
        )
        meta = await cur.fetchone()
        await cur.close()
        if meta is None:
            return None

        cur = await conn.execute(
            "SELECT kind, doc FROM catalog_items ORDER BY kind, position;"
        )
        rows = await cur.fetchall()
        await cur.close()

    products = [Product.from_json(json.loads(r["doc"])) for r in rows if r["kind"] == "products"]
    options = [Option.from_json(json.loads(r["doc"])) for r in rows if r["kind"] == "options"]
    return products, options, datetime.fromisoformat(meta["value"])


async def clear_catalog() -> None:
    async with database.connect() as conn:
        await conn.execute("DELETE FROM catalog_items;")
        await conn.execute("DELETE FROM catalog_meta;")
        await conn.commit()
