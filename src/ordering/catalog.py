from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from backend.models import Option, Product
from ordering.collaborators import CatalogService
from ordering.errors import CatalogFetchError
from ordering.timewindow import convert_order_window_from_utc
from store import catalog_cache
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Products and options as one immutable unit; windows in local time."""

    products: Tuple[Product, ...] = ()
    options: Tuple[Option, ...] = ()
    fetched_at: Optional[datetime] = None
    stale: bool = False  # loaded from the local cache, not the backend
    _by_id: dict = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        self._by_id.update({("products", p.id): p for p in self.products})
        self._by_id.update({("options", o.id): o for o in self.options})

    def product(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(("products", product_id))

    def option(self, option_id: str) -> Optional[Option]:
        return self._by_id.get(("options", option_id))

    def options_for(self, product: Product) -> Tuple[Option, ...]:
        """Compatible options of a product, in the product's order."""
        return tuple(o for o in map(self.option, product.options) if o is not None)


EMPTY_CATALOG = CatalogSnapshot()


def _localize(products, utc_offset: Optional[timedelta]) -> Tuple[Product, ...]:
    return tuple(
        replace(p, order_window=convert_order_window_from_utc(p.order_window, utc_offset))
        for p in products
    )


class CatalogRefresher:
    """
    Fetches the catalog and keeps the last good snapshot.

    ``current`` is only ever swapped for a complete new snapshot, so readers
    never see products from one fetch next to options from another. A failed
    refresh leaves the previous snapshot in place and raises
    ``CatalogFetchError``.
    """

    def __init__(
        self,
        service: CatalogService,
        use_cache: bool = True,
        utc_offset: Optional[timedelta] = None,
    ):
        self._service = service
        self._use_cache = use_cache
        self._utc_offset = utc_offset
        self.current: CatalogSnapshot = EMPTY_CATALOG

    async def load_cached(self) -> CatalogSnapshot:
        """Seed ``current`` from the local cache if nothing was fetched yet."""
        if not self._use_cache or self.current.fetched_at is not None:
            return self.current
        try:
            cached = await catalog_cache.load_catalog()
        except Exception:
            _logger.exception("Reading the catalog cache failed")
            return self.current
        if cached is None:
            return self.current
        products, options, fetched_at = cached
        self.current = CatalogSnapshot(
            products=_localize(products, self._utc_offset),
            options=tuple(options),
            fetched_at=fetched_at,
            stale=True,
        )
        _logger.info(f"Using cached catalog from {fetched_at.isoformat()}")
        return self.current

    async def refresh(self) -> CatalogSnapshot:
        try:
            products, options = await asyncio.gather(
                self._service.list_products(), self._service.list_options()
            )
        except Exception as e:
            _logger.warning(f"Catalog refresh failed, keeping previous catalog: {e}")
            raise CatalogFetchError(str(e)) from e

        fetched_at = datetime.now(timezone.utc)
        if self._use_cache:
            try:
                await catalog_cache.save_catalog(products, options, fetched_at)
            except Exception:
                _logger.exception("Writing the catalog cache failed")

        self.current = CatalogSnapshot(
            products=_localize(products, self._utc_offset),
            options=tuple(options),
            fetched_at=fetched_at,
        )
        _logger.info(
            f"Catalog refreshed: {len(products)} products, {len(options)} options"
        )
        return self.current
