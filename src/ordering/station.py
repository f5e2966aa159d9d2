from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from backend.models import ItemKind, Order, OrderContext, PaymentMethod
from ordering import cart as cart_ops
from ordering.cart import EMPTY_CART, Cart
from ordering.catalog import CatalogRefresher, CatalogSnapshot
from ordering.collaborators import CatalogService, ContextService, OrderService
from ordering.errors import CatalogFetchError, OrderstationError
from ordering.order import OrderStatus, OrderWorkflow
from ordering.pricing import total_price
from ordering.scheduler import Scheduler
from ordering.session import SessionCheck, SessionValidator
from ordering.timewindow import availability_by_product
from utils.config import Settings, settings
from utils.logger import get_logger

_logger = get_logger(__name__)


class StationBackend(CatalogService, ContextService, OrderService, Protocol):
    pass


class StationEventKind(Enum):
    CART_CHANGED = "cart_changed"
    CATALOG_CHANGED = "catalog_changed"
    CATALOG_ERROR = "catalog_error"
    AVAILABILITY_CHANGED = "availability_changed"
    ORDER_STATUS_CHANGED = "order_status_changed"
    SESSION_INVALID = "session_invalid"


@dataclass(frozen=True)
class StationEvent:
    kind: StationEventKind
    detail: Any = None


class OrderStation:
    """
    Everything an order screen needs, bound to one activity or room.

    Owns the cart, the catalog snapshot and the order workflow. Derived values
    (price, form validity, availability) are recomputed explicitly whenever
    their inputs change, and every change is announced to subscribers as a
    ``StationEvent``.

    ``start()`` arms the catalog refresh, session validation and availability
    intervals; ``close()`` cancels them together with any payment polling.
    """

    def __init__(
        self,
        context: OrderContext,
        backend: StationBackend,
        kiosk_id: Optional[str] = None,
        selectable_contexts: int = 1,
        config: Settings = settings,
        use_cache: bool = True,
        clock: Callable[[], datetime] = datetime.now,
        utc_offset: Optional[timedelta] = None,
    ):
        self.context = context
        self.kiosk_id = kiosk_id
        self.selectable_contexts = selectable_contexts
        self._config = config
        self._clock = clock

        self._scheduler = Scheduler()
        self._catalog = CatalogRefresher(
            backend, use_cache=use_cache, utc_offset=utc_offset
        )
        self._validator = SessionValidator(backend, on_invalid=self._on_session_invalid)
        self._workflow = OrderWorkflow(
            backend,
            scheduler=self._scheduler,
            poll_interval=config.PAYMENT_POLL_INTERVAL,
            payment_timeout=config.PAYMENT_TIMEOUT,
        )
        self._workflow.add_listener(self._on_order_status)

        self._subscribers: List[Callable[[StationEvent], None]] = []
        self._cart: Cart = EMPTY_CART
        self._price = Decimal(0)
        self._availability: Dict[str, bool] = {}

    # ---------------------------
    # Observables
    # ---------------------------

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def catalog(self) -> CatalogSnapshot:
        return self._catalog.current

    @property
    def price(self) -> Decimal:
        return self._price

    @property
    def form_is_valid(self) -> bool:
        return cart_ops.has_any_selection(self._cart)

    @property
    def availability(self) -> Dict[str, bool]:
        return dict(self._availability)

    @property
    def order_status(self) -> OrderStatus:
        return self._workflow.status

    @property
    def order(self) -> Optional[Order]:
        return self._workflow.order

    @property
    def order_error(self) -> Optional[OrderstationError]:
        return self._workflow.error

    @property
    def show_confirmation(self) -> bool:
        return self._workflow.show_confirmation

    @property
    def submitting(self) -> bool:
        return self._workflow.in_progress

    def subscribe(self, callback: Callable[[StationEvent], None]) -> None:
        self._subscribers.append(callback)

    def _emit(self, kind: StationEventKind, detail: Any = None) -> None:
        event = StationEvent(kind, detail)
        for callback in self._subscribers:
            callback(event)

    # ---------------------------
    # Lifecycle
    # ---------------------------

    async def start(self) -> None:
        if (await self._catalog.load_cached()).fetched_at is not None:
            self._recompute_catalog_derived()
            self._emit(StationEventKind.CATALOG_CHANGED, self.catalog)

        self._scheduler.every(
            "catalog", self._config.CATALOG_REFRESH_INTERVAL, self.refresh_catalog
        )
        self._scheduler.every(
            "session", self._config.SESSION_VALIDATE_INTERVAL, self.validate_session
        )
        self._scheduler.every(
            "availability",
            self._config.AVAILABILITY_INTERVAL,
            self._availability_tick,
            immediate=False,
        )
        _logger.info(f"Orderstation started for {self.context.kind} {self.context.id}")

    def close(self) -> None:
        self._scheduler.cancel_all()
        _logger.info(f"Orderstation for {self.context.kind} {self.context.id} closed")

    # ---------------------------
    # Catalog, availability, session
    # ---------------------------

    def _recompute_price(self) -> None:
        self._price = total_price(
            self._cart, self.catalog.products, self.catalog.options
        )

    def _recompute_catalog_derived(self) -> None:
        self._recompute_price()
        self._availability = availability_by_product(
            self.catalog.products, self._clock()
        )

    async def refresh_catalog(self) -> bool:
        """Fetch the catalog; on failure keep the old one and emit a notice."""
        try:
            await self._catalog.refresh()
        except CatalogFetchError as e:
            self._emit(StationEventKind.CATALOG_ERROR, e)
            return False
        self._recompute_catalog_derived()
        self._emit(StationEventKind.CATALOG_CHANGED, self.catalog)
        return True

    def update_availability(self, now: Optional[datetime] = None) -> Dict[str, bool]:
        availability = availability_by_product(
            self.catalog.products, now or self._clock()
        )
        if availability != self._availability:
            self._availability = availability
            self._emit(StationEventKind.AVAILABILITY_CHANGED, self.availability)
        return self.availability

    async def _availability_tick(self) -> None:
        self.update_availability()

    async def validate_session(self) -> SessionCheck:
        return await self._validator.validate(self.context)

    def _on_session_invalid(self, context: OrderContext) -> None:
        self._emit(StationEventKind.SESSION_INVALID, context)

    # ---------------------------
    # Cart & order
    # ---------------------------

    def change_cart(self, item_id: str, kind: ItemKind, delta: int) -> Cart:
        self._cart = cart_ops.mutate(self._cart, item_id, kind, delta)
        self._recompute_price()
        self._emit(StationEventKind.CART_CHANGED, self._cart)
        return self._cart

    def quantity(self, item_id: str, kind: ItemKind) -> int:
        return cart_ops.quantity(self._cart, item_id, kind)

    async def submit(self, payment_method: PaymentMethod) -> Optional[Order]:
        return await self._workflow.submit(
            self._cart, self.context, payment_method, kiosk_id=self.kiosk_id
        )

    async def wait_settled(self, timeout: Optional[float] = None) -> OrderStatus:
        return await self._workflow.wait_settled(timeout)

    def _on_order_status(self, status: OrderStatus) -> None:
        self._emit(StationEventKind.ORDER_STATUS_CHANGED, status)

    def reset(self) -> bool:
        """
        Clear the cart and return the order workflow to idle.

        Returns True when the caller should go back to context selection,
        i.e. when this session can choose between several contexts.
        """
        self._workflow.reset()
        self._cart = EMPTY_CART
        self._recompute_price()
        self._emit(StationEventKind.CART_CHANGED, self._cart)
        return self.selectable_contexts > 1
