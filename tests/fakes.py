import asyncio
from decimal import Decimal
from typing import List, Optional

from backend.client import ApiError
from backend.models import (
    Activity,
    Kiosk,
    Option,
    Order,
    OrderRequest,
    OrderWindow,
    PaymentStatus,
    Product,
    Room,
)

ALL_DAY = OrderWindow(0, 0, 23, 59)


def make_product(pid: str, price, window: OrderWindow = ALL_DAY, options=()) -> Product:
    return Product(
        id=pid,
        name=f"Product {pid}",
        price=Decimal(str(price)),
        order_window=window,
        options=tuple(options),
    )


def make_option(oid: str, price) -> Option:
    return Option(id=oid, name=f"Option {oid}", price=Decimal(str(price)))


class FakeBackend:
    """
    In-memory stand-in for the canteen backend.

    ``payment_statuses`` is consumed one entry per poll; the last entry repeats.
    An entry that is an exception instance is raised instead of returned.
    """

    def __init__(
        self,
        products: Optional[List[Product]] = None,
        options: Optional[List[Option]] = None,
        activities: Optional[List[Activity]] = None,
        rooms: Optional[List[Room]] = None,
        payment_statuses=None,
    ):
        self.products = products or []
        self.options = options or []
        self.activities = {a.id: a for a in (activities or [])}
        self.rooms = {r.id: r for r in (rooms or [])}
        self.kiosk = Kiosk(id="kiosk-1", name="Front desk", activities=tuple(self.activities))
        self.payment_statuses = list(payment_statuses or [PaymentStatus.SUCCESSFUL])

        self.fail_catalog = False
        self.fail_create = False
        self.create_calls: List[OrderRequest] = []
        self.status_calls: List[str] = []
        self.catalog_calls = 0
        self.poll_gate: Optional[asyncio.Event] = None
        self.create_gate: Optional[asyncio.Event] = None

    async def list_products(self) -> List[Product]:
        self.catalog_calls += 1
        if self.fail_catalog:
            raise ApiError("GET /v1/products failed with HTTP 503", status_code=503)
        return list(self.products)

    async def list_options(self) -> List[Option]:
        if self.fail_catalog:
            raise ApiError("GET /v1/options failed with HTTP 503", status_code=503)
        return list(self.options)

    async def get_activity(self, activity_id: str) -> Activity:
        if activity_id not in self.activities:
            raise ApiError(f"GET /v1/activities/{activity_id} failed with HTTP 404", 404)
        return self.activities[activity_id]

    async def list_activities(self) -> List[Activity]:
        return list(self.activities.values())

    async def get_room(self, room_id: str) -> Room:
        if room_id not in self.rooms:
            raise ApiError(f"GET /v1/rooms/{room_id} failed with HTTP 404", 404)
        return self.rooms[room_id]

    async def get_current_kiosk(self) -> Kiosk:
        return self.kiosk

    async def create_order(self, request: OrderRequest) -> Order:
        self.create_calls.append(request)
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.fail_create:
            raise ApiError("POST /v1/orders failed with HTTP 500", 500)
        return Order(
            id=f"order-{len(self.create_calls)}",
            context=request.context,
            products=request.products,
            options=request.options,
            skip_checkout=request.skip_checkout,
            kiosk_id=request.kiosk_id,
        )

    async def get_payment_status(self, order_id: str) -> PaymentStatus:
        self.status_calls.append(order_id)
        if self.poll_gate is not None:
            await self.poll_gate.wait()
        idx = min(len(self.status_calls), len(self.payment_statuses)) - 1
        status = self.payment_statuses[idx]
        if isinstance(status, Exception):
            raise status
        return status
