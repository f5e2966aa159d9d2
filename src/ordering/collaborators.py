# structural types of the backend operations the engine depends on;
# backend.client.ApiClient satisfies all of them

from typing import List, Protocol

from backend.models import (
    Activity,
    Kiosk,
    Option,
    Order,
    OrderRequest,
    PaymentStatus,
    Product,
    Room,
)


class CatalogService(Protocol):
    async def list_products(self) -> List[Product]: ...

    async def list_options(self) -> List[Option]: ...


class ContextService(Protocol):
    async def get_activity(self, activity_id: str) -> Activity: ...

    async def get_room(self, room_id: str) -> Room: ...


class OrderService(Protocol):
    async def create_order(self, request: OrderRequest) -> Order: ...

    async def get_payment_status(self, order_id: str) -> PaymentStatus: ...


class KioskService(Protocol):
    async def get_current_kiosk(self) -> Kiosk: ...

    async def list_activities(self) -> List[Activity]: ...
