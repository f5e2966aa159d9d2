from __future__ import annotations

from typing import Any, List, Optional

import httpx

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
from utils.config import Settings, settings
from utils.logger import get_logger

_logger = get_logger(__name__)


class ApiError(RuntimeError):
    """Any failure talking to the canteen backend: transport, status or payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    """
    Async client for the canteen backend's ``/v1`` REST API.

    Holds one ``httpx.AsyncClient`` for the lifetime of the station; close it
    with ``aclose()`` or use the client as an async context manager.
    """

    def __init__(
        self,
        config: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cookies = {}
        if config.SESSION_COOKIE:
            cookies[config.SESSION_COOKIE_NAME] = config.SESSION_COOKIE
        self._http = httpx.AsyncClient(
            base_url=config.API_URL.rstrip("/"),
            timeout=config.REQUEST_TIMEOUT,
            cookies=cookies,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *_exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = await self._http.request(method, path, **kwargs)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            raise ApiError(
                f"{method} {path} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e!r}") from e
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON") from e

    # ---------------------------
    # Catalog
    # ---------------------------

    async def list_products(self) -> List[Product]:
        """Products with their order windows still in stored UTC form."""
        docs = await self._request("GET", "/v1/products")
        return [Product.from_json(doc) for doc in docs]

    async def list_options(self) -> List[Option]:
        docs = await self._request("GET", "/v1/options")
        return [Option.from_json(doc) for doc in docs]

    # ---------------------------
    # Contexts & kiosk
    # ---------------------------

    async def get_activity(self, activity_id: str) -> Activity:
        return Activity.from_json(
            await self._request("GET", f"/v1/activities/{activity_id}")
        )

    async def list_activities(self) -> List[Activity]:
        docs = await self._request("GET", "/v1/activities")
        return [Activity.from_json(doc) for doc in docs]

    async def get_room(self, room_id: str) -> Room:
        return Room.from_json(await self._request("GET", f"/v1/rooms/{room_id}"))

    async def list_rooms(self) -> List[Room]:
        docs = await self._request("GET", "/v1/rooms")
        return [Room.from_json(doc) for doc in docs]

    async def get_current_kiosk(self) -> Kiosk:
        return Kiosk.from_json(await self._request("GET", "/v1/kiosks/me"))

    # ---------------------------
    # Orders
    # ---------------------------

    async def create_order(self, request: OrderRequest) -> Order:
        doc = await self._request("POST", "/v1/orders", json=request.to_json())
        try:
            order_id = doc["_id"]
        except (KeyError, TypeError) as e:
            raise ApiError("POST /v1/orders returned no order id") from e
        _logger.info(f"Order {order_id} created for {request.context.kind} {request.context.id}")
        return Order(
            id=order_id,
            context=request.context,
            products=request.products,
            options=request.options,
            skip_checkout=request.skip_checkout,
            kiosk_id=request.kiosk_id,
        )

    async def get_payment_status(self, order_id: str) -> PaymentStatus:
        doc = await self._request("GET", f"/v1/orders/{order_id}/paymentStatus")
        try:
            return PaymentStatus(doc["paymentStatus"])
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError(f"Unexpected payment status for order {order_id}") from e
