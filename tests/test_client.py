import json
import unittest
from decimal import Decimal

import httpx

from backend.client import ApiClient, ApiError
from backend.models import (
    LineItem,
    OrderContext,
    OrderRequest,
    OrderWindow,
    PaymentStatus,
)
from utils.config import Settings

PRODUCT_DOC = {
    "_id": "p1",
    "name": "Toast",
    "price": 25,
    "orderWindow": {"from": {"hour": 6, "minute": 0}, "to": {"hour": 9, "minute": 30}},
    "options": [{"_id": "o1", "name": "Cheese"}, "o2"],
    "imageURL": "",
}


class ApiClientTestCase(unittest.IsolatedAsyncioTestCase):
    def make_client(self, handler, **config):
        self.requests = []

        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        client = ApiClient(
            Settings(API_URL="http://canteen.test/", **config),
            transport=httpx.MockTransport(recording),
        )
        self.addAsyncCleanup(client.aclose)
        return client

    async def test_list_products_parses_documents(self):
        client = self.make_client(lambda r: httpx.Response(200, json=[PRODUCT_DOC]))
        products = await client.list_products()

        self.assertEqual(str(self.requests[0].url), "http://canteen.test/v1/products")
        self.assertEqual(len(products), 1)
        product = products[0]
        self.assertEqual(product.id, "p1")
        self.assertEqual(product.price, Decimal(25))
        self.assertEqual(product.order_window, OrderWindow(6, 0, 9, 30))
        self.assertEqual(product.options, ("o1", "o2"))
        self.assertIsNone(product.image_url)

    async def test_list_options(self):
        client = self.make_client(
            lambda r: httpx.Response(
                200, json=[{"_id": "o1", "name": "Cheese", "price": 2.5, "imageURL": "x.png"}]
            )
        )
        [option] = await client.list_options()
        self.assertEqual(option.price, Decimal("2.5"))
        self.assertEqual(option.image_url, "x.png")

    async def test_create_order_posts_body_and_returns_id(self):
        client = self.make_client(lambda r: httpx.Response(201, json={"_id": "ord-9"}))
        request = OrderRequest(
            context=OrderContext("room", "room-3"),
            products=(LineItem("p1", 2),),
            options=(),
            skip_checkout=True,
        )
        order = await client.create_order(request)

        sent = self.requests[0]
        self.assertEqual(sent.method, "POST")
        self.assertEqual(sent.url.path, "/v1/orders")
        self.assertEqual(
            json.loads(sent.content),
            {
                "roomId": "room-3",
                "products": [{"id": "p1", "quantity": 2}],
                "options": [],
                "skipCheckout": True,
            },
        )
        self.assertEqual(order.id, "ord-9")
        self.assertTrue(order.skip_checkout)

    async def test_payment_status(self):
        client = self.make_client(
            lambda r: httpx.Response(200, json={"paymentStatus": "pending"})
        )
        status = await client.get_payment_status("ord-9")
        self.assertIs(status, PaymentStatus.PENDING)
        self.assertEqual(self.requests[0].url.path, "/v1/orders/ord-9/paymentStatus")

    async def test_unknown_payment_status_is_an_error(self):
        client = self.make_client(
            lambda r: httpx.Response(200, json={"paymentStatus": "maybe"})
        )
        with self.assertRaises(ApiError):
            await client.get_payment_status("ord-9")

    async def test_http_error_is_wrapped(self):
        client = self.make_client(lambda r: httpx.Response(404, json={"error": "nope"}))
        with self.assertRaises(ApiError) as ctx:
            await client.get_activity("gone")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_transport_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = self.make_client(handler)
        with self.assertRaises(ApiError) as ctx:
            await client.get_room("r1")
        self.assertIsNone(ctx.exception.status_code)

    async def test_invalid_json_is_wrapped(self):
        client = self.make_client(lambda r: httpx.Response(200, content=b"<html>"))
        with self.assertRaises(ApiError):
            await client.list_activities()

    async def test_kiosk_and_session_cookie(self):
        client = self.make_client(
            lambda r: httpx.Response(
                200, json={"_id": "k1", "name": "Hall", "activities": [{"_id": "a1"}, "a2"]}
            ),
            SESSION_COOKIE="secret",
        )
        kiosk = await client.get_current_kiosk()
        self.assertEqual(kiosk.activities, ("a1", "a2"))
        self.assertIn("connect.sid=secret", self.requests[0].headers["cookie"])


if __name__ == "__main__":
    unittest.main()
