import asyncio
import unittest
from datetime import datetime, timedelta

from backend.models import Activity, OrderContext, OrderWindow, PaymentMethod, PaymentStatus
from fakes import FakeBackend, make_option, make_product
from ordering.cart import EMPTY_CART
from ordering.errors import OrderCreateError
from ordering.order import OrderStatus
from ordering.session import SessionCheck
from ordering.station import OrderStation, StationEventKind
from utils.config import Settings

NOON = datetime(2024, 5, 1, 12, 0)


class OrderStationTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend(
            products=[
                make_product("P1", 50, options=["O1"]),
                make_product("dinner", 80, OrderWindow(17, 0, 20, 0)),
            ],
            options=[make_option("O1", 5)],
            activities=[Activity("act-1", "Lunch")],
        )
        self.config = Settings(
            PAYMENT_POLL_INTERVAL=0,
            PAYMENT_TIMEOUT=5,
            CATALOG_REFRESH_INTERVAL=3600,
            SESSION_VALIDATE_INTERVAL=3600,
            AVAILABILITY_INTERVAL=3600,
        )
        self.now = NOON
        self.station = self.make_station(OrderContext("activity", "act-1", "Lunch"))

    def make_station(self, context, selectable_contexts=1):
        station = OrderStation(
            context,
            self.backend,
            kiosk_id="kiosk-1",
            selectable_contexts=selectable_contexts,
            config=self.config,
            use_cache=False,
            clock=lambda: self.now,
            utc_offset=timedelta(0),
        )
        self.events = []
        station.subscribe(self.events.append)
        self.addCleanup(station.close)
        return station

    def event_kinds(self):
        return [e.kind for e in self.events]

    async def test_cart_price_and_validity(self):
        await self.station.refresh_catalog()
        self.assertFalse(self.station.form_is_valid)

        self.station.change_cart("P1", "products", 2)
        self.assertEqual(dict(self.station.cart.products), {"P1": 2})
        self.assertEqual(self.station.price, 100)
        self.assertTrue(self.station.form_is_valid)

        self.station.change_cart("O1", "options", 1)
        self.assertEqual(self.station.price, 105)

        self.station.change_cart("O1", "options", -1)
        self.station.change_cart("P1", "products", -2)
        self.assertEqual(self.station.cart, EMPTY_CART)
        self.assertEqual(self.station.price, 0)
        self.assertFalse(self.station.form_is_valid)
        self.assertEqual(self.event_kinds().count(StationEventKind.CART_CHANGED), 4)

    async def test_price_follows_catalog_refresh(self):
        await self.station.refresh_catalog()
        self.station.change_cart("P1", "products", 1)
        self.assertEqual(self.station.price, 50)

        self.backend.products = [make_product("P1", 60)]
        await self.station.refresh_catalog()
        self.assertEqual(self.station.price, 60)

        self.backend.products = []
        await self.station.refresh_catalog()
        self.assertEqual(self.station.price, 0)
        # the cart keeps the id even though the product is gone
        self.assertEqual(dict(self.station.cart.products), {"P1": 1})

    async def test_failed_refresh_keeps_stale_catalog(self):
        self.assertTrue(await self.station.refresh_catalog())
        snapshot = self.station.catalog

        self.backend.fail_catalog = True
        self.assertFalse(await self.station.refresh_catalog())
        self.assertIs(self.station.catalog, snapshot)
        self.assertEqual(len(self.station.catalog.products), 2)
        self.assertEqual(self.events[-1].kind, StationEventKind.CATALOG_ERROR)

    async def test_availability(self):
        await self.station.refresh_catalog()
        self.assertEqual(self.station.availability, {"P1": True, "dinner": False})

        self.events.clear()
        self.now = datetime(2024, 5, 1, 18, 30)
        self.assertEqual(
            self.station.update_availability(), {"P1": True, "dinner": True}
        )
        self.assertEqual(self.event_kinds(), [StationEventKind.AVAILABILITY_CHANGED])

        # unchanged availability is not announced again
        self.station.update_availability()
        self.assertEqual(len(self.events), 1)

    async def test_session_invalid_leaves_cart_untouched(self):
        self.station = self.make_station(OrderContext("activity", "deleted"))
        self.station.change_cart("P1", "products", 3)
        cart = self.station.cart

        self.assertIs(await self.station.validate_session(), SessionCheck.INVALID)
        self.assertEqual(self.event_kinds().count(StationEventKind.SESSION_INVALID), 1)
        self.assertIs(self.station.cart, cart)

    async def test_card_order_through_station(self):
        self.backend.payment_statuses = [
            PaymentStatus.PENDING,
            PaymentStatus.PENDING,
            PaymentStatus.SUCCESSFUL,
        ]
        await self.station.refresh_catalog()
        self.station.change_cart("P1", "products", 1)

        order = await self.station.submit(PaymentMethod.CARD)
        self.assertTrue(self.station.show_confirmation)
        self.assertEqual(order.kiosk_id, "kiosk-1")
        self.assertEqual(await self.station.wait_settled(timeout=2), OrderStatus.SUCCESS)

        statuses = [
            e.detail for e in self.events if e.kind is StationEventKind.ORDER_STATUS_CHANGED
        ]
        self.assertEqual(
            statuses,
            [
                OrderStatus.LOADING,
                OrderStatus.AWAITING_PAYMENT,
                OrderStatus.AWAITING_PAYMENT,
                OrderStatus.SUCCESS,
            ],
        )
        self.assertEqual(len(self.backend.create_calls), 1)
        self.assertEqual(len(self.backend.status_calls), 3)
        self.assertIsNone(self.station.order_error)

    async def test_failed_create_exposes_order_error(self):
        self.backend.fail_create = True
        self.station.change_cart("P1", "products", 1)

        self.assertIsNone(await self.station.submit(PaymentMethod.CARD))
        self.assertIs(self.station.order_status, OrderStatus.ERROR)
        self.assertIsInstance(self.station.order_error, OrderCreateError)

        self.station.reset()
        self.assertIsNone(self.station.order_error)

    async def test_reset_clears_cart_and_reports_redirect(self):
        self.station.change_cart("P1", "products", 1)
        await self.station.submit(PaymentMethod.CASH)
        await self.station.wait_settled(timeout=2)

        self.assertFalse(self.station.reset())
        self.assertEqual(self.station.cart, EMPTY_CART)
        self.assertIs(self.station.order_status, OrderStatus.LOADING)
        self.assertFalse(self.station.show_confirmation)
        self.assertFalse(self.station.submitting)

        multi = self.make_station(OrderContext("activity", "act-1"), selectable_contexts=2)
        self.assertTrue(multi.reset())

    async def test_start_runs_refresh_and_validation_then_close_stops_them(self):
        await self.station.start()
        await asyncio.sleep(0.05)
        self.assertEqual(self.backend.catalog_calls, 1)
        self.assertEqual(len(self.station.catalog.products), 2)
        self.assertIn(StationEventKind.CATALOG_CHANGED, self.event_kinds())
        self.assertNotIn(StationEventKind.SESSION_INVALID, self.event_kinds())

        self.station.close()
        self.assertFalse(self.station._scheduler.is_running("catalog"))
        self.assertFalse(self.station._scheduler.is_running("session"))
        self.assertFalse(self.station._scheduler.is_running("availability"))


if __name__ == "__main__":
    unittest.main()
