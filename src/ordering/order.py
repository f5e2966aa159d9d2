from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Callable, List, Optional

from backend.models import (
    Order,
    OrderContext,
    OrderRequest,
    PaymentMethod,
    PaymentStatus,
)
from ordering.cart import Cart, has_any_selection, line_items
from ordering.collaborators import OrderService
from ordering.errors import (
    EmptyCartError,
    OrderCreateError,
    OrderInProgressError,
    OrderstationError,
    PaymentPollError,
)
from ordering.scheduler import Scheduler
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

POLL_JOB = "payment-poll"


class OrderStatus(StrEnum):
    LOADING = "loading"
    AWAITING_PAYMENT = "awaitingPayment"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (OrderStatus.SUCCESS, OrderStatus.ERROR)


class OrderWorkflow:
    """
    Drives one order from submission to a settled payment.

    ``loading`` is both the idle baseline and the state while the order is
    being created. Once created, the payment status is polled for cash and
    card alike: ``pending`` moves to ``awaitingPayment``, ``successful`` and
    ``failed`` end in ``success`` and ``error``. A failed create call, a
    failed poll and running past ``payment_timeout`` all end in ``error``.

    Nothing is retried. After a terminal state only ``reset()`` makes the
    workflow accept a new ``submit()``.
    """

    def __init__(
        self,
        service: OrderService,
        scheduler: Optional[Scheduler] = None,
        poll_interval: float = settings.PAYMENT_POLL_INTERVAL,
        payment_timeout: float = settings.PAYMENT_TIMEOUT,
    ):
        self._service = service
        self._scheduler = scheduler or Scheduler()
        self.poll_interval = poll_interval
        self.payment_timeout = payment_timeout

        self.status = OrderStatus.LOADING
        self.order: Optional[Order] = None
        self.error: Optional[OrderstationError] = None
        self.show_confirmation = False

        self._submitted = False
        self._polling = False
        self._poll_started_at = 0.0
        # bumped by reset(), responses from an older generation are dropped
        self._generation = 0
        self._listeners: List[Callable[[OrderStatus], None]] = []
        self._settled = asyncio.Event()

    def add_listener(self, callback: Callable[[OrderStatus], None]) -> None:
        self._listeners.append(callback)

    @property
    def in_progress(self) -> bool:
        """True from submit until reset; no new submit is accepted meanwhile."""
        return self._submitted

    @property
    def polling(self) -> bool:
        return self._polling

    def _set_status(self, status: OrderStatus) -> None:
        if status is not self.status:
            _logger.info(f"Order status {self.status} -> {status}")
        self.status = status
        if status.terminal:
            self._settled.set()
        for callback in self._listeners:
            callback(status)

    def _stop_polling(self) -> None:
        self._polling = False
        self._scheduler.cancel(POLL_JOB)

    def _fail(self, error: OrderstationError) -> None:
        _logger.error(str(error))
        self.error = error
        self._stop_polling()
        self._set_status(OrderStatus.ERROR)

    async def submit(
        self,
        cart: Cart,
        context: OrderContext,
        payment_method: PaymentMethod,
        kiosk_id: Optional[str] = None,
    ) -> Optional[Order]:
        """
        Create the order and start polling its payment status.

        Returns the created order, or None when creation failed (the status is
        then ``error``). Raises ``EmptyCartError`` or ``OrderInProgressError``
        without touching the state.
        """
        if self._submitted:
            raise OrderInProgressError("An order is already being processed")
        if not has_any_selection(cart):
            raise EmptyCartError("Cannot submit an empty cart")

        self._submitted = True
        self._settled.clear()
        self.error = None
        self.show_confirmation = True
        generation = self._generation
        self._set_status(OrderStatus.LOADING)

        request = OrderRequest(
            context=context,
            products=tuple(line_items(cart, "products")),
            options=tuple(line_items(cart, "options")),
            skip_checkout=payment_method == PaymentMethod.CASH,
            kiosk_id=kiosk_id,
        )
        try:
            order = await self._service.create_order(request)
        except Exception as e:
            if generation == self._generation:
                self._fail(OrderCreateError(f"Creating the order failed: {e}"))
            return None

        if generation != self._generation:
            _logger.warning(f"Order {order.id} created after reset, ignoring it")
            return None

        self.order = order
        self._polling = True
        self._poll_started_at = asyncio.get_running_loop().time()
        self._scheduler.every(
            POLL_JOB, self.poll_interval, self._poll_once, immediate=False
        )
        return order

    async def _poll_once(self) -> None:
        if not self._polling or self.order is None:
            return
        generation = self._generation
        elapsed = asyncio.get_running_loop().time() - self._poll_started_at
        if elapsed > self.payment_timeout:
            self._fail(
                PaymentPollError(
                    f"Payment for order {self.order.id} not settled after {self.payment_timeout:.0f}s"
                )
            )
            return

        try:
            payment_status = await self._service.get_payment_status(self.order.id)
        except Exception as e:
            if generation == self._generation and self._polling:
                self._fail(PaymentPollError(f"Reading the payment status failed: {e}"))
            return

        # a straggler response after stop or reset must not re-arm anything
        if generation != self._generation or not self._polling:
            return

        if payment_status == PaymentStatus.SUCCESSFUL:
            self._stop_polling()
            self._set_status(OrderStatus.SUCCESS)
        elif payment_status == PaymentStatus.FAILED:
            self._fail(PaymentPollError(f"Payment for order {self.order.id} failed"))
        else:
            self._set_status(OrderStatus.AWAITING_PAYMENT)

    async def wait_settled(self, timeout: Optional[float] = None) -> OrderStatus:
        """Wait until the status is terminal and return it."""
        await asyncio.wait_for(self._settled.wait(), timeout)
        return self.status

    def reset(self) -> None:
        """Drop the current order and return to the idle ``loading`` baseline."""
        self._stop_polling()
        self._generation += 1
        self._submitted = False
        self._settled.clear()
        self.order = None
        self.error = None
        self.show_confirmation = False
        self._set_status(OrderStatus.LOADING)
