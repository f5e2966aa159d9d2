from typing import Optional

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label, Rule

from backend.models import ItemKind, OrderContext
from ordering.errors import EmptyCartError, OrderInProgressError
from ordering.order import OrderStatus
from ordering.pricing import format_price, line_total
from ordering.station import OrderStation, StationBackend, StationEvent, StationEventKind
from ordering.timewindow import format_window
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    CatalogChangedMessage,
    OrderStatusChangedMessage,
)
from utils.pure import cart_summary_rows, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_confirmation import OrderConfirmationModal
from views.modal_payment import PaymentMethodModal

_logger = get_logger(__name__)


class OrderScreen(BaseScreen):
    """
    Product selection, cart and checkout for one activity or room.

    Dismissed with a short reason when the user has to go back to context
    selection: "switch", "reset" or "session_invalid".
    """

    CSS = """
    #div-menu {
        width: 1fr;
    }

    #div-cart {
        width: 44;
        border-left: solid $secondary;
        padding: 0 1;
    }

    #hort-title {
        height: auto;
    }

    #label-title {
        text-style: bold;
        width: 1fr;
    }

    #table-products {
        height: 2fr;
    }

    #table-options, #table-cart {
        height: 1fr;
    }

    #label-cart-total {
        text-style: bold;
        margin: 1 0;
    }
    """

    BINDINGS = [
        Binding("plus,equals_sign", "change(1)", "Add", show=True, key_display="+"),
        Binding("minus", "change(-1)", "Remove", show=True, key_display="-"),
        Binding("ctrl+o", "checkout", "Checkout", show=True),
    ]

    def __init__(
        self,
        context: OrderContext,
        backend: StationBackend,
        kiosk_id: Optional[str] = None,
        selectable_contexts: int = 1,
    ):
        super().__init__()
        self.configure(header_sub_title=context.name or context.id)
        self.station = OrderStation(
            context,
            backend,
            kiosk_id=kiosk_id,
            selectable_contexts=selectable_contexts,
        )
        self._confirmation: Optional[OrderConfirmationModal] = None
        self._pending_redirect: Optional[str] = None
        self._selected_product: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal():
            with Vertical(id="div-menu"):
                with Horizontal(id="hort-title"):
                    yield Label(
                        f"Order for {self.station.context.name or self.station.context.id}",
                        id="label-title",
                    )
                    yield Button("Switch", id="btn-switch")
                yield DataTable(id="table-products", cursor_type="row", zebra_stripes=True)
                yield Label("Options", id="label-options")
                yield DataTable(id="table-options", cursor_type="row", zebra_stripes=True)
            with Vertical(id="div-cart"):
                yield Label("Cart")
                yield DataTable(id="table-cart", cursor_type="row")
                yield Rule(line_style="dashed")
                yield Label("Total: Gratis", id="label-cart-total")
                with Horizontal():
                    yield Button("Clear", id="btn-clear-cart")
                    yield Button("Checkout", id="btn-checkout", variant="primary", disabled=True)

    async def on_mount(self):
        self.query_one("#table-products", DataTable).add_columns("Product", "Price", "Open", "Qty")
        self.query_one("#table-options", DataTable).add_columns("Option", "Price", "Qty")
        self.query_one("#table-cart", DataTable).add_columns("Item", "Qty", "Total")

        self.station.subscribe(self._on_station_event)
        await self.station.start()
        self.query_one("#table-products").focus()

    async def on_unmount(self):
        # stops catalog, session, availability and payment intervals
        self.station.close()

    # ---------------------------
    # Station events
    # ---------------------------

    def _on_station_event(self, event: StationEvent) -> None:
        match event.kind:
            case StationEventKind.CART_CHANGED:
                self.post_message(CartChangedMessage())
            case StationEventKind.CATALOG_CHANGED | StationEventKind.AVAILABILITY_CHANGED:
                self.post_message(CatalogChangedMessage())
            case StationEventKind.CATALOG_ERROR:
                self.notify(
                    f"Could not refresh the menu: {event.detail}", severity="error"
                )
            case StationEventKind.ORDER_STATUS_CHANGED:
                self._forward_status(event.detail)
            case StationEventKind.SESSION_INVALID:
                self._leave("session_invalid")

    def _forward_status(self, status: OrderStatus) -> None:
        if status is OrderStatus.ERROR and self.station.order_error is not None:
            self.notify(str(self.station.order_error), severity="error")
        if self._confirmation is not None:
            # read on mount if the modal is not running yet
            self._confirmation.status = status
            self._confirmation.post_message(OrderStatusChangedMessage(status))

    def _leave(self, reason: str) -> None:
        if self.station.submitting or self.app.screen is not self:
            # a modal is open, leave once the customer is done with it
            self._pending_redirect = reason
            return
        _logger.info(f"Leaving order screen: {reason}")
        self.station.close()
        self.dismiss(reason)

    def _flush_pending_redirect(self) -> None:
        if self._pending_redirect is None:
            return
        reason, self._pending_redirect = self._pending_redirect, None
        self._leave(reason)

    def on_screen_resume(self) -> None:
        # any modal closing lands here, including the quit dialog
        self._flush_pending_redirect()

    # ---------------------------
    # Rendering
    # ---------------------------

    @on(CatalogChangedMessage)
    def refresh_products(self) -> None:
        table = self.query_one("#table-products", DataTable)
        cursor = table.cursor_row
        table.clear()
        availability = self.station.availability
        for product in self.station.catalog.products:
            style = "" if availability.get(product.id) else "dim"
            qty = self.station.quantity(product.id, "products")
            table.add_row(
                Text(product.name, style=style),
                Text(format_price(product.price), style=style),
                Text(format_window(product.order_window), style=style),
                str(qty) if qty else "",
                key=product.id,
            )
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))
        self.refresh_options()
        self.refresh_cart()

    def refresh_options(self) -> None:
        table = self.query_one("#table-options", DataTable)
        table.clear()
        product = (
            self.station.catalog.product(self._selected_product)
            if self._selected_product
            else None
        )
        label = self.query_one("#label-options", Label)
        if product is None:
            label.update("Options")
            return
        label.update(f"Options for {product.name}")
        for option in self.station.catalog.options_for(product):
            qty = self.station.quantity(option.id, "options")
            table.add_row(option.name, format_price(option.price), str(qty) if qty else "", key=option.id)

    @on(CartChangedMessage)
    def refresh_cart(self) -> None:
        table = self.query_one("#table-cart", DataTable)
        table.clear()
        catalog = self.station.catalog
        cart = self.station.cart
        for kind, lookup in (("products", catalog.product), ("options", catalog.option)):
            for item_id, qty in getattr(cart, kind).items():
                entry = lookup(item_id)
                total = format_price(line_total(qty, entry.price)) if entry else "-"
                table.add_row(entry.name if entry else item_id, str(qty), total, key=f"{kind}:{item_id}")

        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_price(self.station.price)}"
        )
        self.query_one("#btn-checkout", Button).disabled = not self.station.form_is_valid

        # quantities in the menu tables follow the cart
        products = self.query_one("#table-products", DataTable)
        for product in catalog.products:
            qty = self.station.quantity(product.id, "products")
            if product.id in products.rows:
                products.update_cell(product.id, products.ordered_columns[3].key, str(qty) if qty else "")
        options = self.query_one("#table-options", DataTable)
        for option_id in list(options.rows):
            qty = self.station.quantity(option_id.value, "options")
            options.update_cell(option_id, options.ordered_columns[2].key, str(qty) if qty else "")

    @on(DataTable.RowHighlighted, "#table-products")
    def handle_product_highlight(self, event: DataTable.RowHighlighted):
        self._selected_product = event.row_key.value
        self.refresh_options()

    # ---------------------------
    # Cart actions
    # ---------------------------

    def _change(self, item_id: str, kind: ItemKind, delta: int) -> None:
        if kind == "products" and delta > 0 and not self.station.availability.get(item_id):
            self.notify("This product cannot be ordered right now.", severity="warning")
            return
        self.station.change_cart(item_id, kind, delta)

    def _focused_item(self) -> Optional[tuple[str, ItemKind]]:
        table = self.focused
        if not isinstance(table, DataTable) or not table.row_count:
            return None
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        if table.id == "table-products":
            return row_key, "products"
        if table.id == "table-options":
            return row_key, "options"
        if table.id == "table-cart":
            kind, item_id = row_key.split(":", 1)
            return item_id, kind
        return None

    def action_change(self, delta: int) -> None:
        focused = self._focused_item()
        if focused is not None:
            self._change(*focused, delta)

    @on(DataTable.RowSelected, "#table-products")
    def handle_product_selected(self, event: DataTable.RowSelected):
        self._change(event.row_key.value, "products", 1)

    @on(DataTable.RowSelected, "#table-options")
    def handle_option_selected(self, event: DataTable.RowSelected):
        self._change(event.row_key.value, "options", 1)

    @on(Button.Pressed, "#btn-clear-cart")
    def handle_clear_cart(self) -> None:
        if self.station.submitting:
            return
        self.station.reset()

    @on(Button.Pressed, "#btn-switch")
    def handle_switch(self) -> None:
        self._leave("switch")

    # ---------------------------
    # Checkout
    # ---------------------------

    @on(Button.Pressed, "#btn-checkout")
    def handle_checkout_pressed(self) -> None:
        self.action_checkout()

    @work(exclusive=True, group="checkout")
    async def action_checkout(self) -> None:
        if not self.station.form_is_valid:
            self.notify("Cart is empty.", severity="warning")
            return
        if self.station.submitting:
            return

        method = await self.app.push_screen_wait(
            PaymentMethodModal(format_price(self.station.price))
        )
        if method is None:
            return

        summary = "### Your order\n\n" + generate_markdown_table(
            ["Item", "Price", "Qty", "Total"],
            cart_summary_rows(self.station.cart, self.station.catalog),
            ["l", "r", "c", "r"],
        )
        summary += f"\n\n**Total:** {format_price(self.station.price)}"

        self._confirmation = OrderConfirmationModal(summary, self.station.order_status)
        self.app.push_screen(self._confirmation, callback=self._on_confirmation_closed)
        try:
            await self.station.submit(method)
        except (EmptyCartError, OrderInProgressError) as e:
            self.notify(str(e), severity="warning")
            self._confirmation.dismiss(None)

    def _on_confirmation_closed(self, _result=None) -> None:
        self._confirmation = None
        if self.station.reset() and self._pending_redirect is None:
            self._pending_redirect = "reset"
        self._flush_pending_redirect()
