from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, LoadingIndicator, MarkdownViewer

from ordering.order import OrderStatus
from utils.messages import OrderStatusChangedMessage

STATUS_CAPTIONS = {
    OrderStatus.LOADING: "Sending your order...",
    OrderStatus.AWAITING_PAYMENT: "Please complete the payment on the card terminal.",
    OrderStatus.SUCCESS: "Thank you! Your order has been received.",
    OrderStatus.ERROR: "Something went wrong, the order was not completed.",
}


class OrderConfirmationModal(ModalScreen[None]):
    """
    Follows the order status until it settles.

    Closing is only possible once the status is terminal; the order screen
    resets the station when this modal is dismissed.
    """

    CSS = """
    OrderConfirmationModal {
        align: center middle;
        background: $background 60%;
    }

    #div-confirmation {
        width: 70;
        height: auto;
        max-height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #md-summary {
        height: auto;
        max-height: 20;
    }
    """

    def __init__(self, summary_md: str, status: OrderStatus):
        super().__init__()
        self.summary_md = summary_md
        self.status = status

    def compose(self) -> ComposeResult:
        with Vertical(id="div-confirmation"):
            yield MarkdownViewer(
                self.summary_md, id="md-summary", show_table_of_contents=False
            )
            yield LoadingIndicator(id="loading-order")
            yield Label("", id="label-order-status")
            yield Button("Close", id="btn-close", variant="primary", disabled=True)

    def on_mount(self):
        self.show_status(self.status)

    def show_status(self, status: OrderStatus) -> None:
        self.status = status
        self.query_one("#label-order-status", Label).update(STATUS_CAPTIONS[status])
        self.query_one("#loading-order").display = not status.terminal
        close_btn = self.query_one("#btn-close", Button)
        close_btn.disabled = not status.terminal
        if status.terminal:
            close_btn.variant = "success" if status is OrderStatus.SUCCESS else "error"
            close_btn.focus()

    @on(OrderStatusChangedMessage)
    def handle_status_change(self, message: OrderStatusChangedMessage):
        self.show_status(message.status)

    @on(Button.Pressed, "#btn-close")
    def handle_close(self):
        if self.status.terminal:
            self.dismiss(None)
