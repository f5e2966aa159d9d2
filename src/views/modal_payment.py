from typing import Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from backend.models import PaymentMethod


class PaymentMethodModal(ModalScreen[Optional[PaymentMethod]]):
    """
    Ask how the customer pays. Dismissed with the chosen method, or None on cancel.
    """

    CSS = """
    PaymentMethodModal {
        align: center middle;
        background: $background 60%;
    }

    #div-payment {
        width: 50;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #hort-payment-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, price_text: str):
        super().__init__()
        self.price_text = price_text

    def compose(self) -> ComposeResult:
        with Vertical(id="div-payment"):
            yield Label(f"Total: {self.price_text}")
            yield Label("How do you want to pay?")
            with Horizontal(id="hort-payment-buttons"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Cash", id="btn-cash", variant="success")
                yield Button("Card", id="btn-card", variant="primary")

    def on_mount(self):
        self.query_one("#btn-card").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-cash")
    def handle_cash(self):
        self.dismiss(PaymentMethod.CASH)

    @on(Button.Pressed, "#btn-card")
    def handle_card(self):
        self.dismiss(PaymentMethod.CARD)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self):
        self.dismiss(None)
