from textual.message import Message

from ordering.order import OrderStatus


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired by the order station after every cart mutation or reset.
    Triggers a redraw of the cart panel and the total.
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired after a catalog refresh or an availability update,
    the product list redraws itself.
    """

    bubble = True


class OrderStatusChangedMessage(Message):
    """
    Fired on every order status assignment, listened to by the confirmation modal.
    """

    bubble = True

    def __init__(self, status: OrderStatus) -> None:
        super().__init__()
        self.status = status
