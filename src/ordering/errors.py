class OrderstationError(Exception):
    """Base class of every error raised by the ordering engine."""


class CatalogFetchError(OrderstationError):
    """Products or options could not be fetched; the previous catalog stays in use."""


class OrderCreateError(OrderstationError):
    """The backend rejected or never answered the create-order call."""


class PaymentPollError(OrderstationError):
    """Payment status could not be read. Treated like a failed payment."""


class EmptyCartError(OrderstationError):
    """Submit was called with nothing in the cart."""


class OrderInProgressError(OrderstationError):
    """Submit was called while a previous submission has not been reset."""
