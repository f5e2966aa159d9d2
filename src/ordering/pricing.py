from decimal import Decimal
from typing import Iterable, Mapping

from backend.models import Option, Product
from ordering.cart import Cart


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return unit_price * quantity


def _sum_kind(
    items: Mapping[str, int], catalog: Iterable[Product] | Iterable[Option]
) -> Decimal:
    prices = {entry.id: entry.price for entry in catalog}
    # ids no longer in the catalog contribute nothing
    return sum(
        (line_total(q, prices[item_id]) for item_id, q in items.items() if item_id in prices),
        Decimal(0),
    )


def total_price(
    cart: Cart, products: Iterable[Product], options: Iterable[Option]
) -> Decimal:
    """Total of the cart priced against the current catalog."""
    return _sum_kind(cart.products, products) + _sum_kind(cart.options, options)


def format_price(amount: Decimal) -> str:
    if amount == 0:
        return "Gratis"
    return f"{amount.normalize():f} kr"
