from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Tuple

from backend.models import ItemKind, LineItem

ITEM_KINDS: Tuple[ItemKind, ...] = ("products", "options")


def _frozen(items: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(items))


@dataclass(frozen=True, eq=False)
class Cart:
    """
    Item id -> quantity for products and options.

    A cart is a value: it is never changed after construction, ``mutate``
    hands back a new one. Only strictly positive quantities are stored.
    """

    products: Mapping[str, int] = field(default_factory=dict)
    options: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        for kind in ITEM_KINDS:
            items = getattr(self, kind)
            if any(q <= 0 for q in items.values()):
                raise ValueError(f"{kind} quantities must be positive")
            object.__setattr__(self, kind, _frozen(items))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Cart):
            return NotImplemented
        return dict(self.products) == dict(other.products) and dict(
            self.options
        ) == dict(other.options)

    def __hash__(self) -> int:
        return hash(
            (frozenset(self.products.items()), frozenset(self.options.items()))
        )


EMPTY_CART = Cart()


def _check_kind(kind: str) -> None:
    if kind not in ITEM_KINDS:
        raise ValueError(f"Unknown item kind {kind!r}, expected one of {ITEM_KINDS}")


def mutate(cart: Cart, item_id: str, kind: ItemKind, delta: int) -> Cart:
    """
    Return a new cart with ``delta`` added to the item's quantity.

    A missing item counts as 0. When the result drops to 0 or below the item
    is removed rather than kept at 0.
    """
    _check_kind(kind)
    items = dict(getattr(cart, kind))
    new_qty = items.get(item_id, 0) + delta
    if new_qty <= 0:
        items.pop(item_id, None)
    else:
        items[item_id] = new_qty

    if kind == "products":
        return Cart(products=items, options=cart.options)
    return Cart(products=cart.products, options=items)


def quantity(cart: Cart, item_id: str, kind: ItemKind) -> int:
    _check_kind(kind)
    return getattr(cart, kind).get(item_id, 0)


def has_any_selection(cart: Cart) -> bool:
    """True if at least one product or option is in the cart."""
    return any(q > 0 for kind in ITEM_KINDS for q in getattr(cart, kind).values())


def line_items(cart: Cart, kind: ItemKind) -> List[LineItem]:
    _check_kind(kind)
    return [LineItem(id=k, quantity=q) for k, q in getattr(cart, kind).items()]
