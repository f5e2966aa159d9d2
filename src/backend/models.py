# dataclass models for documents exchanged with the canteen backend

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal, Optional, Tuple

ItemKind = Literal["products", "options"]
ContextKind = Literal["activity", "room"]


@dataclass(frozen=True)
class OrderWindow:
    """
    Daily recurring interval in which a product can be ordered.

    ``to`` earlier than ``from`` means the window spans midnight.
    """

    from_hour: int
    from_minute: int
    to_hour: int
    to_minute: int

    def __post_init__(self):
        for name in ("from_hour", "to_hour"):
            if not 0 <= getattr(self, name) <= 23:
                raise ValueError(f"{name} must be within 0..23")
        for name in ("from_minute", "to_minute"):
            if not 0 <= getattr(self, name) <= 59:
                raise ValueError(f"{name} must be within 0..59")

    @property
    def start(self) -> int:
        """minutes since midnight"""
        return self.from_hour * 60 + self.from_minute

    @property
    def end(self) -> int:
        return self.to_hour * 60 + self.to_minute

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> OrderWindow:
        return cls(
            from_hour=int(doc["from"]["hour"]),
            from_minute=int(doc["from"]["minute"]),
            to_hour=int(doc["to"]["hour"]),
            to_minute=int(doc["to"]["minute"]),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "from": {"hour": self.from_hour, "minute": self.from_minute},
            "to": {"hour": self.to_hour, "minute": self.to_minute},
        }


def _price(value: Any) -> Decimal:
    # str() first, so a JSON float like 12.5 does not carry binary noise
    price = Decimal(str(value))
    if price < 0:
        raise ValueError("price must not be negative")
    return price


@dataclass(frozen=True)
class Option:
    id: str
    name: str
    price: Decimal
    image_url: Optional[str] = None

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Option:
        return cls(
            id=doc["_id"],
            name=doc["name"],
            price=_price(doc["price"]),
            image_url=doc.get("imageURL") or None,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "price": str(self.price),
            "imageURL": self.image_url or "",
        }


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: Decimal
    order_window: OrderWindow
    options: Tuple[str, ...] = ()  # compatible option ids, in display order
    image_url: Optional[str] = None

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Product:
        # options may arrive populated or as bare ids
        option_ids = tuple(
            o["_id"] if isinstance(o, dict) else o for o in doc.get("options", [])
        )
        return cls(
            id=doc["_id"],
            name=doc["name"],
            price=_price(doc["price"]),
            order_window=OrderWindow.from_json(doc["orderWindow"]),
            options=option_ids,
            image_url=doc.get("imageURL") or None,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "price": str(self.price),
            "orderWindow": self.order_window.to_json(),
            "options": list(self.options),
            "imageURL": self.image_url or "",
        }


@dataclass(frozen=True)
class Activity:
    id: str
    name: str

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Activity:
        return cls(id=doc["_id"], name=doc.get("name", ""))


@dataclass(frozen=True)
class Room:
    id: str
    name: str

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Room:
        return cls(id=doc["_id"], name=doc.get("name", ""))


@dataclass(frozen=True)
class Kiosk:
    id: str
    name: str
    activities: Tuple[str, ...] = ()  # bound activity ids

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Kiosk:
        return cls(
            id=doc["_id"],
            name=doc.get("name", ""),
            activities=tuple(
                a["_id"] if isinstance(a, dict) else a
                for a in doc.get("activities", [])
            ),
        )


@dataclass(frozen=True)
class OrderContext:
    """The activity or room an order is placed against."""

    kind: ContextKind
    id: str
    name: str = ""


@dataclass(frozen=True)
class LineItem:
    id: str
    quantity: int

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "quantity": self.quantity}


@dataclass(frozen=True)
class Order:
    id: str
    context: OrderContext
    products: Tuple[LineItem, ...] = ()
    options: Tuple[LineItem, ...] = ()
    skip_checkout: bool = False
    kiosk_id: Optional[str] = None


class PaymentStatus(StrEnum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class PaymentMethod(StrEnum):
    CASH = "Cash"
    CARD = "Card"


@dataclass(frozen=True)
class OrderRequest:
    """Body of ``POST /v1/orders``."""

    context: OrderContext
    products: Tuple[LineItem, ...]
    options: Tuple[LineItem, ...]
    skip_checkout: bool
    kiosk_id: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.kiosk_id is not None:
            body["kioskId"] = self.kiosk_id
        if self.context.kind == "activity":
            body["activityId"] = self.context.id
        else:
            body["roomId"] = self.context.id
        body["products"] = [item.to_json() for item in self.products]
        body["options"] = [item.to_json() for item in self.options]
        body["skipCheckout"] = self.skip_checkout
        return body
