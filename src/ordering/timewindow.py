from datetime import datetime, time, timedelta
from typing import Dict, Iterable, Optional

from backend.models import OrderWindow, Product

MINUTES_PER_DAY = 24 * 60


def _minutes(now: datetime | time) -> int:
    return now.hour * 60 + now.minute


def is_available(window: OrderWindow, now: datetime | time) -> bool:
    """
    True if ``now`` falls inside the daily window, both bounds inclusive.

    ``now`` must be in the same clock as the window, i.e. local time once the
    window went through ``convert_order_window_from_utc``. A window whose
    ``from`` is later than its ``to`` wraps past midnight; ``from == to`` is
    open for that single minute only.
    """
    current = _minutes(now)
    start, end = window.start, window.end
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def _shift(minutes: int, offset_minutes: int) -> tuple[int, int]:
    shifted = (minutes + offset_minutes) % MINUTES_PER_DAY
    return divmod(shifted, 60)


def local_utc_offset() -> timedelta:
    return datetime.now().astimezone().utcoffset() or timedelta(0)


def convert_order_window_from_utc(
    window: OrderWindow, utc_offset: Optional[timedelta] = None
) -> OrderWindow:
    """
    Shift a window stored in UTC into local time.

    Both bounds move by the same offset and wrap around the day, so a window
    may start or stop wrapping past midnight after conversion.
    """
    if utc_offset is None:
        utc_offset = local_utc_offset()
    offset = int(utc_offset.total_seconds() // 60)
    from_hour, from_minute = _shift(window.start, offset)
    to_hour, to_minute = _shift(window.end, offset)
    return OrderWindow(from_hour, from_minute, to_hour, to_minute)


def availability_by_product(
    products: Iterable[Product], now: datetime | time
) -> Dict[str, bool]:
    return {p.id: is_available(p.order_window, now) for p in products}


def format_window(window: OrderWindow) -> str:
    return (
        f"{window.from_hour:02d}:{window.from_minute:02d} - "
        f"{window.to_hour:02d}:{window.to_minute:02d}"
    )
