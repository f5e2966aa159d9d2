from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from backend.models import Activity, Kiosk, OrderContext
from ordering.collaborators import KioskService
from ordering.kiosk import load_kiosk


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - kiosk: the kiosk this terminal is logged in as, None in room mode
      - activities: activities the kiosk is bound to
      - context: the activity or room currently ordered for
    """

    kiosk: Optional[Kiosk] = None
    activities: List[Activity] = field(default_factory=list)
    context: Optional[OrderContext] = None

    async def load_kiosk(self, service: KioskService) -> Kiosk:
        """Fetch the kiosk and its activities. Errors propagate to the caller."""
        self.kiosk, self.activities = await load_kiosk(service)
        return self.kiosk

    @property
    def kiosk_id(self) -> Optional[str]:
        return self.kiosk.id if self.kiosk else None

    @property
    def selectable_contexts(self) -> int:
        return len(self.activities)

    def select(self, context: OrderContext) -> None:
        self.context = context

    def clear_context(self) -> None:
        self.context = None
