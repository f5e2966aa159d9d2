import asyncio
from typing import Iterable, List, Tuple

from backend.models import Activity, Kiosk
from ordering.collaborators import KioskService


def kiosk_activities(kiosk: Kiosk, activities: Iterable[Activity]) -> List[Activity]:
    """Activities the kiosk is bound to, in the backend's order."""
    bound = set(kiosk.activities)
    return [a for a in activities if a.id in bound]


async def load_kiosk(service: KioskService) -> Tuple[Kiosk, List[Activity]]:
    """Fetch the logged in kiosk together with the activities it may order for."""
    kiosk, activities = await asyncio.gather(
        service.get_current_kiosk(), service.list_activities()
    )
    return kiosk, kiosk_activities(kiosk, activities)
