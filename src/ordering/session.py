from enum import Enum
from typing import Callable, List, Optional

from backend.models import OrderContext
from ordering.collaborators import ContextService
from utils.logger import get_logger

_logger = get_logger(__name__)


class SessionCheck(Enum):
    VALID = "valid"
    INVALID = "invalid"


class SessionValidator:
    """
    Checks that the activity or room an orderstation is bound to still exists.

    Any failure of the lookup, not-found or transport alike, yields
    ``SessionCheck.INVALID`` and fires the redirect callbacks once. Nothing is
    retried until the next call.
    """

    def __init__(
        self,
        service: ContextService,
        on_invalid: Optional[Callable[[OrderContext], None]] = None,
    ):
        self._service = service
        self._on_invalid: List[Callable[[OrderContext], None]] = []
        if on_invalid is not None:
            self._on_invalid.append(on_invalid)

    def add_redirect_listener(self, callback: Callable[[OrderContext], None]) -> None:
        self._on_invalid.append(callback)

    async def _exists(self, context: OrderContext) -> None:
        if context.kind == "activity":
            await self._service.get_activity(context.id)
        elif context.kind == "room":
            await self._service.get_room(context.id)
        else:
            raise ValueError(f"Unknown context kind {context.kind!r}")

    async def validate(self, context: OrderContext) -> SessionCheck:
        try:
            await self._exists(context)
        except Exception as e:  # any failure means the context is gone
            _logger.warning(
                f"{context.kind.capitalize()} {context.id} failed validation ({e}), redirecting"
            )
            for callback in self._on_invalid:
                callback(context)
            return SessionCheck.INVALID
        _logger.debug(f"{context.kind.capitalize()} {context.id} is valid")
        return SessionCheck.VALID
