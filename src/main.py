from typing import List

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from backend.client import ApiClient, ApiError
from backend.models import OrderContext
from utils.config import settings
from utils.logger import get_logger
from utils.messages import QuitRequestedMessage
from utils.state import GlobalState
from views.modal_dialog import DialogModal
from views.scr_order import OrderScreen
from views.scr_select_context import SelectContextScreen

_logger = get_logger(__name__)


class OrderstationApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    state: GlobalState
    api: ApiClient

    def __init__(self, api: ApiClient | None = None):
        super().__init__()
        self.state = GlobalState()
        self.api = api or ApiClient()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        await self.api.aclose()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    async def load_contexts(self) -> List[OrderContext]:
        if settings.MODE == "room":
            rooms = await self.api.list_rooms()
            return [OrderContext("room", r.id, r.name) for r in rooms]

        await self.state.load_kiosk(self.api)
        return [OrderContext("activity", a.id, a.name) for a in self.state.activities]

    @work
    async def main_flow(self):
        while True:
            try:
                contexts = await self.load_contexts()
            except ApiError as e:
                _logger.error(f"Loading contexts failed: {e}")
                retry = await self.push_screen_wait(
                    DialogModal(
                        "Could not reach the canteen server.",
                        primary_text="Retry",
                        secondary_text="Quit",
                        tone="warning",
                    )
                )
                if not retry:
                    self.exit()
                    return
                continue

            if len(contexts) == 1:
                context = contexts[0]
            else:
                context = await self.push_screen_wait(SelectContextScreen(contexts))
            self.state.select(context)

            reason = await self.push_screen_wait(
                OrderScreen(
                    context,
                    self.api,
                    kiosk_id=self.state.kiosk_id,
                    selectable_contexts=len(contexts),
                )
            )
            self.state.clear_context()
            if reason == "session_invalid":
                self.notify(
                    f"{context.name or context.id} is no longer available.",
                    severity="warning",
                )


def main():
    app = OrderstationApp()
    app.run()


if __name__ == "__main__":
    main()
