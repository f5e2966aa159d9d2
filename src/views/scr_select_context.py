from typing import List

from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label, ListItem, ListView

from backend.models import OrderContext
from views.base_screen import BaseScreen


class SelectContextScreen(BaseScreen):
    """
    Pick the activity (kiosk mode) or room to order for.
    Dismissed with the chosen OrderContext.
    """

    CSS = """
    #div-select {
        align: center top;
        padding: 1 4;
    }

    #list-contexts {
        height: auto;
        max-height: 80%;
        border: round $secondary;
    }
    """

    def __init__(self, contexts: List[OrderContext]):
        super().__init__()
        self.contexts = contexts
        kind = contexts[0].kind if contexts else "activity"
        self.configure(header_sub_title=f"Choose {kind}")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-select"):
            if self.contexts:
                yield Label("Where are you ordering for?")
            else:
                yield Label("Nothing to order for. Ask staff to set up this orderstation.")
            yield ListView(
                *(
                    ListItem(Label(c.name or c.id), id=f"ctx-{i}")
                    for i, c in enumerate(self.contexts)
                ),
                id="list-contexts",
            )

    def on_mount(self):
        self.query_one("#list-contexts").focus()

    @on(ListView.Selected, "#list-contexts")
    def handle_select(self, event: ListView.Selected):
        idx = int(event.item.id.removeprefix("ctx-"))
        self.dismiss(self.contexts[idx])
