from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, Header

from views.modal_dialog import QuitDialogModal


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(self, header_sub_title: str = "") -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "Canteen Orderstation"
        self.sub_title = header_sub_title

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer(show_command_palette=False)

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
