"""Yes/no confirmation modal for destructive bulk actions."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static


class ConfirmModal(ModalScreen[bool]):
    """Ask a yes/no question; dismisses with True only on an explicit yes."""

    CSS = """
    ConfirmModal {
        align: center middle;
        background: $background 60%;
    }

    #confirm-dialog {
        width: 56;
        height: auto;
        border: round $error;
        background: $panel;
        padding: 1 2;
    }

    #confirm-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #confirm-prompt {
        color: white;
        margin-bottom: 1;
    }

    #confirm-help {
        color: #dddddd;
    }
    """

    def __init__(self, prompt: str) -> None:
        super().__init__()
        self.prompt = prompt

    def compose(self) -> ComposeResult:
        with Container(id="confirm-dialog"):
            yield Static("Confirm", id="confirm-title")
            yield Static(self.prompt, id="confirm-prompt")
            yield Static("y confirm. n/Esc/q cancel.", id="confirm-help")

    def on_key(self, event: Key) -> None:
        if event.key in {"y", "Y"}:
            self.dismiss(True)
            event.stop()
            return

        if event.key in {"n", "N", "escape", "q", "ctrl+c"}:
            self.dismiss(False)
            event.stop()
