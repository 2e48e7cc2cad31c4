"""Console rendering of capture state and conversations."""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.conversation import Conversation

logger = logging.getLogger(__name__)

STATE_STYLES = {
    "idle": "white",
    "setup_required": "orange3",
    "capturing": "green",
    "processing": "cyan",
    "ai_processing": "magenta",
    "error": "red",
}


class ConversationConsole:
    """Prints capture state changes and conversation turns."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def on_state(self, state: str, error: Optional[str] = None, setup_required: bool = False) -> None:
        """Listener for the capture.state topic."""
        style = STATE_STYLES.get(state, "white")
        line = Text(f"● {state}", style=style)
        if setup_required:
            line.append("  setup required - grant audio capture permission", style="orange3")
        elif error:
            line.append(f"  {error}", style="red")
        self.console.print(line)

    def on_progress(self, elapsed_secs: int) -> None:
        """Listener for the capture.progress topic."""
        self.console.print(Text(f"  recording {elapsed_secs}s", style="dim"))

    def print_conversation(self, conversation: Optional[Conversation]) -> None:
        if conversation is None or not len(conversation):
            self.console.print(Panel("No turns recorded", title="Conversation"))
            return

        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("#", width=3)
        table.add_column("Transcript", ratio=1)
        table.add_column("Response", ratio=1)
        for index, turn in enumerate(conversation.turns, start=1):
            response = turn.ai_response if turn.ai_response is not None else Text("(no response)", style="dim")
            table.add_row(str(index), turn.transcript, response)

        self.console.print(Panel(table, title=f"Conversation {conversation.id[:8]} - {conversation.title}"))
