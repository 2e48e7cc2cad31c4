"""Line-based command loop for interactive use."""

import time
import logging
from typing import Callable

from rich.text import Text

from ..errors import Talk2AIError
from ..models.vad import CaptureMode
from .console import ConversationConsole

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  (enter)/r  start or stop recording
  s          stop and send (continuous mode)
  c          toggle continuous mode
  l          list quick actions
  q <n>      run quick action number n
  n          start a new conversation
  a          acknowledge the current error
  p          print the conversation
  h          show this help
  x          quit"""


class CommandHandler:
    """Maps typed commands onto an AssistantService."""

    def __init__(self, service, console: ConversationConsole, settle_seconds: float = 60.0):
        """Initialize command handler.

        Args:
            service: Running AssistantService
            console: Console used for output
            settle_seconds: How long to wait for processing after a stop
        """
        self.service = service
        self.console = console
        self.settle_seconds = settle_seconds

    def handle(self, line: str) -> bool:
        """Run one command. Returns False when the loop should end."""
        parts = line.strip().split()
        command = parts[0].lower() if parts else "r"
        logger.debug(f"Command: {line!r}")

        if command in ("x", "quit", "exit"):
            return False
        try:
            if command == "r":
                self._toggle_recording()
            elif command == "s":
                if self.service.manual_stop_and_send() is not None:
                    self._settle()
            elif command == "c":
                self._toggle_continuous()
            elif command == "l":
                self._list_quick_actions()
            elif command == "q":
                self._run_quick_action(parts[1:])
            elif command == "n":
                conversation = self.service.start_new_conversation()
                self.console.console.print(f"New conversation {conversation.id[:8]}")
            elif command == "a":
                self.service.acknowledge_error()
            elif command == "p":
                self.console.print_conversation(self.service.store.active_conversation)
            elif command == "h":
                self.console.console.print(HELP_TEXT)
            else:
                self.console.console.print(f"Unknown command {command!r}, type h for help")
        except Talk2AIError as e:
            logger.warning(f"Command {command!r} failed: {e}")
            self.console.console.print(Text(str(e), style="red"))
        return True

    def run(self, input_func: Callable[[str], str] = input) -> None:
        """Read commands until quit, end of input or Ctrl-C."""
        self.console.console.print(HELP_TEXT)
        while True:
            try:
                line = input_func("> ")
            except (EOFError, KeyboardInterrupt):
                break
            if not self.handle(line):
                break
        logger.info("Command loop ended")

    def _toggle_recording(self) -> None:
        if self.service.controller.capturing:
            if self.service.stop_capture() is not None:
                self._settle()
        elif self.service.start_capture() is None:
            self.console.console.print("Busy, try again when processing finishes")

    def _toggle_continuous(self) -> None:
        controller = self.service.controller
        mode = CaptureMode.VAD if controller.vad_config.is_continuous else CaptureMode.CONTINUOUS
        controller.update_vad_configuration(controller.vad_config.replace(mode=mode))
        self.console.console.print(f"Capture mode: {mode.value} (applies to the next recording)")

    def _list_quick_actions(self) -> None:
        for index, action in enumerate(self.service.quick_actions.list(), start=1):
            self.console.console.print(f"  {index}. {action.label}")

    def _run_quick_action(self, args) -> None:
        actions = self.service.quick_actions.list()
        try:
            index = int(args[0])
            if index < 1:
                raise ValueError(index)
            action = actions[index - 1]
        except (IndexError, ValueError):
            self.console.console.print(f"Usage: q <1-{len(actions)}>")
            return
        if self.service.run_quick_action(action.id):
            self._settle()

    def _settle(self) -> None:
        """Wait for queued processing, then show the conversation."""
        controller = self.service.controller
        deadline = time.time() + self.settle_seconds
        while (controller.is_processing or controller.is_ai_processing) and time.time() < deadline:
            time.sleep(0.1)
        self.service.wait_idle(max(deadline - time.time(), 0.0))
        self.console.print_conversation(self.service.store.active_conversation)
