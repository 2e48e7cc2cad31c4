"""AI backend driven by a provider descriptor."""

import logging
from typing import Any, Dict, List

from ..providers.descriptor import render_json
from ..providers.http_client import ProviderHttpClient
from ..providers.registry import ProviderSelection
from .base import AbstractAIBackend

logger = logging.getLogger(__name__)


class HttpAIBackend(AbstractAIBackend):
    """Sends prompts to an HTTP chat provider.

    When the template body has a ``messages`` list, earlier exchanges are
    inserted before the message that carries ``{{TEXT}}`` and messages left
    empty after rendering (e.g. no system prompt) are dropped.
    """

    def __init__(self, selection: ProviderSelection, timeout_seconds: float = 60.0):
        super().__init__(selection.descriptor.id)
        self.client = ProviderHttpClient(selection, timeout_seconds=timeout_seconds)

    def build_body(self, system_text: str, user_text: str,
                   history: List[Dict[str, str]]) -> Any:
        descriptor = self.client.selection.descriptor
        if descriptor.json_body is None:
            return None

        runtime = {"TEXT": user_text, "SYSTEM_PROMPT": system_text}
        messages = descriptor.json_body.get("messages") if isinstance(descriptor.json_body, dict) else None
        if not isinstance(messages, list):
            return render_json(descriptor.json_body, self.client.render_variables(runtime))

        text_index = next((i for i, m in enumerate(messages) if "{{TEXT}}" in str(m)), len(messages))
        body = render_json(descriptor.json_body, self.client.render_variables(runtime))
        rendered = body["messages"][:text_index] + list(history) + body["messages"][text_index:]
        body["messages"] = [m for m in rendered
                            if not (isinstance(m, dict) and m.get("content") == "")]
        return body

    async def generate(self, system_text: str, user_text: str,
                       history: List[Dict[str, str]]) -> str:
        body = self.build_body(system_text, user_text, history)
        return await self.client.send(
            runtime={"TEXT": user_text, "SYSTEM_PROMPT": system_text},
            json_body=body,
        )
