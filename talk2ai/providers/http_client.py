"""Executes rendered provider requests with aiohttp."""

import logging
from typing import Any, Dict, Optional

import aiohttp

from ..errors import ProviderError
from .descriptor import extract_content, render_json, substitute
from .registry import ProviderSelection

logger = logging.getLogger(__name__)


class ProviderHttpClient:
    """Sends one provider request and extracts the response content."""

    def __init__(self, selection: ProviderSelection, timeout_seconds: float = 60.0):
        """Initialize client.

        Args:
            selection: Selected provider descriptor and user variables
            timeout_seconds: Total timeout for one request
        """
        self.selection = selection
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def provider_id(self) -> str:
        return self.selection.descriptor.id

    def render_variables(self, runtime: Dict[str, Any]) -> Dict[str, Any]:
        variables: Dict[str, Any] = dict(self.selection.variables)
        variables.update(runtime)
        return variables

    async def send(self, runtime: Dict[str, Any], json_body: Optional[Any] = None,
                   file_bytes: Optional[bytes] = None, file_name: str = "audio.wav",
                   file_content_type: str = "audio/wav") -> str:
        """Send the request and return the extracted response content.

        Args:
            runtime: Call-time variables (TEXT, SYSTEM_PROMPT, AUDIO)
            json_body: Pre-rendered JSON body; rendered from the descriptor when None
            file_bytes: Payload for multipart fields whose value starts with '@'

        Raises:
            ProviderError: Transport failure, non-2xx status or missing content
        """
        descriptor = self.selection.descriptor
        variables = self.render_variables(runtime)
        text_variables = {k: v for k, v in variables.items() if isinstance(v, str)}

        url = substitute(descriptor.url, text_variables)
        headers = {substitute(k, text_variables): substitute(v, text_variables)
                   for k, v in descriptor.headers.items()}

        request_kwargs: Dict[str, Any] = {}
        if descriptor.uses_multipart:
            form = aiohttp.FormData()
            for name, value in descriptor.form_fields.items():
                if value.startswith("@"):
                    if file_bytes is None:
                        raise ProviderError(descriptor.id, f"No file available for form field {name!r}")
                    form.add_field(name, file_bytes, filename=file_name, content_type=file_content_type)
                else:
                    form.add_field(name, substitute(value, text_variables))
            # aiohttp sets the multipart boundary header itself
            headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
            request_kwargs["data"] = form
        elif descriptor.json_body is not None or json_body is not None:
            request_kwargs["json"] = json_body if json_body is not None else render_json(descriptor.json_body, variables)

        logger.debug(f"{descriptor.method} {url} via provider {descriptor.id}")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(descriptor.method, url, headers=headers, **request_kwargs) as response:
                    if response.status >= 300:
                        error_text = await response.text()
                        raise ProviderError(descriptor.id, f"HTTP {response.status} - {error_text[:500]}")
                    payload = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(descriptor.id, f"Request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(descriptor.id, f"Response is not JSON: {e}") from e

        try:
            content = extract_content(payload, descriptor.response_content_path)
        except KeyError as e:
            raise ProviderError(descriptor.id, str(e)) from e

        return "" if content is None else str(content).strip()
