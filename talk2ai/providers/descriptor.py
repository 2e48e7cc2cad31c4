"""Provider descriptors parsed from user-supplied curl request templates.

A descriptor is validated once, when it is configured. Templates reference
variables as ``{{NAME}}``; ``TEXT``, ``SYSTEM_PROMPT`` and ``AUDIO`` are filled
at call time, every other variable (API keys, model names) comes from the
user's provider selection.
"""

import json
import re
import shlex
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import pydantic
from pydantic import BaseModel, Field

from ..errors import ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
RUNTIME_VARIABLES = frozenset({"TEXT", "SYSTEM_PROMPT", "AUDIO"})
PATH_TOKEN_RE = re.compile(r"([^.\[\]]+)|\[(\d+)\]")

_VALUE_OPTIONS = {
    "-X": "method", "--request": "method",
    "-H": "header", "--header": "header",
    "-d": "data", "--data": "data", "--data-raw": "data", "--data-binary": "data",
    "-F": "form", "--form": "form",
    "--url": "url",
}
_IGNORED_FLAGS = {"-s", "--silent", "-L", "--location", "--compressed", "-v", "--verbose", "-k", "--insecure"}


class ProviderKind(Enum):
    AI = "ai"
    STT = "stt"


class ProviderDescriptor(BaseModel):
    """Strongly-typed description of an HTTP provider request."""
    id: str = Field(min_length=1)
    name: str = ""
    kind: ProviderKind
    curl: str
    response_content_path: str = Field(min_length=1)
    is_custom: bool = False
    method: str = "POST"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    json_body: Optional[Any] = None
    form_fields: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_curl(cls, provider_id: str, kind: ProviderKind, curl: str,
                  response_content_path: str, name: str = "",
                  is_custom: bool = False) -> "ProviderDescriptor":
        """Parse and validate a curl template.

        Raises:
            ValidationError: The template cannot be used as a provider request
        """
        parsed = parse_curl(curl)
        try:
            return cls(
                id=provider_id,
                name=name or provider_id,
                kind=kind,
                curl=curl,
                response_content_path=response_content_path,
                is_custom=is_custom,
                **parsed,
            )
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid provider descriptor {provider_id!r}: {e}") from e

    @property
    def uses_multipart(self) -> bool:
        return bool(self.form_fields)

    def placeholders(self) -> Set[str]:
        """All variable names referenced anywhere in the request."""
        names = set(PLACEHOLDER_RE.findall(self.url))
        for key, value in self.headers.items():
            names.update(PLACEHOLDER_RE.findall(key))
            names.update(PLACEHOLDER_RE.findall(value))
        for value in self.form_fields.values():
            names.update(PLACEHOLDER_RE.findall(value))
        if self.json_body is not None:
            names.update(PLACEHOLDER_RE.findall(json.dumps(self.json_body)))
        return names

    def required_variables(self) -> Set[str]:
        """Variables the user must supply when selecting this provider."""
        return self.placeholders() - RUNTIME_VARIABLES


def parse_curl(curl: str) -> Dict[str, Any]:
    """Split a curl command into method, url, headers and body.

    Returns:
        Dict with method, url, headers, json_body and form_fields

    Raises:
        ValidationError: Not a curl command, bad URL, unknown option or a
            body that is not JSON
    """
    try:
        tokens = shlex.split(curl.replace("\\\n", " "))
    except ValueError as e:
        raise ValidationError(f"Cannot tokenize curl template: {e}") from e

    if not tokens or tokens[0] != "curl":
        raise ValidationError("Provider template must start with 'curl'")

    method: Optional[str] = None
    url: Optional[str] = None
    headers: Dict[str, str] = {}
    data_parts: List[str] = []
    form_fields: Dict[str, str] = {}

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token in _VALUE_OPTIONS:
            if i + 1 >= len(tokens):
                raise ValidationError(f"Option {token} is missing its value")
            value = tokens[i + 1]
            kind = _VALUE_OPTIONS[token]
            if kind == "method":
                method = value.upper()
            elif kind == "header":
                name, sep, header_value = value.partition(":")
                if not sep or not name.strip():
                    raise ValidationError(f"Malformed header: {value!r}")
                headers[name.strip()] = header_value.strip()
            elif kind == "data":
                data_parts.append(value)
            elif kind == "form":
                field_name, sep, field_value = value.partition("=")
                if not sep or not field_name:
                    raise ValidationError(f"Malformed form field: {value!r}")
                form_fields[field_name] = field_value
            else:
                url = value
            i += 2
        elif token in _IGNORED_FLAGS:
            i += 1
        elif token.startswith("-"):
            raise ValidationError(f"Unsupported curl option: {token}")
        else:
            if url is not None:
                raise ValidationError(f"Unexpected argument: {token!r}")
            url = token
            i += 1

    if not url or not re.match(r"^https?://", url):
        raise ValidationError(f"Provider URL must be http(s): {url!r}")
    if data_parts and form_fields:
        raise ValidationError("Template cannot combine a data body with form fields")

    json_body = None
    if data_parts:
        raw_body = "&".join(data_parts)
        try:
            json_body = json.loads(_quote_bare_placeholders(raw_body))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}") from e

    return {
        "method": method or ("POST" if (data_parts or form_fields) else "GET"),
        "url": url,
        "headers": headers,
        "json_body": json_body,
        "form_fields": form_fields,
    }


def _quote_bare_placeholders(raw_body: str) -> str:
    """Quote placeholders used as bare JSON values, e.g. `"temperature": {{TEMP}}`."""
    def _quote(match):
        if _inside_string(raw_body, match.start()):
            return match.group(0)
        return f'"{match.group(0)}"'
    return PLACEHOLDER_RE.sub(_quote, raw_body)


def _inside_string(text: str, position: int) -> bool:
    in_string = False
    escaped = False
    for char in text[:position]:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            in_string = not in_string
    return in_string


def substitute(text: str, variables: Dict[str, str]) -> str:
    """Replace ``{{NAME}}`` placeholders that have a value in `variables`."""
    def _replace(match):
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)
    return PLACEHOLDER_RE.sub(_replace, text)


def render_json(value: Any, variables: Dict[str, Any]) -> Any:
    """Substitute placeholders inside a decoded JSON structure.

    A string that is exactly one placeholder is replaced by the variable's
    value as-is (so it may become a number or a list); other strings get
    textual substitution.
    """
    if isinstance(value, dict):
        return {substitute(k, variables): render_json(v, variables) for k, v in value.items()}
    if isinstance(value, list):
        return [render_json(item, variables) for item in value]
    if isinstance(value, str):
        whole = PLACEHOLDER_RE.fullmatch(value.strip())
        if whole and whole.group(1) in variables:
            return variables[whole.group(1)]
        return substitute(value, {k: v for k, v in variables.items() if isinstance(v, (str, int, float))})
    return value


def extract_content(payload: Any, path: str) -> Any:
    """Follow a dotted path such as ``choices[0].message.content``.

    Raises:
        KeyError: The path does not exist in the payload
    """
    current = payload
    for key, index in PATH_TOKEN_RE.findall(path):
        try:
            current = current[int(index)] if index else current[key]
        except (KeyError, IndexError, TypeError) as e:
            raise KeyError(f"Response has no {path!r}") from e
    return current
