"""Registry of built-in and user-defined providers and the current selection."""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ValidationError
from .descriptor import ProviderDescriptor, ProviderKind

logger = logging.getLogger(__name__)


BUILTIN_PROVIDERS = [
    {
        "id": "openai-chat",
        "name": "OpenAI Chat Completions",
        "kind": ProviderKind.AI,
        "curl": (
            'curl https://api.openai.com/v1/chat/completions '
            '-H "Authorization: Bearer {{API_KEY}}" '
            '-H "Content-Type: application/json" '
            '-d \'{"model": "{{MODEL}}", "messages": ['
            '{"role": "system", "content": "{{SYSTEM_PROMPT}}"}, '
            '{"role": "user", "content": "{{TEXT}}"}]}\''
        ),
        "response_content_path": "choices[0].message.content",
    },
    {
        "id": "openai-whisper",
        "name": "OpenAI Whisper",
        "kind": ProviderKind.STT,
        "curl": (
            'curl https://api.openai.com/v1/audio/transcriptions '
            '-H "Authorization: Bearer {{API_KEY}}" '
            '-F "file=@{{AUDIO}}" -F "model=whisper-1"'
        ),
        "response_content_path": "text",
    },
    {
        "id": "groq-whisper",
        "name": "Groq Whisper",
        "kind": ProviderKind.STT,
        "curl": (
            'curl https://api.groq.com/openai/v1/audio/transcriptions '
            '-H "Authorization: Bearer {{API_KEY}}" '
            '-F "file=@{{AUDIO}}" -F "model={{MODEL}}"'
        ),
        "response_content_path": "text",
    },
]


@dataclass
class ProviderSelection:
    """A provider chosen by the user together with its variable values."""
    descriptor: ProviderDescriptor
    variables: Dict[str, str] = field(default_factory=dict)


class ProviderRegistry:
    """Holds provider descriptors per kind and the selected provider for each."""

    def __init__(self):
        self._builtin: Dict[ProviderKind, Dict[str, ProviderDescriptor]] = {k: {} for k in ProviderKind}
        self._custom: Dict[ProviderKind, Dict[str, ProviderDescriptor]] = {k: {} for k in ProviderKind}
        self._selected: Dict[ProviderKind, Optional[ProviderSelection]] = {k: None for k in ProviderKind}

        for entry in BUILTIN_PROVIDERS:
            descriptor = ProviderDescriptor.from_curl(
                provider_id=entry["id"],
                kind=entry["kind"],
                curl=entry["curl"],
                response_content_path=entry["response_content_path"],
                name=entry["name"],
            )
            self._builtin[descriptor.kind][descriptor.id] = descriptor

    def all(self, kind: ProviderKind) -> List[ProviderDescriptor]:
        """Built-in providers followed by custom ones."""
        return list(self._builtin[kind].values()) + list(self._custom[kind].values())

    def get(self, kind: ProviderKind, provider_id: str) -> Optional[ProviderDescriptor]:
        return self._custom[kind].get(provider_id) or self._builtin[kind].get(provider_id)

    def add_custom(self, kind: ProviderKind, provider_id: str, curl: str,
                   response_content_path: str, name: str = "") -> ProviderDescriptor:
        """Validate and register a custom provider.

        Raises:
            ValidationError: The template is malformed or the id is a built-in one
        """
        if provider_id in self._builtin[kind]:
            raise ValidationError(f"Provider id {provider_id!r} is reserved by a built-in provider")

        if kind is ProviderKind.STT:
            # Older templates used AUDIO_BASE64 for the audio placeholder
            curl = curl.replace("AUDIO_BASE64", "AUDIO")

        descriptor = ProviderDescriptor.from_curl(
            provider_id=provider_id,
            kind=kind,
            curl=curl,
            response_content_path=response_content_path,
            name=name,
            is_custom=True,
        )
        self._custom[kind][provider_id] = descriptor
        logger.info(f"Registered custom {kind.value} provider: {provider_id}")
        return descriptor

    def load_custom(self, providers_json: str, kind: ProviderKind) -> List[ProviderDescriptor]:
        """Load custom providers from a stored JSON list.

        Entries that fail validation are skipped with a warning so one broken
        template does not hide the others.
        """
        try:
            entries = json.loads(providers_json)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse custom {kind.value} providers: {e}")
            return []

        if not isinstance(entries, list):
            logger.warning(f"Custom {kind.value} providers must be a JSON list")
            return []

        return self.load_entries(entries, kind)

    def load_entries(self, entries: List[dict], kind: ProviderKind) -> List[ProviderDescriptor]:
        loaded = []
        for entry in entries:
            try:
                loaded.append(self.add_custom(
                    kind=kind,
                    provider_id=entry["id"],
                    curl=entry["curl"],
                    response_content_path=entry.get("response_content_path", "text"),
                    name=entry.get("name", ""),
                ))
            except (ValidationError, KeyError, TypeError) as e:
                logger.warning(f"Skipping invalid custom {kind.value} provider {entry!r}: {e}")
        return loaded

    def select(self, kind: ProviderKind, provider_id: str,
               variables: Optional[Dict[str, str]] = None) -> ProviderSelection:
        """Select the provider used for `kind`.

        Raises:
            ValidationError: Unknown provider id or missing required variables
        """
        descriptor = self.get(kind, provider_id)
        if descriptor is None:
            raise ValidationError(f"Invalid {kind.value} provider id: {provider_id!r}")

        variables = {k: str(v) for k, v in (variables or {}).items()}
        missing = sorted(descriptor.required_variables() - set(variables))
        if missing:
            raise ValidationError(f"Provider {provider_id!r} requires variables: {', '.join(missing)}")

        selection = ProviderSelection(descriptor=descriptor, variables=variables)
        self._selected[kind] = selection
        logger.info(f"Selected {kind.value} provider: {provider_id}")
        return selection

    def selected(self, kind: ProviderKind) -> Optional[ProviderSelection]:
        return self._selected[kind]
