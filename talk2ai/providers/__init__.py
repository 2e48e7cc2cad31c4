"""Provider descriptors and selection."""

from .descriptor import ProviderDescriptor, ProviderKind, parse_curl, extract_content
from .registry import ProviderRegistry, ProviderSelection

__all__ = [
    "ProviderDescriptor",
    "ProviderKind",
    "parse_curl",
    "extract_content",
    "ProviderRegistry",
    "ProviderSelection",
]
