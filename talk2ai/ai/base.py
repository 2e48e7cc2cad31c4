"""Abstract base class for AI response backends."""

from abc import ABC, abstractmethod
from typing import Dict, List


class AbstractAIBackend(ABC):
    """Generative AI provider boundary."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id

    @abstractmethod
    async def generate(self, system_text: str, user_text: str,
                       history: List[Dict[str, str]]) -> str:
        """Generate a response.

        Args:
            system_text: System prompt combined with any context, may be empty
            user_text: Transcript or rendered quick action
            history: Earlier exchanges as chat messages ({"role", "content"})

        Returns:
            Response text
        """
        pass
