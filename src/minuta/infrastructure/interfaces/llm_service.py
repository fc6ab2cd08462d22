"""Abstract interface for LLM service operations."""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """Abstract base class for LLM backends."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generates free-form content from a prompt.

        Args:
            prompt: The fully rendered prompt text.

        Returns:
            The model's text reply.

        Raises:
            LLMServiceError: If the LLM call fails.
        """
        pass
