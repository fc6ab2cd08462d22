"""Gemini LLM service implementation."""

from google import genai

from minuta.exceptions import LLMServiceError
from minuta.logging import setup_logging

from .interfaces import LLMService

logger = setup_logging()


class GeminiLLMService(LLMService):
    """LLM service implementation using Google Gemini."""

    def __init__(self, client: genai.Client, model_name: str):
        self._client = client
        self._model_name = model_name

    async def generate(self, prompt: str) -> str:
        """
        Sends a rendered prompt to Gemini and returns the raw reply.

        Args:
            prompt: The prompt text.

        Returns:
            The reply text.

        Raises:
            LLMServiceError: If the Gemini API call fails or returns nothing.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=prompt,
            )
        except Exception as e:
            logger.exception("Gemini API call failed")
            raise LLMServiceError(f"Gemini generation failed: {e}", cause=e) from e

        if not response.text:
            raise LLMServiceError("Gemini returned empty response")
        logger.info(
            "LLM generation completed",
            extra={"model": self._model_name, "reply_chars": len(response.text)},
        )
        return response.text
