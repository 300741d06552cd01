"""
LLM Service backed by the OpenAI chat completion API.

Each call is a single turn: the persona system prompt plus the learner's
message. No earlier turns are forwarded.
"""

from typing import List, Optional

from loguru import logger
from openai import AsyncOpenAI

from app.config import settings
from app.prompts import (
    FALLBACK_REPLY,
    ReplyLanguage,
    Scenario,
    get_tutor_system_prompt,
)
from app.services.errors import MissingCredentialError, UpstreamServiceError


class LLMService:
    """
    Reply generation for the Genie tutor.

    This service provides:
    - Persona prompt construction (scenario and reply language)
    - Bounded, fixed-temperature chat completion
    - A friendly fallback reply when the model returns nothing
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model_name: str = "gpt-4o-mini",
        temperature: float = 0.6,
        max_tokens: int = 180,
    ):
        """
        Args:
            client: OpenAI client, or None when the credential is missing
            model_name: Chat completion model
            temperature: Sampling temperature
            max_tokens: Output bound per reply
        """
        self._client = client
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def build_messages(
        self,
        message: str,
        scenario: Optional[Scenario] = None,
        language: Optional[ReplyLanguage] = None,
    ) -> List[dict]:
        """Format one turn for the chat completion API."""
        return [
            {"role": "system", "content": get_tutor_system_prompt(scenario, language)},
            {"role": "user", "content": message},
        ]

    async def generate_reply(
        self,
        message: str,
        scenario: Optional[Scenario] = None,
        language: Optional[ReplyLanguage] = None,
    ) -> str:
        """
        Generate Genie's reply to one learner message.

        Args:
            message: Transcribed learner text (may be empty)
            scenario: Optional roleplay scenario
            language: Optional reply language

        Returns:
            The trimmed reply, or FALLBACK_REPLY when the model gave no content

        Raises:
            MissingCredentialError: No OpenAI credential configured
            UpstreamServiceError: The API call failed
        """
        if self._client is None:
            raise MissingCredentialError("OPENAI_API_KEY")

        messages = self.build_messages(message, scenario, language)

        try:
            completion = await self._client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Chat completion with {self.model_name} failed: {e}")
            raise UpstreamServiceError(
                f"Chat completion failed: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        reply = content.strip() if content else ""

        if not reply:
            logger.debug("Chat completion returned no content, using fallback reply")
            return FALLBACK_REPLY

        return reply

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def get_model_info(self) -> dict:
        """Get information about the configured model."""
        return {
            "configured": self.is_configured,
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


# Global service instance (singleton pattern)
_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Get or create the global LLM service instance."""
    global _llm_service
    if _llm_service is None:
        client = (
            AsyncOpenAI(
                api_key=settings.openai_api_key, base_url=settings.openai_base_url
            )
            if settings.openai_api_key
            else None
        )
        _llm_service = LLMService(
            client=client,
            model_name=settings.llm_model_name,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )
    return _llm_service
