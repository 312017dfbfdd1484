"""Free-text reply generation and the add-members oracle."""

from typing import Protocol

from ..logging_config import get_logger
from .llm_provider import ILLMProvider
from .prompts import (
    ADD_USERS_MARKER,
    ADD_USERS_PROMPT,
    DEFAULT_REPLY,
    GREETING_REPLY,
    HELP_REPLY,
    INTRO_REPLY,
    SYSTEM_PROMPT,
)

logger = get_logger(__name__)


class ITextGenerator(Protocol):
    """Fallback text generation."""

    async def generate(self, prompt: str, context: str = "") -> str:
        """Reply to a message that matched no command."""
        ...

    async def is_add_members_intent(self, text: str) -> bool:
        """Whether the message asks to add people to a group."""
        ...


class TextGenerator:
    """Generates replies through the LLM, with canned answers on failure."""

    def __init__(self, llm_provider: ILLMProvider, max_tokens: int = 512):
        self._llm = llm_provider
        self._max_tokens = max_tokens

    async def generate(self, prompt: str, context: str = "") -> str:
        if not prompt or not prompt.strip():
            return DEFAULT_REPLY

        content = f"{context}{prompt}" if context else prompt
        try:
            response = await self._llm.complete(
                messages=[{"role": "user", "content": content}],
                system=SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.error(f"LLM error while generating reply: {e}", exc_info=True)
            return self.canned_reply(prompt)

        return response.strip() or DEFAULT_REPLY

    async def is_add_members_intent(self, text: str) -> bool:
        try:
            answer = await self._llm.complete(
                messages=[
                    {"role": "user", "content": ADD_USERS_PROMPT.format(message=text)}
                ],
                max_tokens=10,
            )
        except Exception as e:
            logger.error(f"LLM error while classifying intent: {e}", exc_info=True)
            return False
        return ADD_USERS_MARKER in answer.upper()

    @staticmethod
    def canned_reply(prompt: str) -> str:
        """Offline answer used when the LLM is unavailable."""
        lowered = prompt.lower()
        if "help" in lowered:
            return HELP_REPLY
        if any(word in lowered.split() for word in ("hi", "hey", "hello")):
            return GREETING_REPLY
        return INTRO_REPLY
