"""LLM module."""

from .generator import ITextGenerator, TextGenerator
from .llm_provider import ILLMProvider, LLMProvider

__all__ = ["ILLMProvider", "LLMProvider", "ITextGenerator", "TextGenerator"]
