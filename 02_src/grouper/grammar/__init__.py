"""Command grammar module."""

from .commands import (
    CommandGrammar,
    ParsedCommand,
    is_affirmative,
    is_decline,
    is_greeting,
    parse_mentions,
)
from .mentions import MentionDetector

__all__ = [
    "CommandGrammar",
    "ParsedCommand",
    "MentionDetector",
    "parse_mentions",
    "is_greeting",
    "is_affirmative",
    "is_decline",
]
