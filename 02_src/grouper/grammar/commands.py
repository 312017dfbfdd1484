"""Group-creation command grammar and short-reply classifiers."""

import re
from dataclasses import dataclass

from ..config import parse_mention_handles

VERBS = ("create", "make", "new", "sidebar")

MENTION_TOKEN_RE = re.compile(r"@([A-Za-z0-9.-]+)")

GREETING_RE = re.compile(r"^\s*(hi|hey|hello|hiya|yo|gm|good (morning|afternoon|evening))\b", re.I)
AFFIRMATIVE_RE = re.compile(r"^\s*(y|yes|yeah|yep|yup|sure|ok|okay|please|absolutely|let'?s do it)\b", re.I)
DECLINE_RE = re.compile(r"^\s*(n|no|nope|nah|no thanks|not now|cancel|skip)\b", re.I)


@dataclass(frozen=True)
class ParsedCommand:
    """A recognized group-creation command."""

    verb: str
    private: bool
    name: str


class CommandGrammar:
    """Parses `[@agent] (create|make|new|sidebar) [private] <name>`.

    Patterns are tried in precedence order: mention-prefixed private,
    mention-prefixed plain, bare private, bare plain.
    """

    def __init__(self, agent_handles: list[str] | None = None):
        self._handles = agent_handles or parse_mention_handles()
        # Longest first so "grouper.base.eth" is not cut at "grouper"
        handles = sorted(self._handles, key=len, reverse=True)
        handle_alt = "|".join(re.escape(h) for h in handles)
        verb_alt = "|".join(VERBS)

        mention = rf"@\s*(?:{handle_alt})\s+"
        self._patterns = [
            (re.compile(rf"{mention}({verb_alt})\s+private\s+(.+)", re.I | re.S), True),
            (re.compile(rf"{mention}({verb_alt})\s+(.+)", re.I | re.S), False),
            (re.compile(rf"^\s*({verb_alt})\s+private\s+(.+)", re.I | re.S), True),
            (re.compile(rf"^\s*({verb_alt})\s+(.+)", re.I | re.S), False),
        ]

    @property
    def agent_handles(self) -> list[str]:
        return list(self._handles)

    def parse_command(self, text: str | None) -> ParsedCommand | None:
        """Return the command in `text`, or None if there is none."""
        if not text or not isinstance(text, str):
            return None

        for pattern, private in self._patterns:
            match = pattern.search(text)
            if not match:
                continue
            name = match.group(2).strip()
            if name:
                return ParsedCommand(verb=match.group(1).lower(), private=private, name=name)
        return None


def parse_mentions(text: str | None) -> list[str]:
    """Extract raw mention tokens in order, duplicates included."""
    if not text or not isinstance(text, str):
        return []
    return MENTION_TOKEN_RE.findall(text)


def is_greeting(text: str) -> bool:
    return bool(GREETING_RE.match(text or ""))


def is_affirmative(text: str) -> bool:
    return bool(AFFIRMATIVE_RE.match(text or ""))


def is_decline(text: str) -> bool:
    return bool(DECLINE_RE.match(text or ""))
