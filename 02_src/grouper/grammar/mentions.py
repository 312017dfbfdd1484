"""Detection and stripping of agent mentions in group messages."""

import re

from ..config import parse_mention_handles


class MentionDetector:
    """Recognizes `@<handle>` for any configured agent handle."""

    def __init__(self, agent_handles: list[str] | None = None):
        handles = sorted(agent_handles or parse_mention_handles(), key=len, reverse=True)
        alternatives = "|".join(re.escape(h) for h in handles)
        self._regex = re.compile(rf"(^|\s)@\s*(?:{alternatives})(?=\s|$)", re.I)

    def is_mentioned(self, text: str) -> bool:
        """Whether the agent is mentioned in `text`."""
        return bool(self._regex.search(text or ""))

    def remove_mention(self, text: str) -> str:
        """Strip the first agent mention and surrounding whitespace."""
        return self._regex.sub(" ", text or "", count=1).strip()
