"""Project-level configuration and path helpers."""

from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "grouper.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_MENTION_HANDLES = "grouper, grouper.base.eth"
DEFAULT_LLM_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_PLATFORM_URL = "http://localhost:5555"
DEFAULT_PLATFORM_TIMEOUT = 15.0

# Conversational state
STATE_TTL_SECONDS = 60 * 60
SWEEP_INTERVAL_SECONDS = 30 * 60
HISTORY_LIMIT = 3
INVITATION_MAX_AGE_HOURS = 24


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def parse_mention_handles(value: str | None = None) -> list[str]:
    """Split MENTION_HANDLES into a clean list of agent handles."""
    raw = value if value else DEFAULT_MENTION_HANDLES
    return [h.strip().lstrip("@") for h in raw.split(",") if h.strip()]


def env_flag(value: str | None) -> bool:
    """Interpret an environment flag ("true", "1", "yes")."""
    return (value or "").strip().lower() in {"1", "true", "yes"}
