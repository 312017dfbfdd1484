"""Error taxonomy for group orchestration."""

import asyncio
import re
from typing import Any

ALREADY_MEMBER_MARKERS = ("already", "duplicate")
TRANSIENT_MESSAGE_PATTERN = re.compile(
    r"failed to verify all installations|\bsync\b", re.IGNORECASE
)
# Codes raised by HttpPlatformClient for transport failures, plus the bridge's own
TRANSIENT_ERROR_CODES = ("GenericFailure", "Timeout", "NetworkError")

RESOLUTION_HINT = (
    "Try using:\n"
    "- ENS domains: @username.eth\n"
    "- Wallet addresses: @0x1234...\n"
    "- Make sure the user has messaging enabled"
)


class GrouperError(Exception):
    """Base exception for Grouper."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Text shown to the person whose request failed."""
        return f"❌ {self.message}"


class ValidationError(GrouperError):
    """Raised when a command argument is malformed or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(GrouperError):
    """Raised when a group is unknown or no longer reachable."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(
            message, "NOT_FOUND", {"resource": resource, "identifier": identifier}
        )

    @property
    def user_message(self) -> str:
        return (
            "❌ Sidebar group not found. It may have expired, "
            "please create the group again."
        )


class TransientPlatformError(GrouperError):
    """Raised for sync/verification hiccups on the messaging network."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "TRANSIENT_PLATFORM_ERROR", details)

    @property
    def user_message(self) -> str:
        return (
            "⚠️ There's a temporary network issue right now. "
            "Please try again shortly."
        )


class AlreadySatisfiedError(GrouperError):
    """Raised when the platform reports the member is already present."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "ALREADY_SATISFIED", details)


class AuthorizationError(GrouperError):
    """Raised when someone other than the creator manages members."""

    def __init__(self, message: str = "Only the group creator can add members."):
        super().__init__(message, "FORBIDDEN")


class UnknownError(GrouperError):
    """Raised for anything the classifier does not recognize."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "UNKNOWN_ERROR", details)

    @property
    def user_message(self) -> str:
        return f"❌ Something went wrong: {self.message}. Please contact support."


class InvalidTransitionError(GrouperError):
    """Raised when a conversation step change is not in the transition table."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move conversation from {current} to {target}",
            "INVALID_TRANSITION",
            {"from": current, "to": target},
        )


def classify_platform_error(exc: BaseException) -> GrouperError:
    """Map a raw platform failure onto the error taxonomy."""
    if isinstance(exc, GrouperError):
        return exc

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return TransientPlatformError("Platform call timed out")

    message = str(getattr(exc, "message", None) or exc or "")
    code = getattr(exc, "code", None)
    details = {"code": code, "raw": message}
    lowered = message.lower()

    if any(marker in lowered for marker in ALREADY_MEMBER_MARKERS):
        return AlreadySatisfiedError(message, details)

    if code in TRANSIENT_ERROR_CODES or TRANSIENT_MESSAGE_PATTERN.search(message):
        return TransientPlatformError(message, details)

    return UnknownError(message or "Unknown error", details)
