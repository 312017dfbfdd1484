"""Quick action module."""

from .dispatcher import GENERIC_ACKNOWLEDGEMENT, QuickActionDispatcher

__all__ = ["QuickActionDispatcher", "GENERIC_ACKNOWLEDGEMENT"]
