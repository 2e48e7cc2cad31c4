"""Quick actions."""

from .manager import QuickActionManager, DEFAULT_QUICK_ACTIONS

__all__ = ["QuickActionManager", "DEFAULT_QUICK_ACTIONS"]
