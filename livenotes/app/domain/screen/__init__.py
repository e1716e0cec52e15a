"""Entry screen: live subscription, form controller and view projection."""

from .form import FormController
from .rendering import EntryRow, ScreenView, render_screen
from .session import EntryScreenSession
from .subscription import SubscriptionManager, SubscriptionState

__all__ = [
    "EntryRow",
    "EntryScreenSession",
    "FormController",
    "ScreenView",
    "SubscriptionManager",
    "SubscriptionState",
    "render_screen",
]
