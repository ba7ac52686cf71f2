"""Models module."""
from .base import Base  # type: ignore
from .show import Show, ShowStatus  # type: ignore
from .episode import Episode  # type: ignore
from .user import User  # type: ignore
from .subscription import Subscription  # type: ignore
from .notification import Notification  # type: ignore

__all__ = [
    "Base",
    "Show",
    "ShowStatus",
    "Episode",
    "User",
    "Subscription",
    "Notification"
]
