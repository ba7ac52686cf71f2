"""Repositories module."""
from .show_repo import ShowRepository, ShowRepositoryError  # type: ignore
from .episode_repo import EpisodeRepository  # type: ignore
from .subscription_repo import SubscriptionRepository  # type: ignore
from .notification_repo import NotificationRepository  # type: ignore
from .user_repo import UserRepository  # type: ignore

__all__ = [
    "ShowRepository",
    "ShowRepositoryError",
    "EpisodeRepository",
    "SubscriptionRepository",
    "NotificationRepository",
    "UserRepository"
]
