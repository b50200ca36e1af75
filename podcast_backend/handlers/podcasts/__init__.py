"""
Podcast CQRS APIs

Queries (Read Operations):
- Podcasts, episodes and episode release ranges
- Follow entries of an account

Commands (Write Operations):
- Adding and removing follow entries

Usage:
    podcasts = PodcastReadApi(client)
    follows = FollowedPodcastsReadApi(client)
"""

from .commands import FollowedPodcastsWriteApi
from .queries import FollowedPodcastsReadApi, PodcastReadApi

__all__ = [
    "PodcastReadApi",
    "FollowedPodcastsReadApi",
    "FollowedPodcastsWriteApi",
]
