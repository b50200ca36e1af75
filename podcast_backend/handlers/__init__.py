"""
Handler Layer

Application layer handlers following Command Query Responsibility Segregation
(CQRS) for DynamoDB operations.

Organization:
- Each domain has its own subdirectory (clips, podcasts)
- Each domain follows CQRS with queries.py (read) and commands.py (write)
- Handlers take an open TableClient; they never create one

Architecture:
services/ -> handlers/ (this layer) -> core/ (infrastructure) -> DynamoDB
handlers/ (this layer) <- models/ (domain models)
"""

from .clips import ClipReadApi, ClipWriteApi
from .podcasts import FollowedPodcastsReadApi, FollowedPodcastsWriteApi, PodcastReadApi

__all__ = [
    'ClipReadApi',
    'ClipWriteApi',
    'PodcastReadApi',
    'FollowedPodcastsReadApi',
    'FollowedPodcastsWriteApi',
]
