"""
Service layer: client-facing operations returning ``(payload, HTTPStatus)``.
"""

from .clip_service import CLIP_PAGE_SIZE, ClipService
from .podcast_service import EPISODE_PAGE_SIZE, PodcastQueryService

__all__ = [
    "CLIP_PAGE_SIZE",
    "EPISODE_PAGE_SIZE",
    "ClipService",
    "PodcastQueryService",
]
