# Base mixin
from .base import DynamoDBMixin

# Core domain models
from .domain_models import (
    GSIDefinition,
    TableMeta,
    CLIP_ID_SEPARATOR,
    Podcast,
    Episode,
    FollowedPodcast,
    Clip,
    # Identifier helpers
    account_index_prefix,
    format_account_index,
    format_clip_id,
    format_episode_id,
    parse_clip_id,
    parse_episode_id,
)

# Read models (Views)
from .views import ClipView, EpisodeView, FollowedPodcastView

# Write models (DTOs)
from .dtos import ClipChange, ClipCreate

__all__ = [
    "DynamoDBMixin",
    "GSIDefinition",
    "TableMeta",
    "CLIP_ID_SEPARATOR",
    "Podcast",
    "Episode",
    "FollowedPodcast",
    "Clip",
    "account_index_prefix",
    "format_account_index",
    "format_clip_id",
    "format_episode_id",
    "parse_clip_id",
    "parse_episode_id",
    "ClipView",
    "EpisodeView",
    "FollowedPodcastView",
    "ClipChange",
    "ClipCreate",
]
