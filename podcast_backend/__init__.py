from .config import DynamoDBConfig
from .exceptions import (
    ClipError,
    ConflictError,
    ConsistencyFault,
    ItemNotFoundError,
    NotFoundError,
    PodcastBackendError,
    PodcastError,
    RetryableError,
    StoreError,
    ValidationError,
)
from .logging_context import configure_logging, get_request_id, request_scope
from .models import (
    # Domain models
    Clip,
    Episode,
    FollowedPodcast,
    Podcast,
    # Views
    ClipView,
    EpisodeView,
    FollowedPodcastView,
    # DTOs
    ClipChange,
    ClipCreate,
)
from .core import (
    TableClient,
    create_table_client,
)
from .handlers import (
    ClipReadApi,
    ClipWriteApi,
    FollowedPodcastsReadApi,
    FollowedPodcastsWriteApi,
    PodcastReadApi,
)
from .services import ClipService, PodcastQueryService

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",

    # Logging
    "configure_logging",
    "get_request_id",
    "request_scope",

    # Exceptions
    "PodcastBackendError",
    "ValidationError",
    "NotFoundError",
    "ItemNotFoundError",
    "StoreError",
    "ConflictError",
    "RetryableError",
    "ConsistencyFault",
    "ClipError",
    "PodcastError",

    # Models
    "Clip",
    "Episode",
    "FollowedPodcast",
    "Podcast",
    "ClipView",
    "EpisodeView",
    "FollowedPodcastView",
    "ClipChange",
    "ClipCreate",

    # Table client
    "TableClient",
    "create_table_client",

    # CQRS APIs
    "ClipReadApi",
    "ClipWriteApi",
    "FollowedPodcastsReadApi",
    "FollowedPodcastsWriteApi",
    "PodcastReadApi",

    # Services
    "ClipService",
    "PodcastQueryService",
]
