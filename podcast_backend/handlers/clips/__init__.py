"""
Clip CQRS APIs

Queries (Read Operations):
- Key lookups and the latest clip of an account for an episode
- Paginated listings per account and per (account, episode)

Commands (Write Operations):
- Put, partial update and delete of single clips

Ordering:
- Derivation of the next clip index and creation timestamp

Usage:
    read_api = ClipReadApi(client)
    write_api = ClipWriteApi(client, prevent_overwrite=config.prevent_clip_overwrite)
"""

from .commands import ClipWriteApi
from .ordering import ClipPosition, current_timestamp, next_clip_position, next_monotonic_timestamp
from .queries import ClipReadApi

__all__ = [
    "ClipReadApi",
    "ClipWriteApi",
    "ClipPosition",
    "current_timestamp",
    "next_clip_position",
    "next_monotonic_timestamp",
]
