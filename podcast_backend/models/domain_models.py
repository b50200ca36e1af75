"""
Domain Models for the Podcast Backend

Core entities stored in DynamoDB:
1. Podcast and Episode (written by the import pipeline, read-only here)
2. FollowedPodcast (one immutable entry per follow)
3. Clip (a titled time range inside an episode, owned by an account)

Each model declares its table through an inner ``Meta(TableMeta)`` class.
The identifier helpers at the bottom convert between the external string ids
(episode id, clip id) and the stored key attributes.
"""

from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .base import DynamoDBMixin

PODCAST_ID_LENGTH = 36
CLIP_ID_SEPARATOR = '_'
CLIP_INDEX_WIDTH = 10


# =============================================================================
# DynamoDB Table Metadata Classes
# =============================================================================

class GSIDefinition:
    """Defines a Global Secondary Index for DynamoDB."""
    def __init__(
        self,
        name: str,
        partition_key: str,
        sort_key: Optional[str] = None
    ):
        self.name = name
        self.partition_key = partition_key
        self.sort_key = sort_key


class TableMeta:
    """Base class for table metadata definitions."""
    table_name: str
    partition_key: str
    sort_key: Optional[str] = None
    gsis: List[GSIDefinition] = []

    @classmethod
    def get_key_fields(cls) -> List[str]:
        """Get DynamoDB item key field names.

        Returns the list of fields that form the DynamoDB item key:
        - For simple keys: [partition_key]
        - For composite keys: [partition_key, sort_key]
        """
        fields = [cls.partition_key]
        if cls.sort_key:
            fields.append(cls.sort_key)
        return fields

    @classmethod
    def key(cls, *values: Any) -> Dict[str, Any]:
        """Build a primary key from values given in key field order.

        Raises:
            ValueError: If the number of values does not match the key fields
        """
        fields = cls.get_key_fields()
        if len(values) != len(fields):
            raise ValueError(f"{cls.table_name} key needs {fields}, got {len(values)} values")
        return dict(zip(fields, values))

    @classmethod
    def get_gsi_by_name(cls, gsi_name: str) -> Optional[GSIDefinition]:
        """Get GSI definition by name."""
        for gsi in cls.gsis:
            if gsi.name == gsi_name:
                return gsi
        return None


# =============================================================================
# Podcast Domain
# =============================================================================

class Podcast(DynamoDBMixin, BaseModel):
    """
    Podcast as imported from its source feed.

    Immutable from the point of view of this package.
    """

    podcast_id: str = Field(..., min_length=1, description="Podcast UUID (36 characters)")
    name: str = Field(..., description="Podcast title")
    description: Optional[str] = Field(None, description="Podcast description")
    author: Optional[str] = Field(None, description="Author or publisher")
    author_url: Optional[str] = Field(None, description="Author homepage")
    genre: Optional[str] = Field(None, description="Primary genre")
    image: Optional[str] = Field(None, description="Cover image URL")
    source_name: Optional[str] = Field(None, description="Directory the podcast was imported from")
    source_link: Optional[str] = Field(None, description="Link to the podcast in its source directory")

    class Meta(TableMeta):
        table_name = "podcasts"
        partition_key = "podcast_id"
        sort_key = None


class Episode(DynamoDBMixin, BaseModel):
    """
    Episode of a podcast.

    Keyed by (podcast_id, release_index). Externally an episode is addressed by
    ``episode_id``, the podcast id immediately followed by the decimal release
    index.
    """

    podcast_id: str = Field(..., min_length=1, description="Owning podcast")
    release_index: int = Field(..., ge=0, description="Position of the episode within its podcast")
    name: str = Field(..., description="Episode title")
    description: Optional[str] = Field(None, description="Episode description")
    release_timestamp: int = Field(..., description="Release time, epoch seconds")
    duration: Union[int, str, None] = Field(None, description="Duration in seconds, or as imported (e.g. '01:14:33')")
    audio_url: Optional[str] = Field(None, description="Enclosure URL")
    liked_count: int = Field(0, ge=0, description="Number of likes")

    @property
    def episode_id(self) -> str:
        return format_episode_id(self.podcast_id, self.release_index)

    class Meta(TableMeta):
        table_name = "episodes"
        partition_key = "podcast_id"
        sort_key = "release_index"
        gsis = [
            GSIDefinition(
                name="PodcastReleaseIndex",
                partition_key="podcast_id",
                sort_key="release_timestamp"
            )
        ]


# =============================================================================
# Followed Podcast Domain
# =============================================================================

class FollowedPodcast(DynamoDBMixin, BaseModel):
    """
    One follow of a podcast by an account.

    Entries are never updated. Following again creates a new entry with a new
    follow_timestamp, so for a given account follow_timestamp is unique and can
    be used as a pagination cursor.
    """

    account_id: str = Field(..., min_length=1, description="Following account")
    follow_timestamp: int = Field(..., gt=0, description="Follow time, epoch seconds, unique per account")
    podcast_id: str = Field(..., min_length=1, description="Followed podcast")
    last_played_timestamp: Optional[int] = Field(None, description="Last time an episode was played")
    played_count: int = Field(0, ge=0, description="Number of played episodes")

    model_config = ConfigDict(frozen=True)

    class Meta(TableMeta):
        table_name = "followed_podcasts"
        partition_key = "account_id"
        sort_key = "follow_timestamp"


# =============================================================================
# Clip Domain
# =============================================================================

class Clip(DynamoDBMixin, BaseModel):
    """
    A titled time range within an episode, created by an account.

    Identity is (episode_id, account_id, clip_index). The stored sort key
    ``account_index`` zero-pads the index so that the lexicographic order of
    the sort key matches numeric clip order within an (account, episode) pair.
    """

    UPDATABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("title", "notes")

    episode_id: str = Field(..., min_length=1, description="Episode the clip belongs to")
    account_id: str = Field(..., min_length=1, description="Creator account")
    clip_index: int = Field(..., ge=0, description="Per (account, episode) sequence number")
    creation_timestamp: int = Field(..., gt=0, description="Creation time, epoch seconds")
    start_time: float = Field(..., ge=0, description="Clip start, seconds from episode start")
    end_time: float = Field(..., description="Clip end, seconds from episode start")
    title: str = Field(..., min_length=1, description="Clip title")
    notes: Optional[str] = Field(None, description="Free-form notes")

    @computed_field
    @property
    def account_index(self) -> str:
        return format_account_index(self.account_id, self.clip_index)

    @property
    def clip_id(self) -> str:
        return format_clip_id(self.episode_id, self.account_id, self.clip_index)

    @property
    def key(self) -> Dict[str, str]:
        return self.Meta.key(self.episode_id, self.account_index)

    @model_validator(mode='after')
    def validate_time_range(self) -> 'Clip':
        if self.start_time >= self.end_time:
            raise ValueError(f"start_time ({self.start_time}) must be before end_time ({self.end_time})")
        return self

    class Meta(TableMeta):
        table_name = "clips"
        partition_key = "episode_id"
        sort_key = "account_index"
        gsis = [
            GSIDefinition(
                name="AccountClipsIndex",
                partition_key="account_id",
                sort_key="creation_timestamp"
            )
        ]


# =============================================================================
# Identifier helpers
# =============================================================================

def format_episode_id(podcast_id: str, release_index: int) -> str:
    return f"{podcast_id}{release_index}"


def parse_episode_id(episode_id: str) -> Tuple[str, int]:
    """Split an episode id into (podcast_id, release_index).

    Raises:
        ValueError: If the id is not a 36 character podcast id followed by a
            decimal release index
    """
    podcast_id = episode_id[:PODCAST_ID_LENGTH]
    index_part = episode_id[PODCAST_ID_LENGTH:]
    if len(podcast_id) != PODCAST_ID_LENGTH or not index_part.isdecimal():
        raise ValueError(f"Malformed episode id: {episode_id!r}")
    return podcast_id, int(index_part)


def format_account_index(account_id: str, clip_index: int) -> str:
    return f"{account_id}{CLIP_ID_SEPARATOR}{clip_index:0{CLIP_INDEX_WIDTH}d}"


def account_index_prefix(account_id: str) -> str:
    """Sort key prefix shared by all clips of one account within an episode."""
    return f"{account_id}{CLIP_ID_SEPARATOR}"


def format_clip_id(episode_id: str, account_id: str, clip_index: int) -> str:
    return CLIP_ID_SEPARATOR.join((episode_id, account_id, str(clip_index)))


def parse_clip_id(clip_id: str) -> Tuple[str, str, int]:
    """Split a clip id into (episode_id, account_id, clip_index).

    Examples:
        >>> parse_clip_id('e1_u1_3')
        ('e1', 'u1', 3)

    Raises:
        ValueError: If the id does not have exactly three non-empty segments
            or the last one is not a decimal index
    """
    parts = clip_id.split(CLIP_ID_SEPARATOR)
    if len(parts) != 3:
        raise ValueError(f"Clip id must have 3 '{CLIP_ID_SEPARATOR}'-separated segments, got {len(parts)}")

    episode_id, account_id, index_part = parts
    if not episode_id or not account_id or not index_part.isdecimal():
        raise ValueError(f"Malformed clip id: {clip_id!r}")

    return episode_id, account_id, int(index_part)
