"""
Read-Optimized View Models

Response shapes handed to callers. Attribute names are snake_case in Python and
camelCase on the wire; ``to_payload()`` dumps the wire form.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .domain_models import Clip, Episode, FollowedPodcast, Podcast


class _PayloadView(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ClipView(_PayloadView):
    """
    Clip as returned to clients.

    ``notes`` is always present; an absent note is an empty string.
    """

    clip_id: str = Field(..., serialization_alias='clipId')
    creator_account_id: str = Field(..., serialization_alias='creatorAccountId')
    episode_id: str = Field(..., serialization_alias='episodeId')
    creation_timestamp: int = Field(..., serialization_alias='creationTimestamp')
    start_time: float = Field(..., serialization_alias='startTime')
    end_time: float = Field(..., serialization_alias='endTime')
    title: str = Field(..., serialization_alias='title')
    notes: str = Field('', serialization_alias='notes')

    @classmethod
    def from_clip(cls, clip: Clip) -> 'ClipView':
        return cls(
            clip_id=clip.clip_id,
            creator_account_id=clip.account_id,
            episode_id=clip.episode_id,
            creation_timestamp=clip.creation_timestamp,
            start_time=clip.start_time,
            end_time=clip.end_time,
            title=clip.title,
            notes=clip.notes or ''
        )


class FollowedPodcastView(_PayloadView):
    """Follow entry joined with the podcast it refers to."""

    podcast_id: str = Field(..., serialization_alias='podcastId')
    name: str = Field(..., serialization_alias='name')
    description: Optional[str] = Field(None, serialization_alias='description')
    author: Optional[str] = Field(None, serialization_alias='author')
    author_url: Optional[str] = Field(None, serialization_alias='authorUrl')
    genre: Optional[str] = Field(None, serialization_alias='genre')
    image: Optional[str] = Field(None, serialization_alias='image')
    source: Optional[str] = Field(None, serialization_alias='source')
    source_link: Optional[str] = Field(None, serialization_alias='sourceLink')
    follow_timestamp: int = Field(..., serialization_alias='followTimestamp')
    last_played_timestamp: Optional[int] = Field(None, serialization_alias='lastPlayedTimestamp')
    played_count: int = Field(0, serialization_alias='playedCount')

    @classmethod
    def from_models(cls, follow: FollowedPodcast, podcast: Podcast) -> 'FollowedPodcastView':
        return cls(
            podcast_id=follow.podcast_id,
            name=podcast.name,
            description=podcast.description,
            author=podcast.author,
            author_url=podcast.author_url,
            genre=podcast.genre,
            image=podcast.image,
            source=podcast.source_name,
            source_link=podcast.source_link,
            follow_timestamp=follow.follow_timestamp,
            last_played_timestamp=follow.last_played_timestamp,
            played_count=follow.played_count
        )


class EpisodeView(_PayloadView):
    """Episode as listed under its podcast."""

    podcast_id: str = Field(..., serialization_alias='podcastId')
    episode_id: str = Field(..., serialization_alias='episodeId')
    name: str = Field(..., serialization_alias='name')
    description: Optional[str] = Field(None, serialization_alias='description')
    release_timestamp: int = Field(..., serialization_alias='releaseTimestamp')
    duration: Union[int, str, None] = Field(None, serialization_alias='duration')
    audio_url: Optional[str] = Field(None, serialization_alias='audioUrl')
    liked_count: int = Field(0, serialization_alias='likedCount')

    @classmethod
    def from_episode(cls, episode: Episode) -> 'EpisodeView':
        return cls(
            podcast_id=episode.podcast_id,
            episode_id=episode.episode_id,
            name=episode.name,
            description=episode.description,
            release_timestamp=episode.release_timestamp,
            duration=episode.duration,
            audio_url=episode.audio_url,
            liked_count=episode.liked_count
        )
