"""
Podcast Query Service

Followed podcasts and episode listings, plus following and unfollowing.
Every operation returns ``(payload, HTTPStatus)`` or raises a
PodcastBackendError subclass.
"""

import logging
from http import HTTPStatus
from typing import Any, Callable, Dict, Optional, Tuple, Union

from ..core import FollowedPodcastsCursor, TableClient, is_page_full
from ..exceptions import ConsistencyFault, NotFoundError, PodcastError, RetryableError, ValidationError
from ..handlers.clips import current_timestamp, next_monotonic_timestamp
from ..handlers.podcasts import FollowedPodcastsReadApi, FollowedPodcastsWriteApi, PodcastReadApi
from ..models import EpisodeView, FollowedPodcast, FollowedPodcastView
from .payloads import page_payload

logger = logging.getLogger(__name__)

EPISODE_PAGE_SIZE = 30

Response = Tuple[Dict[str, Any], HTTPStatus]


class PodcastQueryService:
    """Podcast, episode and follow operations."""

    def __init__(
        self,
        client: TableClient,
        followed_page_size: Optional[int] = None,
        now: Callable[[], int] = current_timestamp
    ):
        """Initialize the service.

        Args:
            client: Open table client
            followed_page_size: Override of DynamoDBConfig.followed_podcasts_page_size
            now: Clock returning epoch seconds
        """
        self.podcasts = PodcastReadApi(client)
        self.follows = FollowedPodcastsReadApi(client)
        self.follow_writes = FollowedPodcastsWriteApi(client)
        self.followed_page_size = followed_page_size or client.config.followed_podcasts_page_size
        self.now = now

    async def get_followed_podcasts(self, account_id: Optional[str], next_token: Optional[str] = None) -> Response:
        """
        One page of the podcasts an account follows, in follow order.

        Follow entries whose podcast no longer exists are dropped from the page.
        The next token is derived from the follow entries, so dropped entries
        never shorten pagination.

        Raises:
            ValidationError: Missing account id
            ConsistencyFault: Follow entries exist but none of their podcasts do
            RetryableError: None of the podcasts could be read because DynamoDB
                left every key unprocessed
        """
        if not account_id:
            raise ValidationError("Account id is missing!", PodcastError.ACCOUNT_ID_MISSING)

        cursor = FollowedPodcastsCursor.decode(next_token)
        follows = await self.follows.query_followed(
            account_id, self.followed_page_size, after_timestamp=cursor.timestamp if cursor else None
        )
        if not follows:
            return page_payload([]), HTTPStatus.OK

        podcast_ids = list(dict.fromkeys(follow.podcast_id for follow in follows))
        podcasts, unprocessed_ids = await self.podcasts.get_podcasts(podcast_ids)

        if unprocessed_ids:
            logger.warning(f"{len(unprocessed_ids)} followed podcasts of account {account_id} were not read")

        if not podcasts:
            if unprocessed_ids:
                raise RetryableError(f"Followed podcasts of account {account_id} could not be read")
            raise ConsistencyFault(
                f"Podcasts with the ids {podcast_ids} couldn't be retrieved",
                context={'account_id': account_id}
            )

        podcasts_by_id = {podcast.podcast_id: podcast for podcast in podcasts}
        results = []
        for follow in follows:
            podcast = podcasts_by_id.get(follow.podcast_id)
            if podcast is None:
                logger.info(f"Dropping follow entry of account {account_id} for missing podcast {follow.podcast_id}")
                continue
            results.append(FollowedPodcastView.from_models(follow, podcast).to_payload())

        token = None
        if is_page_full(len(follows), self.followed_page_size):
            token = FollowedPodcastsCursor(timestamp=follows[-1].follow_timestamp).encode()

        return page_payload(results, token), HTTPStatus.OK

    async def get_episodes_from_podcast(
        self,
        podcast_id: Optional[str],
        last_release_timestamp: Union[int, str, None] = None,
        oldest_release_timestamp: Union[int, str, None] = None
    ) -> Response:
        """
        Up to 30 episodes of a podcast, newest first.

        Args:
            podcast_id: Podcast to list
            last_release_timestamp: Only episodes released after this time
            oldest_release_timestamp: Only episodes released before this time

        Malformed timestamps are ignored. There is no continuation token yet;
        callers page by passing the oldest release timestamp they have seen.
        """
        if not podcast_id:
            raise ValidationError("Podcast id is missing!", PodcastError.PODCAST_ID_MISSING)

        episodes = await self.podcasts.query_episodes(
            podcast_id,
            EPISODE_PAGE_SIZE,
            newer_than=_parse_timestamp(last_release_timestamp),
            older_than=_parse_timestamp(oldest_release_timestamp)
        )
        return page_payload(EpisodeView.from_episode(episode).to_payload() for episode in episodes), HTTPStatus.OK

    async def follow_podcast(self, account_id: Optional[str], podcast_id: Optional[str]) -> Response:
        """
        Follow a podcast.

        The follow timestamp is the current time, bumped past the account's
        latest follow entry so timestamps stay unique per account.

        Returns:
            (followed podcast payload, 201)

        Raises:
            NotFoundError: The podcast does not exist
            ConflictError: A concurrent follow took the same timestamp
        """
        _require_ids(account_id, podcast_id)

        podcast = await self.podcasts.get_podcast(podcast_id)
        if podcast is None:
            raise NotFoundError(
                "Podcast doesn't exist!",
                PodcastError.PODCAST_DOESNT_EXIST,
                resource_type='podcast',
                resource_name=podcast_id
            )

        latest = await self.follows.get_latest_follow(account_id)
        follow = FollowedPodcast(
            account_id=account_id,
            follow_timestamp=next_monotonic_timestamp(latest.follow_timestamp if latest else None, self.now()),
            podcast_id=podcast_id
        )
        await self.follow_writes.add_follow(follow)

        return FollowedPodcastView.from_models(follow, podcast).to_payload(), HTTPStatus.CREATED

    async def unfollow_podcast(self, account_id: Optional[str], podcast_id: Optional[str]) -> Response:
        """
        Remove every follow entry of the account for the podcast.

        Returns:
            ({'podcastId', 'removed', 'unprocessed'}, 200). A non-zero
            ``unprocessed`` count means the call should be repeated.

        Raises:
            NotFoundError: The account does not follow the podcast
        """
        _require_ids(account_id, podcast_id)

        follows = await self.follows.query_all_for_podcast(account_id, podcast_id)
        if not follows:
            raise NotFoundError(
                "Podcast is not followed!",
                PodcastError.PODCAST_NOT_FOLLOWED,
                resource_type='podcast',
                resource_name=podcast_id
            )

        result = await self.follow_writes.remove_follows(follows)
        payload = {
            'podcastId': podcast_id,
            'removed': result.processed_count,
            'unprocessed': len(result.unprocessed)
        }
        return payload, HTTPStatus.OK


def _require_ids(account_id: Optional[str], podcast_id: Optional[str]) -> None:
    if not account_id:
        raise ValidationError("Account id is missing!", PodcastError.ACCOUNT_ID_MISSING)
    if not podcast_id:
        raise ValidationError("Podcast id is missing!", PodcastError.PODCAST_ID_MISSING)


def _parse_timestamp(value: Union[int, str, None]) -> Optional[int]:
    """Positive integer from an int or numeric string, None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        timestamp = int(value)
    except (TypeError, ValueError):
        logger.info(f"Ignoring malformed release timestamp: {value!r}")
        return None
    return timestamp if timestamp > 0 else None
