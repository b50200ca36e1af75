"""
Podcast Read APIs

PodcastReadApi:
- Podcast lookups (single and batch)
- Episode lookups and release-time range listings (PodcastReleaseIndex GSI)

FollowedPodcastsReadApi:
- Follow entries of an account, paginated by follow_timestamp
- Latest follow entry of an account (for timestamp assignment)
- All follow entries of an account for one podcast
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ...core import TableClient, add_sort_key_condition, build_partition_query
from ...models import Episode, FollowedPodcast, Podcast

logger = logging.getLogger(__name__)

PODCAST_RELEASE_INDEX = Episode.Meta.get_gsi_by_name("PodcastReleaseIndex")
FOLLOW_SCAN_PAGE_SIZE = 100


class PodcastReadApi:
    """Read-only API for podcasts and their episodes."""

    def __init__(self, client: TableClient):
        """Initialize read API with a table client."""
        self.client = client
        self.podcast_table = Podcast.Meta.table_name
        self.episode_table = Episode.Meta.table_name

    async def get_podcast(self, podcast_id: str) -> Optional[Podcast]:
        """
        Get a podcast by ID.

        DynamoDB Operation: GetItem with primary key
        """
        item = await self.client.get(self.podcast_table, Podcast.Meta.key(podcast_id))
        return Podcast.from_dynamodb_item(item) if item else None

    async def get_podcasts(self, podcast_ids: Iterable[str]) -> Tuple[List[Podcast], List[str]]:
        """
        Get many podcasts by ID.

        DynamoDB Operation: BatchGetItem

        Returns:
            Tuple of (podcasts_found, podcast_ids_left_unprocessed). IDs of
            podcasts that do not exist appear in neither list.
        """
        result = await self.client.batch_get(
            self.podcast_table,
            [Podcast.Meta.key(podcast_id) for podcast_id in podcast_ids]
        )
        podcasts = [Podcast.from_dynamodb_item(item) for item in result.items]
        unprocessed_ids = [key[Podcast.Meta.partition_key] for key in result.unprocessed_keys]
        return podcasts, unprocessed_ids

    async def get_episode(self, podcast_id: str, release_index: int) -> Optional[Episode]:
        """
        Get an episode by (podcast_id, release_index).

        DynamoDB Operation: GetItem with primary key
        """
        item = await self.client.get(self.episode_table, Episode.Meta.key(podcast_id, release_index))
        return Episode.from_dynamodb_item(item) if item else None

    async def episode_exists(self, podcast_id: str, release_index: int) -> bool:
        """
        Whether an episode row exists. The row is not parsed, so attributes
        written by the import pipeline in another shape do not matter here.

        DynamoDB Operation: GetItem with primary key
        """
        item = await self.client.get(self.episode_table, Episode.Meta.key(podcast_id, release_index))
        return item is not None

    async def query_episodes(
        self,
        podcast_id: str,
        limit: int,
        newer_than: Optional[int] = None,
        older_than: Optional[int] = None
    ) -> List[Episode]:
        """
        Query episodes of a podcast, newest first.

        DynamoDB Operation: Query on PodcastReleaseIndex GSI
        GSI Structure: PK=podcast_id, SK=release_timestamp

        Args:
            podcast_id: Podcast to list
            limit: Maximum items to return
            newer_than: Only episodes released strictly after this timestamp
            older_than: Only episodes released strictly before this timestamp

        Returns:
            List of episodes by descending release timestamp
        """
        index = PODCAST_RELEASE_INDEX
        condition = build_partition_query(
            index.partition_key, podcast_id, index_name=index.name, limit=limit, descending=True
        )

        if newer_than is not None and older_than is not None:
            # Exclusive bounds expressed as an inclusive BETWEEN
            lower, upper = newer_than + 1, older_than - 1
            if lower > upper:
                logger.info(f"Empty release range ({newer_than}, {older_than}) for podcast {podcast_id}")
                return []
            add_sort_key_condition(condition, index.sort_key, lower, 'between', upper)
        elif newer_than is not None:
            add_sort_key_condition(condition, index.sort_key, newer_than, '>')
        elif older_than is not None:
            add_sort_key_condition(condition, index.sort_key, older_than, '<')

        items = await self.client.query(self.episode_table, condition)
        return [Episode.from_dynamodb_item(item) for item in items]


class FollowedPodcastsReadApi:
    """Read-only API for follow entries."""

    def __init__(self, client: TableClient):
        """Initialize read API with a table client."""
        self.client = client
        self.table = FollowedPodcast.Meta.table_name

    async def query_followed(
        self,
        account_id: str,
        limit: int,
        after_timestamp: Optional[int] = None
    ) -> List[FollowedPodcast]:
        """
        Query follow entries of an account, oldest first.

        DynamoDB Operation: Query on the base table
        Key condition: account_id = :a [AND follow_timestamp > :cursor]
        """
        condition = build_partition_query(FollowedPodcast.Meta.partition_key, account_id, limit=limit)
        if after_timestamp is not None:
            add_sort_key_condition(condition, FollowedPodcast.Meta.sort_key, after_timestamp, '>')

        items = await self.client.query(self.table, condition)
        return [FollowedPodcast.from_dynamodb_item(item) for item in items]

    async def get_latest_follow(self, account_id: str) -> Optional[FollowedPodcast]:
        """Most recent follow entry of an account (strongly consistent)."""
        condition = build_partition_query(
            FollowedPodcast.Meta.partition_key, account_id, limit=1, descending=True, consistent_read=True
        )
        items = await self.client.query(self.table, condition)
        return FollowedPodcast.from_dynamodb_item(items[0]) if items else None

    async def query_all_for_podcast(self, account_id: str, podcast_id: str) -> List[FollowedPodcast]:
        """
        All follow entries of an account that refer to one podcast.

        DynamoDB Operation: Query on the base table, every page. Entries are
        filtered client side; an account follows a bounded number of podcasts.
        """
        follows: List[FollowedPodcast] = []
        start_key = None

        while True:
            condition = build_partition_query(FollowedPodcast.Meta.partition_key, account_id, limit=FOLLOW_SCAN_PAGE_SIZE)
            items, start_key = await self.client.query_page(self.table, condition, start_key)
            follows.extend(
                FollowedPodcast.from_dynamodb_item(item)
                for item in items
                if item.get('podcast_id') == podcast_id
            )
            if not start_key:
                return follows
