"""
Followed Podcasts Write API

- PutItem for new follow entries, always conditional: follow timestamps are
  unique per account and an existing entry is never replaced
- BatchWriteItem deletes for unfollowing
"""

import logging
from typing import Iterable

from ...core import BatchWriteResult, TableClient
from ...models import FollowedPodcast

logger = logging.getLogger(__name__)


class FollowedPodcastsWriteApi:
    """Write-only API for follow entries."""

    def __init__(self, client: TableClient):
        """Initialize write API with a table client."""
        self.client = client
        self.table = FollowedPodcast.Meta.table_name

    async def add_follow(self, follow: FollowedPodcast) -> FollowedPodcast:
        """
        Store a new follow entry.

        DynamoDB Operation: PutItem with ConditionExpression
        Condition: attribute_not_exists(account_id)

        Raises:
            ConflictError: An entry with the same follow_timestamp exists
        """
        await self.client.put(
            self.table,
            follow.to_dynamodb_item(),
            condition_expression='attribute_not_exists(#pk)',
            expression_attribute_names={'#pk': FollowedPodcast.Meta.partition_key}
        )
        logger.info(f"Account {follow.account_id} followed podcast {follow.podcast_id} at {follow.follow_timestamp}")
        return follow

    async def remove_follows(self, follows: Iterable[FollowedPodcast]) -> BatchWriteResult:
        """
        Delete follow entries.

        DynamoDB Operation: BatchWriteItem (DeleteRequest per entry)

        Returns:
            BatchWriteResult; unprocessed deletes are not retried
        """
        result = await self.client.batch_write(
            self.table,
            delete_keys=[
                FollowedPodcast.Meta.key(follow.account_id, follow.follow_timestamp)
                for follow in follows
            ]
        )
        logger.info(f"Removed {result.processed_count} follow entries ({len(result.unprocessed)} unprocessed)")
        return result
