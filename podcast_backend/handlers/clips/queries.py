"""
Clip Read API

Read operations for clips:
- Primary key lookups with GetItem
- Latest clip of an account for an episode (strongly consistent, base table)
- Clips of an account across episodes (AccountClipsIndex GSI)
- Clips of an account within one episode (base table, sort key prefix)

List methods take an explicit page size; callers own pagination tokens.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...core import TableClient, add_sort_key_condition, build_partition_query
from ...models import Clip, account_index_prefix, format_account_index

logger = logging.getLogger(__name__)

ACCOUNT_CLIPS_INDEX = Clip.Meta.get_gsi_by_name("AccountClipsIndex")


class ClipReadApi:
    """
    Read-only API for clip queries.

    Uses optimized DynamoDB access patterns:
    - get_item on (episode_id, account_index)
    - begins_with on account_index for per-episode listings
    - GSI query on (account_id, creation_timestamp) for per-account listings
    """

    def __init__(self, client: TableClient):
        """Initialize read API with a table client."""
        self.client = client
        self.table = Clip.Meta.table_name

    async def get_clip(self, episode_id: str, account_id: str, clip_index: int) -> Optional[Clip]:
        """
        Get a clip by its identity.

        DynamoDB Operation: GetItem with primary key

        Returns:
            Clip if found, None otherwise
        """
        item = await self.client.get(
            self.table, Clip.Meta.key(episode_id, format_account_index(account_id, clip_index))
        )
        return Clip.from_dynamodb_item(item) if item else None

    async def get_latest_clip(self, account_id: str, episode_id: str) -> Optional[Clip]:
        """
        Get the clip with the highest index the account created for the episode.

        DynamoDB Operation: Query on the base table
        Key condition: episode_id = :e AND begins_with(account_index, 'account_')
        Descending, limit 1, strongly consistent so a clip written by the same
        caller just before is always seen.
        """
        condition = build_partition_query(
            Clip.Meta.partition_key, episode_id, limit=1, descending=True, consistent_read=True
        )
        add_sort_key_condition(condition, Clip.Meta.sort_key, account_index_prefix(account_id), 'begins_with')

        items = await self.client.query(self.table, condition)
        return Clip.from_dynamodb_item(items[0]) if items else None

    async def query_by_account(
        self,
        account_id: str,
        limit: int,
        after_timestamp: Optional[int] = None
    ) -> List[Clip]:
        """
        Query clips created by an account, oldest first.

        DynamoDB Operation: Query on AccountClipsIndex GSI
        GSI Structure: PK=account_id, SK=creation_timestamp

        Args:
            account_id: Creator account
            limit: Maximum items to return
            after_timestamp: Only clips created strictly after this timestamp

        Returns:
            List of clips in ascending creation order
        """
        index = ACCOUNT_CLIPS_INDEX
        condition = build_partition_query(index.partition_key, account_id, index_name=index.name, limit=limit)
        if after_timestamp is not None:
            add_sort_key_condition(condition, index.sort_key, after_timestamp, '>')

        items = await self.client.query(self.table, condition)
        return [Clip.from_dynamodb_item(item) for item in items]

    async def query_by_account_and_episode(
        self,
        account_id: str,
        episode_id: str,
        limit: int,
        start_key: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Clip], Optional[Dict[str, Any]]]:
        """
        Query the clips of an account within one episode, in index order.

        DynamoDB Operation: Query on the base table with a sort key prefix

        Args:
            account_id: Creator account
            episode_id: Episode the clips belong to
            limit: Maximum items to return
            start_key: LastEvaluatedKey of the previous page

        Returns:
            Tuple of (clip_list, last_evaluated_key)
        """
        condition = build_partition_query(Clip.Meta.partition_key, episode_id, limit=limit)
        add_sort_key_condition(condition, Clip.Meta.sort_key, account_index_prefix(account_id), 'begins_with')

        items, last_key = await self.client.query_page(self.table, condition, start_key)
        return [Clip.from_dynamodb_item(item) for item in items], last_key
