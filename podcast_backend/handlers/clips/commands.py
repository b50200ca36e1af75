"""
Clip Write API

Write operations for clips:
- PutItem for new clips, optionally conditional on the key being unused
- UpdateItem with a SET expression restricted to Clip.UPDATABLE_FIELDS
- DeleteItem returning the removed row

Update and delete require the row to exist (attribute_exists); a failed
condition is reported as ItemNotFoundError.
"""

import logging
from typing import Any, Dict

from ...core import TableClient, build_update_expression
from ...exceptions import ConflictError, ItemNotFoundError
from ...models import Clip, format_account_index

logger = logging.getLogger(__name__)

KEY_EXISTS = 'attribute_exists(#pk)'
KEY_NOT_EXISTS = 'attribute_not_exists(#pk)'
PARTITION_KEY_PLACEHOLDER = {'#pk': Clip.Meta.partition_key}


class ClipWriteApi:
    """
    Write-only API for clip mutations.

    ``prevent_overwrite`` decides what happens when two concurrent creations
    derive the same clip index: off, the later put replaces the earlier one;
    on, the later put fails with ConflictError.
    """

    def __init__(self, client: TableClient, prevent_overwrite: bool = False):
        """Initialize write API with a table client."""
        self.client = client
        self.prevent_overwrite = prevent_overwrite
        self.table = Clip.Meta.table_name

    async def put_clip(self, clip: Clip) -> Clip:
        """
        Store a new clip.

        DynamoDB Operation: PutItem
        Condition (prevent_overwrite only): attribute_not_exists(episode_id)

        Raises:
            ConflictError: A clip with the same key exists and prevent_overwrite is on
        """
        if self.prevent_overwrite:
            await self.client.put(
                self.table,
                clip.to_dynamodb_item(),
                condition_expression=KEY_NOT_EXISTS,
                expression_attribute_names=PARTITION_KEY_PLACEHOLDER
            )
        else:
            await self.client.put(self.table, clip.to_dynamodb_item())

        logger.info(f"Created clip: {clip.clip_id}")
        return clip

    async def update_clip(
        self,
        episode_id: str,
        account_id: str,
        clip_index: int,
        fields: Dict[str, Any]
    ) -> Clip:
        """
        Update title and/or notes of an existing clip.

        DynamoDB Operation: UpdateItem with ConditionExpression
        Condition: attribute_exists(episode_id) - the clip must exist

        Args:
            episode_id: Episode of the clip
            account_id: Creator account
            clip_index: Index of the clip
            fields: New values, keys limited to Clip.UPDATABLE_FIELDS

        Returns:
            The clip after the update

        Raises:
            ValueError: Unknown or no fields
            ItemNotFoundError: The clip does not exist
        """
        update = build_update_expression(fields, allowed=Clip.UPDATABLE_FIELDS)
        key = Clip.Meta.key(episode_id, format_account_index(account_id, clip_index))

        try:
            attributes = await self.client.update(
                self.table,
                key,
                update,
                condition_expression=KEY_EXISTS,
                condition_attribute_names=PARTITION_KEY_PLACEHOLDER
            )
        except ConflictError as e:
            raise ItemNotFoundError(self.table, key, e) from e

        logger.info(f"Updated clip {key}: {list(update.fields)}")
        return Clip.from_dynamodb_item(attributes)

    async def delete_clip(self, episode_id: str, account_id: str, clip_index: int) -> Clip:
        """
        Delete an existing clip.

        DynamoDB Operation: DeleteItem with ConditionExpression, ReturnValues=ALL_OLD

        Returns:
            The deleted clip

        Raises:
            ItemNotFoundError: The clip does not exist
        """
        key = Clip.Meta.key(episode_id, format_account_index(account_id, clip_index))

        try:
            attributes = await self.client.delete(
                self.table,
                key,
                condition_expression=KEY_EXISTS,
                condition_attribute_names=PARTITION_KEY_PLACEHOLDER,
                return_values='ALL_OLD'
            )
        except ConflictError as e:
            raise ItemNotFoundError(self.table, key, e) from e

        logger.info(f"Deleted clip {key}")
        return Clip.from_dynamodb_item(attributes)
