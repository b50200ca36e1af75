"""
Base Model Components

DynamoDBMixin gives every stored model one canonical way in and out of the
table client. The table client already speaks plain Python (str, int, float,
bool, dict, list), so the mixin only drops unset attributes on the way out and
turns an unparseable row into a ConsistencyFault on the way in: a row the
service wrote itself that no longer validates is a data problem, not a client
input problem.
"""

import logging
from typing import Any, Dict

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConsistencyFault

logger = logging.getLogger(__name__)


class DynamoDBMixin(BaseModel):
    """
    Mixin providing DynamoDB serialization and deserialization.

    Features:
    - to_dynamodb_item: model dump without None values
    - from_dynamodb_item: model from a stored row, extra attributes ignored
    """

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """
        Convert model to a DynamoDB item.

        Returns:
            Dictionary ready for TableClient.put()

        Example:
            item = clip.to_dynamodb_item()
            await client.put('clips', item)
        """
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]):
        """
        Create model instance from a DynamoDB item.

        Args:
            item: Row returned by the table client

        Returns:
            Model instance

        Raises:
            ConsistencyFault: If the stored row does not fit the model
        """
        try:
            return cls.model_validate(item)
        except PydanticValidationError as e:
            logger.error(f"Failed to convert DynamoDB item to {cls.__name__}: {e}")
            raise ConsistencyFault(
                f"Failed to convert DynamoDB item to {cls.__name__}",
                original_error=e,
                context={'item': item}
            ) from e
