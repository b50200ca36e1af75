"""
Async DynamoDB Table Client

A thin façade over the aiobotocore DynamoDB client. It:

1. Marshals plain Python values to and from DynamoDB attribute values
2. Maps botocore failures to StoreError and its subclasses
3. Returns only the payload (item, items, attributes), never the raw envelope
4. Reports unprocessed batch keys/items back to the caller instead of retrying

Design Philosophy:
- One explicitly constructed instance per process, passed into every read/write
  API. No module-level client.
- Methods take base table names; the config resolves prefix and environment.
- Retry policy belongs to callers. Partial batch results are returned as they
  are and logged at WARNING.
- DynamoDBConfig.retries is botocore transport configuration (AioConfig
  max_attempts) applied within a single request; this module never re-issues
  a failed or partial call.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DynamoDBConfig
from ..exceptions import ConflictError, RetryableError, StoreError
from .expressions import KeyCondition, UpdateExpression

logger = logging.getLogger(__name__)

BATCH_GET_LIMIT = 100
BATCH_WRITE_LIMIT = 25


def map_dynamodb_error(
    error: Exception,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> StoreError:
    """Map a botocore failure to a StoreError subclass.

    Args:
        error: The botocore ClientError or BotoCoreError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional resource identifier for context

    Returns:
        ConflictError for failed conditions, RetryableError for throttling and
        service unavailability, StoreError otherwise
    """
    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    if not isinstance(error, ClientError):
        return StoreError(f"DynamoDB operation failed - {context}: {error}", original_error=error)

    error_code = error.response['Error']['Code']
    error_message = error.response['Error']['Message']
    full_message = f"{context}: {error_message}"

    if error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code in ['TransactionConflictException', 'DuplicateTransactionException']:
        return ConflictError(f"Transaction conflict - {full_message}", resource_id, original_error=error)

    elif error_code in [
        'ProvisionedThroughputExceededException', 'RequestLimitExceeded',
        'ThrottlingException', 'TooManyRequestsException'
    ]:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in [
        'InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException',
        'RequestTimeoutException'
    ]:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code == 'ResourceNotFoundException':
        return StoreError(f"Table or index not found - {full_message}", original_error=error)

    elif error_code == 'ValidationException':
        return StoreError(f"Request rejected by DynamoDB - {full_message}", original_error=error)

    elif error_code in [
        'UnrecognizedClientException', 'AccessDeniedException',
        'ExpiredTokenException', 'InvalidSignatureException'
    ]:
        return StoreError(f"Authentication/authorization failed - {full_message}", original_error=error)

    elif error_code == 'ItemCollectionSizeLimitExceededException':
        return StoreError(f"Item collection size limit exceeded - {full_message}", original_error=error)

    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to StoreError")
    return StoreError(f"DynamoDB operation failed - {full_message}", original_error=error)


class BatchGetResult(NamedTuple):
    """Items found plus the keys DynamoDB left unprocessed."""

    items: List[Dict[str, Any]]
    unprocessed_keys: List[Dict[str, Any]]


class BatchWriteResult(NamedTuple):
    """Number of requests applied plus the requests DynamoDB left unprocessed."""

    processed_count: int
    unprocessed: List[Dict[str, Any]]


def _to_dynamodb_value(value: Any) -> Any:
    """Floats are not accepted by TypeSerializer; send them as Decimal."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamodb_value(v) for v in value]
    return value


def _from_dynamodb_value(value: Any) -> Any:
    """DynamoDB numbers come back as Decimal; hand out int or float."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamodb_value(v) for v in value]
    if isinstance(value, set):
        return {_from_dynamodb_value(v) for v in value}
    return value


class TableClient:
    """
    Async façade over DynamoDB get/put/update/delete/query/batch operations.

    Usage:
        async with TableClient(config) as client:
            clip = await client.get('clips', {'episode_id': ..., 'account_index': ...})
    """

    def __init__(self, config: DynamoDBConfig):
        """Initialize table client.

        Args:
            config: DynamoDB configuration
        """
        self.config = config
        self._session = None
        self._client_context = None
        self._client = None
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def open(self) -> 'TableClient':
        """Create the underlying aiobotocore client (idempotent)."""
        if self._client is not None:
            return self

        try:
            self._session = get_session()

            client_kwargs = {
                'region_name': self.config.region_name,
                'aws_access_key_id': self.config.aws_access_key_id,
                'aws_secret_access_key': self.config.aws_secret_access_key,
                'config': AioConfig(
                    retries={'max_attempts': self.config.retries},
                    max_pool_connections=self.config.max_pool_connections,
                    read_timeout=self.config.timeout_seconds,
                    connect_timeout=self.config.timeout_seconds
                )
            }
            if self.config.endpoint_url:
                client_kwargs['endpoint_url'] = self.config.endpoint_url

            self._client_context = self._session.create_client('dynamodb', **client_kwargs)
            self._client = await self._client_context.__aenter__()
        except (BotoCoreError, ValueError) as e:
            logger.error(f"Failed to create DynamoDB client: {e}")
            raise StoreError(f"Failed to connect to DynamoDB: {e}", e) from e

        logger.info(f"DynamoDB client opened (region={self.config.region_name}, environment={self.config.environment})")
        return self

    async def close(self) -> None:
        """Release the underlying client."""
        if self._client is None:
            return
        await self._client_context.__aexit__(None, None, None)
        self._client = None
        self._client_context = None
        logger.info("DynamoDB client closed")

    async def __aenter__(self) -> 'TableClient':
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def client(self):
        if self._client is None:
            raise StoreError("TableClient is not open; call open() or use 'async with'")
        return self._client

    def table_name(self, base_name: str) -> str:
        return self.config.get_table_name(base_name)

    # ------------------------------------------------------------------ #
    # Marshalling
    # ------------------------------------------------------------------ #

    def _serialize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: self._serializer.serialize(_to_dynamodb_value(v)) for k, v in item.items()}

    def _deserialize(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: _from_dynamodb_value(self._deserializer.deserialize(v)) for k, v in item.items()}

    # ------------------------------------------------------------------ #
    # Single item operations
    # ------------------------------------------------------------------ #

    async def get(
        self,
        table: str,
        key: Dict[str, Any],
        consistent_read: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Get a single item by primary key.

        Returns:
            The item, or None if absent
        """
        table_name = self.table_name(table)
        logger.info(f"DB Get on {table_name}: {key}")

        try:
            response = await self.client.get_item(
                TableName=table_name,
                Key=self._serialize(key),
                ConsistentRead=consistent_read
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"DB Get on {table_name} failed: {e}")
            raise map_dynamodb_error(e, "GetItem", table_name, str(key)) from e

        item = response.get('Item')
        return self._deserialize(item) if item else None

    async def put(
        self,
        table: str,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Put an item, optionally conditionally.

        Example:
            await client.put(
                'clips', item,
                condition_expression='attribute_not_exists(#pk)',
                expression_attribute_names={'#pk': 'episode_id'}
            )

        Raises:
            ConflictError: The condition failed
            StoreError: Any other store failure
        """
        table_name = self.table_name(table)
        logger.info(f"DB Put on {table_name}: {item}")

        put_kwargs = {
            'TableName': table_name,
            'Item': self._serialize(item)
        }
        if condition_expression:
            put_kwargs['ConditionExpression'] = condition_expression
        if expression_attribute_names:
            put_kwargs['ExpressionAttributeNames'] = expression_attribute_names

        try:
            await self.client.put_item(**put_kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"DB Put on {table_name} failed: {e}")
            raise map_dynamodb_error(e, "PutItem", table_name) from e

    async def update(
        self,
        table: str,
        key: Dict[str, Any],
        update: UpdateExpression,
        condition_expression: Optional[str] = None,
        condition_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'ALL_NEW'
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update.

        Args:
            table: Base table name
            key: Primary key of the item
            update: Expression from build_update_expression(); must not be empty
            condition_expression: Optional condition
            condition_attribute_names: Placeholders used by the condition
            return_values: What DynamoDB should return

        Returns:
            Attributes after (or before) the write, None for 'NONE'

        Raises:
            ValueError: If the update expression is empty
            ConflictError: The condition failed
            StoreError: Any other store failure
        """
        if update.is_empty:
            raise ValueError("Refusing to send an empty update expression")

        table_name = self.table_name(table)
        logger.info(f"DB Update on {table_name}: {key} {update.expression}")

        attribute_names = dict(update.attribute_names)
        if condition_attribute_names:
            attribute_names.update(condition_attribute_names)

        update_kwargs = {
            'TableName': table_name,
            'Key': self._serialize(key),
            'UpdateExpression': update.expression,
            'ExpressionAttributeNames': attribute_names,
            'ExpressionAttributeValues': self._serialize(update.attribute_values),
            'ReturnValues': return_values
        }
        if condition_expression:
            update_kwargs['ConditionExpression'] = condition_expression

        try:
            response = await self.client.update_item(**update_kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"DB Update on {table_name} failed: {e}")
            raise map_dynamodb_error(e, "UpdateItem", table_name, str(key)) from e

        attributes = response.get('Attributes')
        return self._deserialize(attributes) if attributes else None

    async def delete(
        self,
        table: str,
        key: Dict[str, Any],
        condition_expression: Optional[str] = None,
        condition_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Delete an item.

        Returns:
            Deleted attributes if return_values is 'ALL_OLD' and the item existed
        """
        table_name = self.table_name(table)
        logger.info(f"DB Delete on {table_name}: {key}")

        delete_kwargs = {
            'TableName': table_name,
            'Key': self._serialize(key),
            'ReturnValues': return_values
        }
        if condition_expression:
            delete_kwargs['ConditionExpression'] = condition_expression
        if condition_attribute_names:
            delete_kwargs['ExpressionAttributeNames'] = condition_attribute_names

        try:
            response = await self.client.delete_item(**delete_kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"DB Delete on {table_name} failed: {e}")
            raise map_dynamodb_error(e, "DeleteItem", table_name, str(key)) from e

        attributes = response.get('Attributes')
        return self._deserialize(attributes) if attributes else None

    # ------------------------------------------------------------------ #
    # Query
    # ------------------------------------------------------------------ #

    async def query_page(
        self,
        table: str,
        condition: KeyCondition,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Execute one Query call.

        Args:
            table: Base table name
            condition: Key condition from build_partition_query()
            exclusive_start_key: LastEvaluatedKey of the previous page

        Returns:
            Tuple of (items, last_evaluated_key); the key is None on the last page
        """
        table_name = self.table_name(table)
        query_kwargs = condition.to_query_kwargs()
        query_kwargs['TableName'] = table_name
        query_kwargs['ExpressionAttributeValues'] = self._serialize(query_kwargs['ExpressionAttributeValues'])
        if exclusive_start_key:
            query_kwargs['ExclusiveStartKey'] = self._serialize(exclusive_start_key)

        logger.info(f"DB Query on {table_name}: {condition!r} start={exclusive_start_key}")

        try:
            response = await self.client.query(**query_kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"DB Query on {table_name} failed: {e}")
            raise map_dynamodb_error(e, "Query", table_name) from e

        items = [self._deserialize(item) for item in response.get('Items', [])]
        last_key = response.get('LastEvaluatedKey')
        logger.info(f"DB Query on {table_name} returned {len(items)} items")
        return items, (self._deserialize(last_key) if last_key else None)

    async def query(
        self,
        table: str,
        condition: KeyCondition,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Execute one Query call and return its items only."""
        items, _ = await self.query_page(table, condition, exclusive_start_key)
        return items

    # ------------------------------------------------------------------ #
    # Batch operations
    # ------------------------------------------------------------------ #

    async def batch_get(
        self,
        table: str,
        keys: Iterable[Dict[str, Any]],
        consistent_read: bool = False
    ) -> BatchGetResult:
        """
        Get many items by key.

        Keys are de-duplicated (DynamoDB rejects duplicates) and sent in chunks of
        100. Missing items are simply absent from the result. Keys DynamoDB did
        not process are returned in ``unprocessed_keys`` and logged; compare
        cardinalities and re-issue if the shortfall matters.
        """
        table_name = self.table_name(table)
        unique_keys = _unique(keys)
        items: List[Dict[str, Any]] = []
        unprocessed_keys: List[Dict[str, Any]] = []

        for start in range(0, len(unique_keys), BATCH_GET_LIMIT):
            chunk = unique_keys[start:start + BATCH_GET_LIMIT]
            logger.info(f"DB GetMany on {table_name}: {len(chunk)} keys")

            try:
                response = await self.client.batch_get_item(
                    RequestItems={
                        table_name: {
                            'Keys': [self._serialize(key) for key in chunk],
                            'ConsistentRead': consistent_read
                        }
                    }
                )
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"DB GetMany on {table_name} failed: {e}")
                raise map_dynamodb_error(e, "BatchGetItem", table_name) from e

            items.extend(self._deserialize(item) for item in response.get('Responses', {}).get(table_name, []))

            unprocessed = response.get('UnprocessedKeys', {}).get(table_name, {}).get('Keys', [])
            if unprocessed:
                logger.warning(f"Unprocessed keys received after GetMany on {table_name}: {len(unprocessed)}")
                unprocessed_keys.extend(self._deserialize(key) for key in unprocessed)

        return BatchGetResult(items, unprocessed_keys)

    async def batch_write(
        self,
        table: str,
        put_items: Iterable[Dict[str, Any]] = (),
        delete_keys: Iterable[Dict[str, Any]] = ()
    ) -> BatchWriteResult:
        """
        Put and delete many items, in chunks of 25 requests.

        Requests DynamoDB did not process are returned (as plain
        ``{'PutRequest': {'Item': ...}}`` / ``{'DeleteRequest': {'Key': ...}}``
        dictionaries) and logged. Nothing is retried.
        """
        table_name = self.table_name(table)
        requests = [{'PutRequest': {'Item': item}} for item in put_items]
        requests += [{'DeleteRequest': {'Key': key}} for key in delete_keys]

        processed_count = 0
        unprocessed: List[Dict[str, Any]] = []

        for start in range(0, len(requests), BATCH_WRITE_LIMIT):
            chunk = requests[start:start + BATCH_WRITE_LIMIT]
            logger.info(f"DB WriteMany on {table_name}: {len(chunk)} requests")

            try:
                response = await self.client.batch_write_item(
                    RequestItems={table_name: [self._serialize_write_request(r) for r in chunk]}
                )
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"DB WriteMany on {table_name} failed: {e}")
                raise map_dynamodb_error(e, "BatchWriteItem", table_name) from e

            chunk_unprocessed = response.get('UnprocessedItems', {}).get(table_name, [])
            if chunk_unprocessed:
                logger.warning(
                    f"Unprocessed items received after WriteMany on {table_name}: {len(chunk_unprocessed)}"
                )
                unprocessed.extend(self._deserialize_write_request(r) for r in chunk_unprocessed)
            processed_count += len(chunk) - len(chunk_unprocessed)

        return BatchWriteResult(processed_count, unprocessed)

    def _serialize_write_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if 'PutRequest' in request:
            return {'PutRequest': {'Item': self._serialize(request['PutRequest']['Item'])}}
        return {'DeleteRequest': {'Key': self._serialize(request['DeleteRequest']['Key'])}}

    def _deserialize_write_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if 'PutRequest' in request:
            return {'PutRequest': {'Item': self._deserialize(request['PutRequest']['Item'])}}
        return {'DeleteRequest': {'Key': self._deserialize(request['DeleteRequest']['Key'])}}


def _unique(keys: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    unique_keys = []
    for key in keys:
        marker = tuple(sorted(key.items()))
        if marker not in seen:
            seen.add(marker)
            unique_keys.append(key)
    return unique_keys


def create_table_client(config: Optional[DynamoDBConfig] = None) -> TableClient:
    """
    Factory function to create a TableClient instance.

    The client still has to be opened (``await client.open()`` or ``async with``).
    """
    return TableClient(config or DynamoDBConfig.from_env())
