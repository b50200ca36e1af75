"""
Core infrastructure components for DynamoDB operations.

This module contains the foundational components used across all domain modules:
- Expression builders for key conditions and partial updates
- Pagination cursors (scalar and composite continuation tokens)
- TableClient: Thin async wrapper over aiobotocore DynamoDB operations
"""

from .expressions import (
    KeyCondition,
    UpdateExpression,
    add_sort_key_condition,
    build_partition_query,
    build_update_expression,
)
from .pagination import (
    ClipsByAccountCursor,
    ClipsOfEpisodeCursor,
    CompositeCursor,
    FollowedPodcastsCursor,
    ScalarCursor,
    is_page_full,
)
from .table_client import (
    BatchGetResult,
    BatchWriteResult,
    TableClient,
    create_table_client,
    map_dynamodb_error,
)

__all__ = [
    "KeyCondition",
    "UpdateExpression",
    "add_sort_key_condition",
    "build_partition_query",
    "build_update_expression",
    "ClipsByAccountCursor",
    "ClipsOfEpisodeCursor",
    "CompositeCursor",
    "FollowedPodcastsCursor",
    "ScalarCursor",
    "is_page_full",
    "BatchGetResult",
    "BatchWriteResult",
    "TableClient",
    "create_table_client",
    "map_dynamodb_error",
]
