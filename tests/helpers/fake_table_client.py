"""
In-memory stand-in for TableClient.

Implements the same coroutine surface (get/put/update/delete/query/query_page/
batch_get/batch_write) over plain dictionaries, evaluating KeyCondition objects
structurally: partition equality, one sort key condition, index selection,
scan direction, limit and ExclusiveStartKey. Enough DynamoDB behaviour for the
service scenarios to run end to end without a network.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional, Tuple

from podcast_backend.config import DynamoDBConfig
from podcast_backend.core import BatchGetResult, BatchWriteResult, KeyCondition, UpdateExpression
from podcast_backend.exceptions import ConflictError
from podcast_backend.models import Clip, Episode, FollowedPodcast, Podcast

DEFAULT_METAS = (Podcast.Meta, Episode.Meta, FollowedPodcast.Meta, Clip.Meta)

_COMPARATORS = {
    '=': lambda value, bound, _: value == bound,
    '<': lambda value, bound, _: value < bound,
    '<=': lambda value, bound, _: value <= bound,
    '>': lambda value, bound, _: value > bound,
    '>=': lambda value, bound, _: value >= bound,
    'begins_with': lambda value, bound, _: isinstance(value, str) and value.startswith(bound),
    'between': lambda value, lower, upper: lower <= value <= upper,
}


class InMemoryTableClient:
    """Dictionary-backed table client for tests."""

    def __init__(self, config: Optional[DynamoDBConfig] = None, metas=DEFAULT_METAS):
        self.config = config or DynamoDBConfig(environment="test")
        self.metas = {meta.table_name: meta for meta in metas}
        self.tables: Dict[str, Dict[Tuple, Dict[str, Any]]] = {name: {} for name in self.metas}
        # Key tuples that batch operations report as unprocessed
        self.unprocessed: set = set()
        self.calls: List[Tuple[str, str]] = []

    # ------------------------------------------------------------------ #
    # Test helpers
    # ------------------------------------------------------------------ #

    def seed(self, table: str, *items: Dict[str, Any]) -> None:
        for item in items:
            self.tables[table][self._key_of(table, item)] = copy.deepcopy(item)

    def items(self, table: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(item) for item in self.tables[table].values()]

    def leave_unprocessed(self, table: str, key: Dict[str, Any]) -> None:
        self.unprocessed.add((table, self._key_of(table, key)))

    def _key_of(self, table: str, item: Dict[str, Any]) -> Tuple:
        return tuple(item[name] for name in self.metas[table].get_key_fields())

    def _key_dict(self, table: str, item: Dict[str, Any]) -> Dict[str, Any]:
        return {name: item[name] for name in self.metas[table].get_key_fields()}

    def _check_condition(self, table: str, key: Tuple, condition_expression: Optional[str]) -> None:
        if not condition_expression:
            return
        exists = key in self.tables[table]
        if condition_expression.startswith('attribute_not_exists') and exists:
            raise ConflictError(f"Conditional check failed - PutItem on {table}", str(key))
        if condition_expression.startswith('attribute_exists') and not exists:
            raise ConflictError(f"Conditional check failed on {table}", str(key))

    # ------------------------------------------------------------------ #
    # Single item operations
    # ------------------------------------------------------------------ #

    async def get(self, table: str, key: Dict[str, Any], consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        self.calls.append(('get', table))
        item = self.tables[table].get(self._key_of(table, key))
        return copy.deepcopy(item) if item else None

    async def put(
        self,
        table: str,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None
    ) -> None:
        self.calls.append(('put', table))
        key = self._key_of(table, item)
        self._check_condition(table, key, condition_expression)
        self.tables[table][key] = copy.deepcopy(item)

    async def update(
        self,
        table: str,
        key: Dict[str, Any],
        update: UpdateExpression,
        condition_expression: Optional[str] = None,
        condition_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'ALL_NEW'
    ) -> Optional[Dict[str, Any]]:
        self.calls.append(('update', table))
        if update.is_empty:
            raise ValueError("Refusing to send an empty update expression")

        key_tuple = self._key_of(table, key)
        self._check_condition(table, key_tuple, condition_expression)

        item = self.tables[table].setdefault(key_tuple, dict(key))
        item.update(copy.deepcopy(update.fields))
        return copy.deepcopy(item) if return_values == 'ALL_NEW' else None

    async def delete(
        self,
        table: str,
        key: Dict[str, Any],
        condition_expression: Optional[str] = None,
        condition_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        self.calls.append(('delete', table))
        key_tuple = self._key_of(table, key)
        self._check_condition(table, key_tuple, condition_expression)

        old = self.tables[table].pop(key_tuple, None)
        return old if return_values == 'ALL_OLD' else None

    # ------------------------------------------------------------------ #
    # Query
    # ------------------------------------------------------------------ #

    async def query_page(
        self,
        table: str,
        condition: KeyCondition,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        self.calls.append(('query', table))
        meta = self.metas[table]
        key_fields = meta.get_key_fields()

        if condition.index_name:
            gsi = meta.get_gsi_by_name(condition.index_name)
            assert gsi is not None, f"Unknown index {condition.index_name}"
            assert gsi.partition_key == condition.partition_key
            assert not condition.consistent_read, "GSIs do not support consistent reads"
            sort_key = gsi.sort_key
        else:
            assert meta.partition_key == condition.partition_key
            sort_key = meta.sort_key

        if condition.has_sort_condition:
            assert condition.sort_key == sort_key, f"{condition.sort_key} is not the sort key"

        def order(item):
            return (item[sort_key], tuple(item[name] for name in key_fields))

        matches = [
            item for item in self.tables[table].values()
            if item.get(condition.partition_key) == condition.partition_value and sort_key in item
        ]
        if condition.has_sort_condition:
            compare = _COMPARATORS[condition.sort_operator]
            matches = [
                item for item in matches
                if compare(item[sort_key], condition.sort_value, condition.sort_value2)
            ]

        matches.sort(key=order, reverse=condition.descending)

        if exclusive_start_key:
            start = order(exclusive_start_key)
            if condition.descending:
                matches = [item for item in matches if order(item) < start]
            else:
                matches = [item for item in matches if order(item) > start]

        last_key = None
        if condition.limit and len(matches) >= condition.limit:
            matches = matches[:condition.limit]
            last_item = matches[-1]
            last_key = self._key_dict(table, last_item)
            last_key[condition.partition_key] = last_item[condition.partition_key]
            last_key[sort_key] = last_item[sort_key]

        items = [copy.deepcopy(item) for item in matches]
        if condition.key_only:
            items = [{condition.partition_key: item[condition.partition_key]} for item in items]

        return items, last_key

    async def query(
        self,
        table: str,
        condition: KeyCondition,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
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
        self.calls.append(('batch_get', table))
        items, unprocessed_keys, seen = [], [], set()

        for key in keys:
            key_tuple = self._key_of(table, key)
            if key_tuple in seen:
                continue
            seen.add(key_tuple)

            if (table, key_tuple) in self.unprocessed:
                unprocessed_keys.append(dict(key))
            elif key_tuple in self.tables[table]:
                items.append(copy.deepcopy(self.tables[table][key_tuple]))

        return BatchGetResult(items, unprocessed_keys)

    async def batch_write(
        self,
        table: str,
        put_items: Iterable[Dict[str, Any]] = (),
        delete_keys: Iterable[Dict[str, Any]] = ()
    ) -> BatchWriteResult:
        self.calls.append(('batch_write', table))
        processed, unprocessed = 0, []

        for item in put_items:
            key_tuple = self._key_of(table, item)
            if (table, key_tuple) in self.unprocessed:
                unprocessed.append({'PutRequest': {'Item': dict(item)}})
                continue
            self.tables[table][key_tuple] = copy.deepcopy(item)
            processed += 1

        for key in delete_keys:
            key_tuple = self._key_of(table, key)
            if (table, key_tuple) in self.unprocessed:
                unprocessed.append({'DeleteRequest': {'Key': dict(key)}})
                continue
            self.tables[table].pop(key_tuple, None)
            processed += 1

        return BatchWriteResult(processed, unprocessed)
