import pytest

from podcast_backend.core.expressions import (
    KeyCondition,
    add_sort_key_condition,
    build_partition_query,
    build_update_expression,
)


class TestBuildPartitionQuery:
    """Test partition key conditions."""

    def test_partition_only(self):
        condition = build_partition_query('account_id', 'u1')

        kwargs = condition.to_query_kwargs()
        assert kwargs == {
            'KeyConditionExpression': '#partitionKey = :partitionValue',
            'ExpressionAttributeNames': {'#partitionKey': 'account_id'},
            'ExpressionAttributeValues': {':partitionValue': 'u1'},
            'ScanIndexForward': True,
        }

    def test_all_options(self):
        condition = build_partition_query(
            'account_id', 'u1',
            index_name='AccountClipsIndex',
            key_only=True,
            limit=5,
            descending=True
        )

        kwargs = condition.to_query_kwargs()
        assert kwargs['IndexName'] == 'AccountClipsIndex'
        assert kwargs['ProjectionExpression'] == '#partitionKey'
        assert kwargs['Limit'] == 5
        assert kwargs['ScanIndexForward'] is False
        assert 'ConsistentRead' not in kwargs

    def test_consistent_read(self):
        condition = build_partition_query('episode_id', 'e1', consistent_read=True)

        assert condition.to_query_kwargs()['ConsistentRead'] is True

    @pytest.mark.parametrize("name,value", [('', 'u1'), (None, 'u1'), ('account_id', None)])
    def test_missing_arguments_rejected(self, name, value):
        with pytest.raises(ValueError):
            build_partition_query(name, value)

    def test_non_positive_limit_rejected(self):
        with pytest.raises(ValueError, match="limit must be positive"):
            build_partition_query('account_id', 'u1', limit=0)

    def test_zero_partition_value_allowed(self):
        condition = build_partition_query('release_index', 0)

        assert condition.attribute_values == {':partitionValue': 0}


class TestAddSortKeyCondition:
    """Test sort key conditions appended to a partition condition."""

    @pytest.mark.parametrize("operator", ['=', '<', '<=', '>', '>='])
    def test_infix_operators(self, operator):
        condition = add_sort_key_condition(
            build_partition_query('account_id', 'u1'), 'follow_timestamp', 1528342014, operator
        )

        assert condition.expression == f'#partitionKey = :partitionValue and #sortKey {operator} :sortValue'
        assert condition.attribute_names == {'#partitionKey': 'account_id', '#sortKey': 'follow_timestamp'}
        assert condition.attribute_values == {':partitionValue': 'u1', ':sortValue': 1528342014}

    def test_begins_with_uses_function_form(self):
        condition = add_sort_key_condition(
            build_partition_query('episode_id', 'e1'), 'account_index', 'u1_', 'begins_with'
        )

        assert condition.expression == (
            '#partitionKey = :partitionValue and begins_with(#sortKey, :sortValue)'
        )

    def test_between(self):
        condition = add_sort_key_condition(
            build_partition_query('podcast_id', 'p1'), 'release_timestamp', 10, 'between', 20
        )

        assert condition.expression == (
            '#partitionKey = :partitionValue and #sortKey BETWEEN :sortValue AND :sortValue2'
        )
        assert condition.attribute_values[':sortValue2'] == 20

    def test_returns_same_condition(self):
        condition = build_partition_query('account_id', 'u1')

        assert add_sort_key_condition(condition, 'follow_timestamp', 1, '>') is condition

    def test_requires_partition_condition(self):
        with pytest.raises(ValueError, match="partition condition must be built"):
            add_sort_key_condition(None, 'follow_timestamp', 1, '>')

    def test_rejects_second_sort_condition(self):
        condition = add_sort_key_condition(build_partition_query('account_id', 'u1'), 'follow_timestamp', 1, '>')

        with pytest.raises(ValueError, match="already has a sort key condition"):
            add_sort_key_condition(condition, 'follow_timestamp', 5, '<')

    def test_rejects_unknown_operator(self):
        with pytest.raises(ValueError, match="Unsupported sort key operator"):
            add_sort_key_condition(build_partition_query('account_id', 'u1'), 'follow_timestamp', 1, '!=')

    def test_between_requires_upper_bound(self):
        with pytest.raises(ValueError, match="requires sort_value2"):
            add_sort_key_condition(build_partition_query('podcast_id', 'p1'), 'release_timestamp', 1, 'between')

    def test_repr_mentions_expression(self):
        condition = KeyCondition('account_id', 'u1', limit=3)

        assert '#partitionKey = :partitionValue' in repr(condition)
        assert 'limit=3' in repr(condition)


class TestBuildUpdateExpression:
    """Test SET update expressions."""

    def test_positional_placeholders(self):
        update = build_update_expression({'title': 'Intro', 'notes': 'first minutes'})

        assert update.expression == 'SET #0 = :0, #1 = :1'
        assert update.attribute_names == {'#0': 'title', '#1': 'notes'}
        assert update.attribute_values == {':0': 'Intro', ':1': 'first minutes'}
        assert update.fields == {'title': 'Intro', 'notes': 'first minutes'}

    def test_reserved_words_are_placeholders(self):
        update = build_update_expression({'name': 'n', 'duration': 10})

        assert 'name' not in update.expression
        assert 'duration' not in update.expression

    def test_empty_input_is_empty_expression(self):
        update = build_update_expression({})

        assert update.expression == ''
        assert update.is_empty

    def test_unknown_field_rejected_when_allowed_given(self):
        with pytest.raises(ValueError, match="Fields not updatable"):
            build_update_expression({'title': 't', 'episode_id': 'e2'}, allowed=('title', 'notes'))

    def test_allowed_fields_accepted(self):
        update = build_update_expression({'notes': 'n'}, allowed=('title', 'notes'))

        assert update.expression == 'SET #0 = :0'
