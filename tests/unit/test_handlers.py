"""
Tests for the CQRS read/write APIs against a mocked table client.

These check the DynamoDB access pattern each handler issues (table, index,
key condition, scan direction, conditions), not the data returned.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from podcast_backend.core import BatchWriteResult
from podcast_backend.exceptions import ConflictError, ItemNotFoundError
from podcast_backend.handlers import (
    ClipReadApi,
    ClipWriteApi,
    FollowedPodcastsReadApi,
    FollowedPodcastsWriteApi,
    PodcastReadApi,
)
from podcast_backend.models import Clip, FollowedPodcast, GSIDefinition


@pytest.fixture
def mock_client():
    client = Mock()
    client.get = AsyncMock(return_value=None)
    client.put = AsyncMock(return_value=None)
    client.update = AsyncMock()
    client.delete = AsyncMock()
    client.query = AsyncMock(return_value=[])
    client.query_page = AsyncMock(return_value=([], None))
    client.batch_get = AsyncMock()
    client.batch_write = AsyncMock(return_value=BatchWriteResult(0, []))
    return client


def make_clip(**overrides) -> Clip:
    data = dict(
        episode_id='e1', account_id='u1', clip_index=2, creation_timestamp=1000,
        start_time=0, end_time=5, title='A'
    )
    data.update(overrides)
    return Clip(**data)


class TestClipReadApi:

    @pytest.mark.asyncio
    async def test_get_clip_uses_padded_sort_key(self, mock_client):
        await ClipReadApi(mock_client).get_clip('e1', 'u1', 2)

        mock_client.get.assert_awaited_once_with('clips', {'episode_id': 'e1', 'account_index': 'u1_0000000002'})

    @pytest.mark.asyncio
    async def test_latest_clip_query(self, mock_client):
        mock_client.query.return_value = [make_clip().to_dynamodb_item()]

        clip = await ClipReadApi(mock_client).get_latest_clip('u1', 'e1')

        assert clip.clip_index == 2
        table, condition = mock_client.query.await_args.args
        kwargs = condition.to_query_kwargs()
        assert table == 'clips'
        assert kwargs['KeyConditionExpression'] == (
            '#partitionKey = :partitionValue and begins_with(#sortKey, :sortValue)'
        )
        assert kwargs['ExpressionAttributeValues'] == {':partitionValue': 'e1', ':sortValue': 'u1_'}
        assert kwargs['ScanIndexForward'] is False
        assert kwargs['Limit'] == 1
        assert kwargs['ConsistentRead'] is True

    @pytest.mark.asyncio
    async def test_latest_clip_absent(self, mock_client):
        assert await ClipReadApi(mock_client).get_latest_clip('u1', 'e1') is None

    @pytest.mark.asyncio
    async def test_query_by_account_uses_gsi(self, mock_client):
        await ClipReadApi(mock_client).query_by_account('u1', 5, after_timestamp=1000)

        condition = mock_client.query.await_args.args[1]
        kwargs = condition.to_query_kwargs()
        assert kwargs['IndexName'] == 'AccountClipsIndex'
        assert kwargs['ExpressionAttributeNames'] == {
            '#partitionKey': 'account_id', '#sortKey': 'creation_timestamp'
        }
        assert kwargs['KeyConditionExpression'].endswith('#sortKey > :sortValue')
        assert kwargs['ScanIndexForward'] is True

    @pytest.mark.asyncio
    async def test_query_by_account_and_episode_passes_start_key(self, mock_client):
        start_key = {'episode_id': 'e1', 'account_index': 'u1_0000000004'}

        clips, last_key = await ClipReadApi(mock_client).query_by_account_and_episode(
            'u1', 'e1', 5, start_key=start_key
        )

        assert (clips, last_key) == ([], None)
        assert mock_client.query_page.await_args.args[2] == start_key

    @pytest.mark.asyncio
    async def test_query_by_account_follows_index_definition(self, mock_client):
        index = GSIDefinition(name='OwnerIndex', partition_key='owner', sort_key='created')

        with patch('podcast_backend.handlers.clips.queries.ACCOUNT_CLIPS_INDEX', index):
            await ClipReadApi(mock_client).query_by_account('u1', 5, after_timestamp=1000)

        kwargs = mock_client.query.await_args.args[1].to_query_kwargs()
        assert kwargs['IndexName'] == 'OwnerIndex'
        assert kwargs['ExpressionAttributeNames'] == {'#partitionKey': 'owner', '#sortKey': 'created'}


class TestClipWriteApi:

    @pytest.mark.asyncio
    async def test_put_unconditional_by_default(self, mock_client):
        await ClipWriteApi(mock_client).put_clip(make_clip())

        args, kwargs = mock_client.put.await_args
        assert args[0] == 'clips'
        assert args[1]['account_index'] == 'u1_0000000002'
        assert kwargs == {}

    @pytest.mark.asyncio
    async def test_put_conditional_with_overwrite_protection(self, mock_client):
        await ClipWriteApi(mock_client, prevent_overwrite=True).put_clip(make_clip())

        kwargs = mock_client.put.await_args.kwargs
        assert kwargs['condition_expression'] == 'attribute_not_exists(#pk)'
        assert kwargs['expression_attribute_names'] == {'#pk': 'episode_id'}

    @pytest.mark.asyncio
    async def test_update_requires_existing_clip(self, mock_client):
        mock_client.update.side_effect = ConflictError("Conditional check failed")

        with pytest.raises(ItemNotFoundError) as exc_info:
            await ClipWriteApi(mock_client).update_clip('e1', 'u1', 2, {'title': 'B'})

        assert exc_info.value.key == {'episode_id': 'e1', 'account_index': 'u1_0000000002'}

    @pytest.mark.asyncio
    async def test_update_rejects_non_updatable_fields(self, mock_client):
        with pytest.raises(ValueError):
            await ClipWriteApi(mock_client).update_clip('e1', 'u1', 2, {'start_time': 3})

        mock_client.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_returns_old_clip(self, mock_client):
        mock_client.delete.return_value = make_clip().to_dynamodb_item()

        clip = await ClipWriteApi(mock_client).delete_clip('e1', 'u1', 2)

        assert clip.clip_id == 'e1_u1_2'
        assert mock_client.delete.await_args.kwargs['return_values'] == 'ALL_OLD'


class TestPodcastReadApi:

    @pytest.mark.asyncio
    async def test_episode_exists_does_not_parse_row(self, mock_client):
        mock_client.get.return_value = {'podcast_id': 'p1', 'release_index': 3, 'duration': '01:14:33'}

        assert await PodcastReadApi(mock_client).episode_exists('p1', 3) is True
        mock_client.get.assert_awaited_once_with('episodes', {'podcast_id': 'p1', 'release_index': 3})

    @pytest.mark.asyncio
    async def test_episode_exists_missing(self, mock_client):
        assert await PodcastReadApi(mock_client).episode_exists('p1', 3) is False

    @pytest.mark.asyncio
    async def test_episode_range_between(self, mock_client):
        await PodcastReadApi(mock_client).query_episodes('p1', 30, newer_than=100, older_than=200)

        table, condition = mock_client.query.await_args.args
        assert table == 'episodes'
        assert condition.index_name == 'PodcastReleaseIndex'
        assert condition.descending is True
        assert (condition.sort_operator, condition.sort_value, condition.sort_value2) == ('between', 101, 199)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("newer,older,operator,value", [(100, None, '>', 100), (None, 200, '<', 200)])
    async def test_episode_range_single_bound(self, mock_client, newer, older, operator, value):
        await PodcastReadApi(mock_client).query_episodes('p1', 30, newer_than=newer, older_than=older)

        condition = mock_client.query.await_args.args[1]
        assert (condition.sort_operator, condition.sort_value) == (operator, value)

    @pytest.mark.asyncio
    async def test_empty_episode_range_skips_query(self, mock_client):
        episodes = await PodcastReadApi(mock_client).query_episodes('p1', 30, newer_than=100, older_than=101)

        assert episodes == []
        mock_client.query.assert_not_called()


class TestFollowedPodcastsApis:

    @pytest.mark.asyncio
    async def test_query_all_for_podcast_reads_every_page(self, mock_client):
        first = [
            {'account_id': 'u1', 'follow_timestamp': 1, 'podcast_id': 'p1'},
            {'account_id': 'u1', 'follow_timestamp': 2, 'podcast_id': 'p2'},
        ]
        second = [{'account_id': 'u1', 'follow_timestamp': 3, 'podcast_id': 'p1'}]
        mock_client.query_page.side_effect = [
            (first, {'account_id': 'u1', 'follow_timestamp': 2}),
            (second, None),
        ]

        follows = await FollowedPodcastsReadApi(mock_client).query_all_for_podcast('u1', 'p1')

        assert [f.follow_timestamp for f in follows] == [1, 3]
        assert mock_client.query_page.await_args_list[1].args[2] == {'account_id': 'u1', 'follow_timestamp': 2}

    @pytest.mark.asyncio
    async def test_add_follow_is_conditional(self, mock_client):
        follow = FollowedPodcast(account_id='u1', follow_timestamp=5, podcast_id='p1')

        await FollowedPodcastsWriteApi(mock_client).add_follow(follow)

        assert mock_client.put.await_args.kwargs['condition_expression'] == 'attribute_not_exists(#pk)'

    @pytest.mark.asyncio
    async def test_remove_follows_batch_deletes_keys(self, mock_client):
        follows = [FollowedPodcast(account_id='u1', follow_timestamp=t, podcast_id='p1') for t in (1, 3)]

        await FollowedPodcastsWriteApi(mock_client).remove_follows(follows)

        assert mock_client.batch_write.await_args.kwargs['delete_keys'] == [
            {'account_id': 'u1', 'follow_timestamp': 1},
            {'account_id': 'u1', 'follow_timestamp': 3},
        ]
