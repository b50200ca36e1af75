"""
Test configuration and fixtures for the podcast backend.

Provides a test configuration, an in-memory table client seeded with a podcast
and an episode, and a controllable clock.
"""

import pytest

from podcast_backend import DynamoDBConfig
from tests.helpers import InMemoryTableClient

PODCAST_ID = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"
EPISODE_ID = f"{PODCAST_ID}7"


class FakeClock:
    """Clock returning a settable epoch second."""

    def __init__(self, now: int = 1_600_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1) -> None:
        self.now += seconds


@pytest.fixture
def dynamodb_config():
    """DynamoDB configuration for testing."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url="http://localhost:8000",
        environment="test",
        table_prefix="podcasts_app"
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def podcast_item():
    return {
        'podcast_id': PODCAST_ID,
        'name': 'Talking Tables',
        'description': 'A podcast about key-value stores',
        'author': 'Jane Doe',
        'author_url': 'https://example.com/jane',
        'genre': 'Technology',
        'image': 'https://example.com/cover.png',
        'source_name': 'itunes',
        'source_link': 'https://example.com/itunes/talking-tables'
    }


@pytest.fixture
def episode_item():
    return {
        'podcast_id': PODCAST_ID,
        'release_index': 7,
        'name': 'Sort keys, explained',
        'description': 'Why lexicographic order matters',
        'release_timestamp': 1_590_000_000,
        'duration': 3600,
        'audio_url': 'https://example.com/ep7.mp3',
        'liked_count': 12
    }


@pytest.fixture
def store(dynamodb_config, podcast_item, episode_item):
    """In-memory table client seeded with one podcast and one episode."""
    client = InMemoryTableClient(dynamodb_config)
    client.seed('podcasts', podcast_item)
    client.seed('episodes', episode_item)
    return client
