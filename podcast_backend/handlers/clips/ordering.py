"""
Clip ordering.

DynamoDB offers no atomic increment across an (account, episode) pair, so the
position of a new clip is derived from the latest clip the account created for
that episode:

- no previous clip: index 0, timestamp ``now``
- previous clip: index ``previous + 1``, timestamp ``now`` if it is later than
  the previous timestamp, otherwise ``previous + 1``

The read happens before the write without any lock. Two concurrent creations
for the same pair can read the same previous clip and derive the same index;
see ClipWriteApi.put_clip for how that collision is handled.
"""

import time
from typing import NamedTuple, Optional

from ...models import Clip


class ClipPosition(NamedTuple):
    clip_index: int
    creation_timestamp: int


def current_timestamp() -> int:
    """Current UTC time in whole epoch seconds."""
    return int(time.time())


def next_monotonic_timestamp(previous: Optional[int], now: int) -> int:
    """Return ``now``, bumped to ``previous + 1`` when the clock has not moved past ``previous``."""
    if previous is None or now > previous:
        return now
    return previous + 1


def next_clip_position(previous: Optional[Clip], now: int) -> ClipPosition:
    """
    Position of the next clip after ``previous``.

    Args:
        previous: Latest clip of the account for the episode, or None
        now: Current time in epoch seconds

    Returns:
        ClipPosition with a strictly larger index and timestamp than ``previous``
    """
    if previous is None:
        return ClipPosition(0, now)

    return ClipPosition(
        previous.clip_index + 1,
        next_monotonic_timestamp(previous.creation_timestamp, now)
    )
