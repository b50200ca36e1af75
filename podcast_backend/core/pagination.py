"""
Pagination Tokens

Continuation tokens are opaque to callers. Internally there are two shapes,
and each list operation decodes exactly one of them:

- ScalarCursor: base64 of a decimal timestamp. Used where the sort key is an
  immutable, per-partition unique timestamp (clips by account, followed
  podcasts). A token that does not decode to a positive integer is ignored and
  the caller gets the first page.
- CompositeCursor: base64 of the JSON-encoded LastEvaluatedKey. Used where the
  store's own cursor is needed (clips of an episode by account). A token that
  does not decode is a client error; restarting a store cursor silently would
  hand out pages the caller has already seen.
"""

import base64
import binascii
import json
import logging
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


def is_page_full(item_count: int, page_size: int) -> bool:
    """A next token is only handed out when the page came back full."""
    return item_count == page_size


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


def _b64decode(token: str) -> str:
    return base64.b64decode(token.encode('ascii'), validate=True).decode('utf-8')


class ScalarCursor(BaseModel):
    """Cursor carrying the sort key value of the last item of a page."""

    timestamp: int = Field(..., gt=0, description="Sort key value of the last returned item")

    def encode(self) -> str:
        return _b64encode(str(self.timestamp))

    @classmethod
    def decode(cls, token: Optional[str]) -> Optional['ScalarCursor']:
        """Decode a token leniently.

        Returns:
            ScalarCursor, or None for a missing or malformed token
        """
        if not token:
            return None

        try:
            timestamp = int(_b64decode(token))
        except (binascii.Error, UnicodeError, ValueError):
            logger.info(f"Ignoring malformed pagination token: {token!r}")
            return None

        if timestamp <= 0:
            logger.info(f"Ignoring non-positive pagination token: {token!r}")
            return None

        return cls(timestamp=timestamp)


class CompositeCursor(BaseModel):
    """Cursor carrying a store-native LastEvaluatedKey."""

    key: Dict[str, Any] = Field(..., description="LastEvaluatedKey of the previous page")

    def encode(self) -> str:
        # Sorted keys: the same key always yields the same token
        return _b64encode(json.dumps(self.key, sort_keys=True, separators=(',', ':')))

    @classmethod
    def decode(
        cls,
        token: Optional[str],
        required_attributes: Iterable[str] = (),
        error_code: Optional[IntEnum] = None
    ) -> Optional['CompositeCursor']:
        """Decode a token strictly.

        Args:
            token: Token from a previous page, or None
            required_attributes: Key attributes the decoded key must contain
            error_code: Error code attached to the ValidationError

        Returns:
            CompositeCursor, or None when no token was given

        Raises:
            ValidationError: If the token is not base64 JSON of a flat key object
        """
        if not token:
            return None

        try:
            key = json.loads(_b64decode(token))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise ValidationError("Pagination token is invalid", error_code=error_code, original_error=e) from e

        if not isinstance(key, dict) or not key:
            raise ValidationError("Pagination token is invalid", error_code=error_code)

        missing = [name for name in required_attributes if name not in key]
        if missing:
            raise ValidationError(
                "Pagination token is invalid",
                error_code=error_code,
                errors={'missing_key_attributes': missing}
            )

        for name, value in key.items():
            if isinstance(value, bool) or not isinstance(value, (str, int)):
                raise ValidationError(
                    "Pagination token is invalid",
                    error_code=error_code,
                    errors={name: f"unsupported key value type {type(value).__name__}"}
                )

        return cls(key=key)


# One cursor type per list operation; a token is only decoded by the operation that issued it.

class ClipsByAccountCursor(ScalarCursor):
    """Next token of the clips an account created (creation_timestamp)."""


class FollowedPodcastsCursor(ScalarCursor):
    """Next token of the podcasts an account follows (follow_timestamp)."""


class ClipsOfEpisodeCursor(CompositeCursor):
    """Next token of the clips an account created for one episode (clips table key)."""
