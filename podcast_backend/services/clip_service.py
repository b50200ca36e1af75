"""
Clip Service

Orchestrates the clip handlers into client-facing operations. Every operation
returns ``(payload, HTTPStatus)`` on success and raises a PodcastBackendError
subclass otherwise; validation always happens before any write.

Pagination:
- Clips of an account: scalar cursor on creation_timestamp
- Clips of an account within an episode: composite cursor on the base table key
"""

import logging
from http import HTTPStatus
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..core import ClipsByAccountCursor, ClipsOfEpisodeCursor, TableClient, is_page_full
from ..exceptions import ClipError, ItemNotFoundError, NotFoundError, ValidationError
from ..handlers.clips import ClipReadApi, ClipWriteApi, current_timestamp, next_clip_position
from ..handlers.podcasts import PodcastReadApi
from ..models import (
    CLIP_ID_SEPARATOR,
    Clip,
    ClipChange,
    ClipCreate,
    ClipView,
    account_index_prefix,
    parse_clip_id,
    parse_episode_id,
)
from .payloads import page_payload

logger = logging.getLogger(__name__)

CLIP_PAGE_SIZE = 5
CLIP_KEY_ATTRIBUTES = tuple(Clip.Meta.get_key_fields())

Response = Tuple[Dict[str, Any], HTTPStatus]


class ClipService:
    """
    Clip operations for authenticated accounts.

    The account id passed in is trusted; authentication happens upstream.
    """

    def __init__(
        self,
        client: TableClient,
        prevent_clip_overwrite: Optional[bool] = None,
        now: Callable[[], int] = current_timestamp
    ):
        """Initialize the service.

        Args:
            client: Open table client
            prevent_clip_overwrite: Override of DynamoDBConfig.prevent_clip_overwrite
            now: Clock returning epoch seconds
        """
        if prevent_clip_overwrite is None:
            prevent_clip_overwrite = client.config.prevent_clip_overwrite

        self.clips = ClipReadApi(client)
        self.clip_writes = ClipWriteApi(client, prevent_overwrite=prevent_clip_overwrite)
        self.podcasts = PodcastReadApi(client)
        self.now = now

    async def create_clip(
        self,
        account_id: Optional[str],
        episode_id: Optional[str],
        clip_data: Optional[Mapping[str, Any]]
    ) -> Response:
        """
        Create a clip for an episode.

        Args:
            account_id: Creator account
            episode_id: Episode id (podcast id followed by release index)
            clip_data: ``title``, ``startTime``, ``endTime`` and optional ``notes``

        Returns:
            (clip payload, 201)

        Raises:
            ValidationError: Missing ids, incomplete data or incorrect times
            NotFoundError: The episode does not exist
            ConflictError: A concurrent creation took the same clip index
                (overwrite protection only)
        """
        _require_account(account_id)
        if CLIP_ID_SEPARATOR in account_id:
            raise ValidationError("Account id is invalid!", ClipError.ACCOUNT_ID_INVALID)
        if not episode_id:
            raise ValidationError("Episode is missing!", ClipError.EPISODE_ID_MISSING)

        clip_input = _parse_clip_create(clip_data)

        try:
            podcast_id, release_index = parse_episode_id(episode_id)
        except ValueError as e:
            raise ValidationError("Episode id is invalid!", ClipError.EPISODE_ID_INVALID, original_error=e) from e

        if not await self.podcasts.episode_exists(podcast_id, release_index):
            raise NotFoundError(
                "Episode to create clip from doesn't exist!",
                ClipError.EPISODE_DOESNT_EXIST,
                resource_type='episode',
                resource_name=episode_id
            )

        previous = await self.clips.get_latest_clip(account_id, episode_id)
        position = next_clip_position(previous, self.now())

        clip = Clip(
            episode_id=episode_id,
            account_id=account_id,
            clip_index=position.clip_index,
            creation_timestamp=position.creation_timestamp,
            start_time=clip_input.start_time,
            end_time=clip_input.end_time,
            title=clip_input.title,
            notes=clip_input.notes or None
        )
        await self.clip_writes.put_clip(clip)

        return ClipView.from_clip(clip).to_payload(), HTTPStatus.CREATED

    async def change_clip_data(
        self,
        account_id: Optional[str],
        clip_id: Optional[str],
        changes: Optional[Mapping[str, Any]]
    ) -> Response:
        """
        Change title and/or notes of a clip the account created.

        Returns:
            (updated clip payload, 200)

        Raises:
            ValidationError: Missing ids, nothing to change or malformed clip id
            NotFoundError: No such clip for this account
        """
        _require_account(account_id)
        _require_clip_id(clip_id)

        try:
            fields = ClipChange.model_validate(changes or {}).to_update_fields()
        except PydanticValidationError as e:
            raise ValidationError(
                "Updated clip data is missing!", ClipError.UPDATED_CLIP_DATA_MISSING, original_error=e
            ) from e
        if not fields:
            raise ValidationError("Updated clip data is missing!", ClipError.UPDATED_CLIP_DATA_MISSING)

        episode_id, owner_id, clip_index = _parse_clip_id(clip_id)
        if owner_id != account_id:
            logger.info(f"Account {account_id} tried to change clip {clip_id} of another account")
            raise _clip_not_found(clip_id)

        try:
            clip = await self.clip_writes.update_clip(episode_id, owner_id, clip_index, fields)
        except ItemNotFoundError as e:
            raise _clip_not_found(clip_id, e) from e

        return ClipView.from_clip(clip).to_payload(), HTTPStatus.OK

    async def delete_clip(self, account_id: Optional[str], clip_id: Optional[str]) -> Response:
        """
        Delete a clip the account created.

        Returns:
            (deleted clip payload, 200)
        """
        _require_account(account_id)
        _require_clip_id(clip_id)

        episode_id, owner_id, clip_index = _parse_clip_id(clip_id)
        if owner_id != account_id:
            logger.info(f"Account {account_id} tried to delete clip {clip_id} of another account")
            raise _clip_not_found(clip_id)

        try:
            clip = await self.clip_writes.delete_clip(episode_id, owner_id, clip_index)
        except ItemNotFoundError as e:
            raise _clip_not_found(clip_id, e) from e

        return ClipView.from_clip(clip).to_payload(), HTTPStatus.OK

    async def get_clip(self, clip_id: Optional[str]) -> Response:
        """
        Get a clip by id. Ownership is not checked.

        Returns:
            (clip payload, 200)
        """
        _require_clip_id(clip_id)
        episode_id, account_id, clip_index = _parse_clip_id(clip_id)

        clip = await self.clips.get_clip(episode_id, account_id, clip_index)
        if clip is None:
            raise _clip_not_found(clip_id)

        return ClipView.from_clip(clip).to_payload(), HTTPStatus.OK

    async def get_clips_created_by_user(self, account_id: Optional[str], next_token: Optional[str] = None) -> Response:
        """
        One page of the clips an account created, in creation order.

        A malformed token is ignored and the first page is returned.
        """
        _require_account(account_id)

        cursor = ClipsByAccountCursor.decode(next_token)
        clips = await self.clips.query_by_account(
            account_id, CLIP_PAGE_SIZE, after_timestamp=cursor.timestamp if cursor else None
        )

        token = None
        if is_page_full(len(clips), CLIP_PAGE_SIZE):
            token = ClipsByAccountCursor(timestamp=clips[-1].creation_timestamp).encode()

        return page_payload((ClipView.from_clip(clip).to_payload() for clip in clips), token), HTTPStatus.OK

    async def get_clips_of_episode_created_by_user(
        self,
        account_id: Optional[str],
        episode_id: Optional[str],
        next_token: Optional[str] = None
    ) -> Response:
        """
        One page of the clips an account created for an episode, in index order.

        Raises:
            ValidationError: Missing ids, or a token that is malformed or was
                issued for a different account or episode
        """
        _require_account(account_id)
        if not episode_id:
            raise ValidationError("Episode is missing!", ClipError.EPISODE_ID_MISSING)

        cursor = ClipsOfEpisodeCursor.decode(
            next_token,
            required_attributes=CLIP_KEY_ATTRIBUTES,
            error_code=ClipError.PAGINATION_TOKEN_INVALID
        )
        if cursor and (
            cursor.key[Clip.Meta.partition_key] != episode_id
            or not str(cursor.key[Clip.Meta.sort_key]).startswith(account_index_prefix(account_id))
        ):
            raise ValidationError("Pagination token is invalid", ClipError.PAGINATION_TOKEN_INVALID)

        clips, last_key = await self.clips.query_by_account_and_episode(
            account_id, episode_id, CLIP_PAGE_SIZE, start_key=cursor.key if cursor else None
        )

        token = None
        if is_page_full(len(clips), CLIP_PAGE_SIZE) and last_key:
            token = ClipsOfEpisodeCursor(key=last_key).encode()

        return page_payload((ClipView.from_clip(clip).to_payload() for clip in clips), token), HTTPStatus.OK


def _require_account(account_id: Optional[str]) -> None:
    if not account_id:
        raise ValidationError("Account id is missing!", ClipError.ACCOUNT_ID_MISSING)


def _require_clip_id(clip_id: Optional[str]) -> None:
    if not clip_id:
        raise ValidationError("Clip is missing!", ClipError.CLIP_ID_MISSING)


def _parse_clip_id(clip_id: str) -> Tuple[str, str, int]:
    try:
        return parse_clip_id(clip_id)
    except ValueError as e:
        raise ValidationError("Clip id is invalid!", ClipError.CLIP_ID_INVALID, original_error=e) from e


def _parse_clip_create(clip_data: Optional[Mapping[str, Any]]) -> ClipCreate:
    if not clip_data or not isinstance(clip_data, Mapping):
        raise ValidationError(
            "Clip data is incomplete! Title, start- and end-time is required.", ClipError.CLIP_DATA_INCOMPLETE
        )

    try:
        return ClipCreate.model_validate(clip_data)
    except PydanticValidationError as e:
        errors = e.errors()
        # Only the model-level time range check reports an empty location
        if all(not error['loc'] for error in errors):
            raise ValidationError(
                "Clip times are incorrect. Must be above zero and end time must be bigger than start time.",
                ClipError.CLIP_TIMES_ARE_INCORRECT,
                original_error=e
            ) from e
        raise ValidationError(
            "Clip data is incomplete! Title, start- and end-time is required.",
            ClipError.CLIP_DATA_INCOMPLETE,
            errors={'.'.join(str(part) for part in error['loc']): error['msg'] for error in errors},
            original_error=e
        ) from e


def _clip_not_found(clip_id: str, original_error: Optional[Exception] = None) -> NotFoundError:
    return NotFoundError(
        "Clip data doesn't exist!",
        ClipError.CLIP_DATA_DOESNT_EXIST,
        resource_type='clip',
        resource_name=clip_id,
        original_error=original_error
    )
