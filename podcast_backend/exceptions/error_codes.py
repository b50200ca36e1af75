from enum import IntEnum


class ClipError(IntEnum):
    ACCOUNT_ID_MISSING = 0
    EPISODE_ID_MISSING = 1
    CLIP_DATA_INCOMPLETE = 2
    EPISODE_DOESNT_EXIST = 3
    CLIP_TIMES_ARE_INCORRECT = 4
    CLIP_ID_MISSING = 5
    UPDATED_CLIP_DATA_MISSING = 6
    CLIP_ID_INVALID = 7
    CLIP_DATA_DOESNT_EXIST = 8
    PAGINATION_TOKEN_INVALID = 9
    EPISODE_ID_INVALID = 10
    ACCOUNT_ID_INVALID = 11


class PodcastError(IntEnum):
    ACCOUNT_ID_MISSING = 0
    PODCAST_ID_MISSING = 1
    PODCAST_DOESNT_EXIST = 2
    PODCAST_NOT_FOLLOWED = 3
