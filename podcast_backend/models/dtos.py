"""
Write-Optimized DTOs (Data Transfer Objects)

Input models for the write side:
- ClipCreate: data required to create a clip
- ClipChange: partial update of a clip's title and/or notes

Validation problems are reported by pydantic. Field-level errors mean the
clip data is incomplete; the model-level time range check is reported
separately so the service can answer with a precise error code.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

CLIP_TIMES_MESSAGE = "Clip times are incorrect. Must be above zero and end time must be bigger than start time."


class ClipCreate(BaseModel):
    """
    DTO for clip creation.

    Features:
    - Non-empty title
    - Finite start and end times
    - 0 <= start_time < end_time
    """

    title: str = Field(..., min_length=1, description="Clip title")
    start_time: float = Field(..., alias='startTime', description="Clip start, seconds from episode start")
    end_time: float = Field(..., alias='endTime', description="Clip end, seconds from episode start")
    notes: Optional[str] = Field(None, description="Free-form notes")

    model_config = ConfigDict(
        allow_inf_nan=False,
        populate_by_name=True
    )

    @model_validator(mode='after')
    def validate_time_range(self) -> 'ClipCreate':
        """Ensure the clip lies after the episode start and is not empty."""
        if self.start_time < 0 or self.start_time >= self.end_time:
            raise ValueError(CLIP_TIMES_MESSAGE)
        return self


class ClipChange(BaseModel):
    """DTO for partial clip updates. Empty values are treated as absent."""

    title: Optional[str] = Field(None, description="New clip title")
    notes: Optional[str] = Field(None, description="New notes")

    def to_update_fields(self) -> Dict[str, Any]:
        """Fields to SET, in declaration order, skipping absent or empty values."""
        return {
            name: getattr(self, name)
            for name in ('title', 'notes')
            if getattr(self, name)
        }
