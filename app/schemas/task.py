from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, field_validator

from app import errors

TITLE_MIN_LENGTH = 3


def clean_title(value) -> str:
    """Trim a task title and enforce the minimum length.

    Raises errors.ValidationError naming the field and the violated constraint.
    """
    if not isinstance(value, str):
        raise errors.ValidationError("title", "must be a string")
    value = value.strip()
    if len(value) < TITLE_MIN_LENGTH:
        raise errors.ValidationError("title", f"must be at least {TITLE_MIN_LENGTH} characters")
    return value


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: StrictStr
    completed: StrictBool = False

    @field_validator("title")
    @classmethod
    def title_valid(cls, v):
        try:
            return clean_title(v)
        except errors.ValidationError as e:
            raise ValueError(e.constraint)


class TaskUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[StrictStr] = None
    completed: Optional[StrictBool] = None

    @field_validator("title")
    @classmethod
    def title_valid(cls, v):
        if v is None:
            return v
        try:
            return clean_title(v)
        except errors.ValidationError as e:
            raise ValueError(e.constraint)


class TaskOut(BaseModel):
    """Read-only snapshot of a task, safe to cache and share between requests."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    owner_id: str
    title: str
    completed: bool
    created_at: datetime
    updated_at: datetime
