"""
Shared data models for the Mood Relay service.

This module defines the core domain models used across multiple layers
of the application (storage, matching, realtime relay, CLI, API).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError


class User(BaseModel):
    """A user profile, upserted by user_id."""

    user_id: str = Field(..., description="Stable client-generated identifier")
    username: str = Field("", description="Display name")
    avatar: str = Field("", description="Avatar URI or encoded image")


class MoodSubmission(BaseModel):
    """A single mood reading at a location."""

    submission_id: str = Field(..., description="Server-generated identifier")
    user_id: str
    mood_level: int
    lat: float
    lon: float
    tag: str | None = None
    created_at: datetime


class MatchRecord(BaseModel):
    """A same-mood submission joined with its submitter's profile."""

    user_id: str
    username: str | None
    avatar: str | None
    lat: float
    lon: float
    created_at: datetime


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrivateMessage(_CamelModel):
    """Inbound `send_private_message` payload."""

    target_user_id: str
    text: str
    sender_name: str = ""
    sender_id: str = ""


class PrivateMessageEvent(_CamelModel):
    """Outbound `receive_private_message` payload."""

    text: str
    sender_name: str
    sender_id: str
    is_self: bool = False


def parse_private_message(data: Any) -> PrivateMessage:
    """Validate a raw inbound payload, raising the package ValidationError."""
    try:
        return PrivateMessage.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e
