from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=64)
    capacity: int = Field(gt=0)
    image_url: str | None = Field(default=None, max_length=500)

    @field_validator("date")
    @classmethod
    def _utc_date(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventUpdate(CamelModel):
    """Fields a creator may change. Anything else in the body is ignored."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: datetime | None = None
    location: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = Field(default=None, min_length=1, max_length=64)
    capacity: int | None = Field(default=None, gt=0)
    image_url: str | None = Field(default=None, max_length=500)

    @field_validator("title", "date", "location", "category", "capacity")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("date")
    @classmethod
    def _utc_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else value


class EventRead(CamelModel):
    id: str
    title: str
    description: str | None = None
    date: datetime
    location: str
    category: str
    capacity: int
    image_url: str | None = None
    creator: str
    attendees: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EventDetail(EventRead):
    current_viewers: int


class DeleteResult(BaseModel):
    message: str


class ViewerUpdate(CamelModel):
    room: str
    viewer_count: int
    timestamp: datetime


class RealtimeSignal(BaseModel):
    event: Literal["joinEvent", "leaveEvent"]
    data: str = Field(min_length=1)
