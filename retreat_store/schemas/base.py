"""Shared response schema configuration."""
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, model_serializer


def utc_isoformat(dt: datetime) -> str:
    """Ledger timestamps as ``2024-05-01T09:30:00Z``; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _jsonable(value):
    if isinstance(value, datetime):
        return utc_isoformat(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


class BaseSchema(BaseModel):
    """Reads ORM objects and service result dicts alike."""

    model_config = ConfigDict(from_attributes=True)

    @model_serializer(mode="wrap")
    def serialize_model(self, handler):
        return _jsonable(handler(self))


class SuccessResponse(BaseSchema):
    success: bool = True
    message: str | None = None
