from datetime import datetime
from typing import Any

from ayomabar.helpers import as_utc

from pydantic import BaseModel, ConfigDict, field_validator


class UTCBaseModel(BaseModel):
    """Response model base; datetimes read back without tzinfo are treated as UTC."""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def _attach_utc(cls, v):
        if isinstance(v, datetime):
            return as_utc(v)
        return v


def envelope(data: Any = None, message: str = "Success", status_code: int = 200) -> dict[str, Any]:
    """Wrap a payload in the uniform ``{success, message, data, statusCode}`` response shape."""
    return {
        "success": 200 <= status_code < 400,
        "message": message,
        "data": data,
        "statusCode": status_code,
    }
