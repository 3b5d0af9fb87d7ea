"""Response Envelope — every successful read/write returns {message, data}."""

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    """Success envelope; data is a record, a list of records, {count}, or null."""
    message: str
    data: Any = None


def envelope(data: Any, message: str = "OK") -> dict:
    return {"message": message, "data": data}
