"""Base model pattern with created_at and updated_at timestamps."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedModel(BaseModel):
    """
    Base model for persisted documents.

    Documents carry their own ``created_at``/``updated_at`` so that the
    stored record is self-describing.
    """

    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp to current time."""
        self.updated_at = utcnow()
