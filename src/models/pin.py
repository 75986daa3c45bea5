"""Pin model for user-placed points of interest."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .base import TimestampedModel
from .district import DISTRICTS_BY_ID


class Position(BaseModel):
    """World-space position of a pin."""

    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(0.0, allow_inf_nan=False)
    z: float = Field(..., allow_inf_nan=False)


def _check_district(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if value not in DISTRICTS_BY_ID:
        raise ValueError(f"unknown district id: {value}")
    return value


class PinCreate(BaseModel):
    """Request body for creating a pin."""

    id: str = Field(..., min_length=1, max_length=128, description="Client-chosen unique pin id")
    name: str = Field("", max_length=200)
    type: str = Field("", max_length=100)
    description: str = Field("", max_length=5000)
    district: Optional[str] = Field(None, description="District id; assigned from position when omitted")
    pos: Position

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("id must not be blank")
        return v

    @field_validator("district")
    @classmethod
    def check_district(cls, v: Optional[str]) -> Optional[str]:
        return _check_district(v)


class PinUpdate(BaseModel):
    """
    Request body for updating a pin.

    Only fields present in the request are applied; sending
    ``"district": null`` explicitly unassigns the pin.
    """

    name: Optional[str] = Field(None, max_length=200)
    type: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    district: Optional[str] = None
    pos: Optional[Position] = None

    @field_validator("name", "type", "description", "pos", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # Only district may be cleared; the other fields are required on a stored pin
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("district")
    @classmethod
    def check_district(cls, v: Optional[str]) -> Optional[str]:
        return _check_district(v)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set in the request."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class Pin(TimestampedModel):
    """
    A persisted pin.

    Stored in the ``pins`` collection keyed by ``_id = id``.
    """

    id: str
    name: str = ""
    type: str = ""
    description: str = ""
    district: Optional[str] = None
    pos: Position
    owner_id: str = Field(..., description="Discord user ID of the creator")
    owner_name: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={"id"})
        doc["_id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Pin":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls(**data)

    class Config:
        """Pydantic configuration."""
        json_schema_extra = {
            "example": {
                "id": "pin-1718000000000",
                "name": "Rooftop bar",
                "type": "venue",
                "description": "Only open after midnight.",
                "district": "downtown",
                "pos": {"x": 12.5, "y": 0.0, "z": -40.25},
                "owner_id": "123456789012345678",
                "owner_name": "alice",
                "created_at": "2024-03-15T10:00:00Z",
                "updated_at": "2024-03-15T10:00:00Z",
            }
        }
