"""District definitions and the persisted district configuration."""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class DistrictDefinition(BaseModel):
    """A fixed, named zone of the map. Compiled in, never persisted."""

    id: str
    name: str
    color: str = Field(..., description="Hex display color")
    description: str
    default_center: Tuple[float, float] = Field(..., description="Normalized (x, z) used before any config is saved")


DISTRICTS: List[DistrictDefinition] = [
    DistrictDefinition(
        id="downtown", name="Downtown", color="#e74c3c",
        description="Neon-lit towers and the city council chambers.",
        default_center=(0.0, 0.0),
    ),
    DistrictDefinition(
        id="old-quarter", name="Old Quarter", color="#d35400",
        description="Cobbled lanes and the oldest standing buildings in the city.",
        default_center=(-0.35, -0.2),
    ),
    DistrictDefinition(
        id="harbor", name="Harbor", color="#2980b9",
        description="Docks, warehouses and the ferry terminal.",
        default_center=(-0.75, 0.45),
    ),
    DistrictDefinition(
        id="industrial", name="Industrial Zone", color="#7f8c8d",
        description="Foundries, rail yards and the power plant.",
        default_center=(0.7, 0.6),
    ),
    DistrictDefinition(
        id="university", name="University Heights", color="#8e44ad",
        description="Campus grounds, libraries and student housing.",
        default_center=(0.4, -0.6),
    ),
    DistrictDefinition(
        id="financial", name="Financial District", color="#f1c40f",
        description="Banks, the exchange and private security.",
        default_center=(0.35, 0.05),
    ),
    DistrictDefinition(
        id="night-market", name="Night Market", color="#e67e22",
        description="Street food, stalls and things sold off the books.",
        default_center=(-0.1, 0.45),
    ),
    DistrictDefinition(
        id="warrens", name="The Warrens", color="#6d4c41",
        description="Tenements and tunnels below the elevated rail.",
        default_center=(-0.6, -0.65),
    ),
    DistrictDefinition(
        id="greenbelt", name="Greenbelt", color="#27ae60",
        description="The city's last park and its overgrown reservoir.",
        default_center=(-0.05, -0.55),
    ),
    DistrictDefinition(
        id="uptown", name="Uptown", color="#16a085",
        description="Gated estates overlooking the rest of the city.",
        default_center=(0.75, -0.2),
    ),
    DistrictDefinition(
        id="skyport", name="Skyport", color="#34495e",
        description="Airfield, hangars and the customs checkpoint.",
        default_center=(0.1, 0.85),
    ),
]

DISTRICTS_BY_ID: Dict[str, DistrictDefinition] = {d.id: d for d in DISTRICTS}


def get_district(district_id: str) -> Optional[DistrictDefinition]:
    return DISTRICTS_BY_ID.get(district_id)


def _check_district_keys(value: dict) -> dict:
    unknown = sorted(k for k in value if k not in DISTRICTS_BY_ID)
    if unknown:
        raise ValueError(f"unknown district id(s): {', '.join(unknown)}")
    return value


def _check_radius_overrides(value: Dict[str, float]) -> Dict[str, float]:
    _check_district_keys(value)
    for district_id, radius in value.items():
        if not radius > 0 or radius == float("inf"):
            raise ValueError(f"radius override for {district_id} must be a positive number")
    return value


class NormalizedPoint(BaseModel):
    """Ground position normalized to [-1, 1] against the model footprint."""

    x: float = Field(..., ge=-1.0, le=1.0)
    z: float = Field(..., ge=-1.0, le=1.0)


class MapFootprint(BaseModel):
    """World-space bounding box of the map model projected on the ground."""

    min_x: float
    max_x: float
    min_z: float
    max_z: float

    @model_validator(mode="after")
    def check_order(self) -> "MapFootprint":
        if self.max_x < self.min_x or self.max_z < self.min_z:
            raise ValueError("bounds max must not be less than min")
        return self


class DistrictConfig(BaseModel):
    """
    Persisted district layout (singleton).

    Centers are normalized so the layout survives rescaling the model;
    radius overrides are world-space radii that replace
    ``radius_scale * base_radius`` for a single district.
    """

    centers: Dict[str, NormalizedPoint] = Field(default_factory=dict)
    radius_scale: float = Field(1.0, gt=0, allow_inf_nan=False)
    radius_overrides: Dict[str, float] = Field(default_factory=dict)
    bounds: Optional[MapFootprint] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @field_validator("centers")
    @classmethod
    def check_centers(cls, v: Dict[str, NormalizedPoint]) -> Dict[str, NormalizedPoint]:
        return _check_district_keys(v)

    @field_validator("radius_overrides")
    @classmethod
    def check_overrides(cls, v: Dict[str, float]) -> Dict[str, float]:
        return _check_radius_overrides(v)

    @classmethod
    def default(cls) -> "DistrictConfig":
        return cls(
            centers={
                d.id: NormalizedPoint(x=d.default_center[0], z=d.default_center[1])
                for d in DISTRICTS
            }
        )


class DistrictConfigUpdate(BaseModel):
    """Request body for saving the district configuration."""

    centers: Dict[str, NormalizedPoint]
    radius_scale: float = Field(1.0, gt=0, allow_inf_nan=False)
    radius_overrides: Dict[str, float] = Field(default_factory=dict)
    bounds: Optional[MapFootprint] = None

    @field_validator("centers")
    @classmethod
    def check_centers(cls, v: Dict[str, NormalizedPoint]) -> Dict[str, NormalizedPoint]:
        return _check_district_keys(v)

    @field_validator("radius_overrides")
    @classmethod
    def check_overrides(cls, v: Dict[str, float]) -> Dict[str, float]:
        return _check_radius_overrides(v)
