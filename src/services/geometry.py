"""Ground-plane geometry for placing districts and pins.

World space is Y-up: the map lies on the X/Z plane. District centers are
stored normalized to [-1, 1] against the model footprint so they survive
rescaling the model.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from ..models.district import DistrictConfig, MapFootprint

# Base circle radius as a fraction of the smaller footprint side
BASE_RADIUS_FACTOR = 0.08

_EPS = 1e-9


@dataclass(frozen=True)
class MapBounds:
    min_x: float
    max_x: float
    min_z: float
    max_z: float

    @classmethod
    def from_footprint(cls, footprint: MapFootprint) -> "MapBounds":
        return cls(footprint.min_x, footprint.max_x, footprint.min_z, footprint.max_z)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def depth(self) -> float:
        return self.max_z - self.min_z

    @property
    def base_radius(self) -> float:
        return min(self.width, self.depth) * BASE_RADIUS_FACTOR

    def to_normalized(self, x: float, z: float) -> Tuple[float, float]:
        """World (x, z) to normalized (u, v); a zero-size axis maps to 0."""
        return _normalize(x, self.min_x, self.max_x), _normalize(z, self.min_z, self.max_z)

    def to_world(self, u: float, v: float) -> Tuple[float, float]:
        """Normalized (u, v) back to world (x, z)."""
        return _denormalize(u, self.min_x, self.max_x), _denormalize(v, self.min_z, self.max_z)


def _normalize(value: float, lo: float, hi: float) -> float:
    span = hi - lo
    if abs(span) < _EPS:
        return 0.0
    return (value - lo) / span * 2.0 - 1.0


def _denormalize(value: float, lo: float, hi: float) -> float:
    return lo + (value + 1.0) / 2.0 * (hi - lo)


@dataclass(frozen=True)
class Ray:
    origin: np.ndarray
    direction: np.ndarray

    def at(self, t: float) -> np.ndarray:
        return self.origin + self.direction * t


class Camera:
    """
    Perspective camera looking from ``position`` at ``target``.

    Only what ray casting needs: the view basis and the vertical field of
    view.
    """

    def __init__(
        self,
        position: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
        fov_deg: float = 55.0,
        aspect: float = 16 / 9,
    ):
        self.position = np.asarray(position, dtype=float)
        self.target = np.asarray(target, dtype=float)
        self.up = np.asarray(up, dtype=float)
        self.fov_deg = fov_deg
        self.aspect = aspect

        forward = self.target - self.position
        norm = np.linalg.norm(forward)
        if norm < _EPS:
            raise ValueError("camera position and target must differ")
        self.forward = forward / norm

        right = np.cross(self.forward, self.up)
        if np.linalg.norm(right) < _EPS:
            raise ValueError("camera up vector is parallel to the view direction")
        self.right = right / np.linalg.norm(right)
        self.true_up = np.cross(self.right, self.forward)

    def ray_from_ndc(self, ndc_x: float, ndc_y: float) -> Ray:
        """
        Ray from the camera through a pointer position.

        Args:
            ndc_x: Horizontal normalized device coordinate, -1 (left) to 1 (right)
            ndc_y: Vertical normalized device coordinate, -1 (bottom) to 1 (top)
        """
        half_h = math.tan(math.radians(self.fov_deg) / 2.0)
        half_w = half_h * self.aspect
        direction = (
            self.forward
            + self.right * (ndc_x * half_w)
            + self.true_up * (ndc_y * half_h)
        )
        return Ray(self.position.copy(), direction / np.linalg.norm(direction))


def pointer_to_ndc(px: float, py: float, width: float, height: float) -> Tuple[float, float]:
    """Pixel position (origin top-left) to normalized device coordinates."""
    return (px / width) * 2.0 - 1.0, -(py / height) * 2.0 + 1.0


def intersect_ground(ray: Ray, plane_y: float = 0.0) -> Optional[np.ndarray]:
    """
    Intersection of ``ray`` with the horizontal plane ``y = plane_y``.

    Returns:
        World point, or None if the ray is parallel to the plane or the
        plane is behind the ray origin
    """
    dy = ray.direction[1]
    if abs(dy) < _EPS:
        return None
    t = (plane_y - ray.origin[1]) / dy
    if t < 0:
        return None
    return ray.at(t)


def pick_zone(
    ray: Ray,
    zones: Iterable[Tuple[str, float, float, float]],
    plane_y: float = 0.0,
) -> Optional[str]:
    """
    Select the zone marker under the pointer.

    Markers are flat disks on the ground plane, so the nearest hit is the
    zone whose center is closest to the ground intersection among those
    containing it.

    Args:
        ray: Pointer ray
        zones: (zone_id, center_x, center_z, radius) tuples in world space
        plane_y: Height of the marker plane

    Returns:
        Zone id, or None if no marker is hit
    """
    hit = intersect_ground(ray, plane_y)
    if hit is None:
        return None
    best_id = None
    best_dist = math.inf
    for zone_id, cx, cz, radius in zones:
        dist = math.hypot(hit[0] - cx, hit[2] - cz)
        if dist <= radius and dist < best_dist:
            best_id, best_dist = zone_id, dist
    return best_id


def effective_radius(config: DistrictConfig, district_id: str, bounds: MapBounds) -> float:
    override = config.radius_overrides.get(district_id)
    if override is not None:
        return override
    return config.radius_scale * bounds.base_radius


def district_circles(config: DistrictConfig, bounds: MapBounds):
    """Yield (district_id, center_x, center_z, radius) in world space."""
    for district_id, center in config.centers.items():
        cx, cz = bounds.to_world(center.x, center.z)
        yield district_id, cx, cz, effective_radius(config, district_id, bounds)


def locate_district(config: DistrictConfig, bounds: MapBounds, x: float, z: float) -> Optional[str]:
    """
    District containing the world point (x, z).

    A point maps to a district only when exactly one circle contains it;
    points in no circle or in overlapping circles stay unassigned.
    """
    matches = [
        district_id
        for district_id, cx, cz, radius in district_circles(config, bounds)
        if math.hypot(x - cx, z - cz) <= radius
    ]
    if len(matches) == 1:
        return matches[0]
    return None
