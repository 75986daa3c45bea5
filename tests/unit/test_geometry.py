"""Unit tests for ground-plane geometry and district placement."""

import math

import numpy as np
import pytest

from src.models.district import DistrictConfig, MapFootprint, NormalizedPoint
from src.services.geometry import (
    BASE_RADIUS_FACTOR,
    Camera,
    MapBounds,
    Ray,
    effective_radius,
    intersect_ground,
    locate_district,
    pick_zone,
    pointer_to_ndc,
)


@pytest.fixture
def bounds():
    return MapBounds(min_x=-100.0, max_x=100.0, min_z=-50.0, max_z=150.0)


class TestMapBounds:
    def test_normalize_corners(self, bounds):
        assert bounds.to_normalized(-100, -50) == (-1.0, -1.0)
        assert bounds.to_normalized(100, 150) == (1.0, 1.0)
        assert bounds.to_normalized(0, 50) == (0.0, 0.0)

    def test_world_round_trip(self, bounds):
        u, v = bounds.to_normalized(37.5, -12.0)
        x, z = bounds.to_world(u, v)
        assert x == pytest.approx(37.5)
        assert z == pytest.approx(-12.0)

    def test_zero_size_axis_maps_to_center(self):
        flat = MapBounds(min_x=5.0, max_x=5.0, min_z=0.0, max_z=10.0)
        assert flat.to_normalized(5.0, 10.0) == (0.0, 1.0)

    def test_base_radius_uses_smaller_side(self):
        narrow = MapBounds(min_x=0.0, max_x=400.0, min_z=0.0, max_z=100.0)
        assert narrow.base_radius == pytest.approx(100.0 * BASE_RADIUS_FACTOR)

    def test_from_footprint(self):
        footprint = MapFootprint(min_x=-1, max_x=2, min_z=-3, max_z=4)
        assert MapBounds.from_footprint(footprint) == MapBounds(-1, 2, -3, 4)


class TestLocateDistrict:
    def _config(self, **kwargs):
        return DistrictConfig(**kwargs)

    def test_center_is_inside(self, bounds):
        config = self._config(centers={"downtown": NormalizedPoint(x=0.2, z=-0.4)})
        x, z = bounds.to_world(0.2, -0.4)
        assert locate_district(config, bounds, x, z) == "downtown"

    def test_point_outside_every_circle(self, bounds):
        config = self._config(centers={"downtown": NormalizedPoint(x=0.0, z=0.0)})
        assert locate_district(config, bounds, 90.0, 140.0) is None

    def test_edge_of_circle(self, bounds):
        config = self._config(centers={"harbor": NormalizedPoint(x=0.0, z=0.0)})
        radius = bounds.base_radius
        assert locate_district(config, bounds, radius * 0.99, 50.0) == "harbor"
        assert locate_district(config, bounds, radius * 1.01, 50.0) is None

    def test_overlap_is_unassigned(self, bounds):
        config = self._config(
            centers={
                "downtown": NormalizedPoint(x=0.0, z=0.0),
                "financial": NormalizedPoint(x=0.02, z=0.0),
            }
        )
        assert locate_district(config, bounds, 1.0, 50.0) is None

    def test_radius_scale(self, bounds):
        config = self._config(centers={"downtown": NormalizedPoint(x=0.0, z=0.0)}, radius_scale=3.0)
        offset = bounds.base_radius * 2.5
        assert locate_district(config, bounds, offset, 50.0) == "downtown"

    def test_override_replaces_scaled_radius(self, bounds):
        config = self._config(
            centers={"downtown": NormalizedPoint(x=0.0, z=0.0)},
            radius_scale=0.5,
            radius_overrides={"downtown": 60.0},
        )
        assert effective_radius(config, "downtown", bounds) == 60.0
        assert locate_district(config, bounds, 55.0, 50.0) == "downtown"

    def test_default_layout_places_defaults(self, bounds):
        config = DistrictConfig.default()
        x, z = bounds.to_world(0.1, 0.85)
        assert locate_district(config, bounds, x, z) == "skyport"


class TestRayCasting:
    def test_pointer_to_ndc(self):
        assert pointer_to_ndc(0, 0, 800, 600) == (-1.0, 1.0)
        assert pointer_to_ndc(400, 300, 800, 600) == (0.0, 0.0)
        assert pointer_to_ndc(800, 600, 800, 600) == (1.0, -1.0)

    def test_center_ray_hits_target(self):
        camera = Camera(position=(0.0, 100.0, 100.0), target=(10.0, 0.0, -5.0))
        hit = intersect_ground(camera.ray_from_ndc(0.0, 0.0))
        assert hit is not None
        assert hit[0] == pytest.approx(10.0)
        assert hit[1] == pytest.approx(0.0)
        assert hit[2] == pytest.approx(-5.0)

    def test_pointer_right_moves_hit_right(self):
        camera = Camera(position=(0.0, 100.0, 100.0), target=(0.0, 0.0, 0.0))
        center = intersect_ground(camera.ray_from_ndc(0.0, 0.0))
        right = intersect_ground(camera.ray_from_ndc(0.5, 0.0))
        assert right[0] > center[0]

    def test_parallel_ray_misses(self):
        ray = Ray(np.array([0.0, 10.0, 0.0]), np.array([1.0, 0.0, 0.0]))
        assert intersect_ground(ray) is None

    def test_ground_behind_origin_misses(self):
        ray = Ray(np.array([0.0, 10.0, 0.0]), np.array([0.0, 1.0, 0.0]))
        assert intersect_ground(ray) is None

    def test_plane_height(self):
        ray = Ray(np.array([0.0, 10.0, 0.0]), np.array([0.0, -1.0, 0.0]))
        hit = intersect_ground(ray, plane_y=2.0)
        assert hit[1] == pytest.approx(2.0)

    def test_camera_rejects_degenerate_setup(self):
        with pytest.raises(ValueError):
            Camera(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 0.0))
        with pytest.raises(ValueError):
            Camera(position=(0.0, 10.0, 0.0), target=(0.0, 0.0, 0.0))

    def test_pick_zone_nearest_containing(self):
        ray = Ray(np.array([3.0, 50.0, 0.0]), np.array([0.0, -1.0, 0.0]))
        zones = [("a", 0.0, 0.0, 10.0), ("b", 5.0, 0.0, 10.0), ("c", 40.0, 0.0, 5.0)]
        assert pick_zone(ray, zones) == "b"

    def test_pick_zone_miss(self):
        ray = Ray(np.array([100.0, 50.0, 100.0]), np.array([0.0, -1.0, 0.0]))
        assert pick_zone(ray, [("a", 0.0, 0.0, 10.0)]) is None

    def test_ray_direction_is_unit(self):
        camera = Camera(position=(20.0, 30.0, 40.0))
        ray = camera.ray_from_ndc(0.7, -0.3)
        assert math.isclose(float(np.linalg.norm(ray.direction)), 1.0)
