"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, reflect, refract)
- Schlick reflectance and near_zero
- Random sampling functions for Monte Carlo
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from crayfish.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_unnormalized_direction(self):
        """Test ray_at scales the direction as given, without normalizing."""
        from crayfish.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 3.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from crayfish.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][1] + 3.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_length_and_length_squared(self):
        """Test length of a 3-4-0 vector."""
        from crayfish.core.ray import length, length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[0] = length(v)
            result[1] = length_squared(v)

        test_kernel()
        assert abs(result[0] - 5.0) < 1e-6
        assert abs(result[1] - 25.0) < 1e-5

    def test_normalize_has_unit_length(self):
        """Test normalize produces unit vectors for assorted inputs."""
        from crayfish.core.ray import length, normalize, vec3

        lengths = ti.field(dtype=ti.f32, shape=4)

        @ti.kernel
        def test_kernel():
            lengths[0] = length(normalize(vec3(3.0, 4.0, 0.0)))
            lengths[1] = length(normalize(vec3(-0.001, 0.002, 0.0005)))
            lengths[2] = length(normalize(vec3(100.0, -250.0, 75.0)))
            lengths[3] = length(normalize(vec3(0.0, 0.0, -7.0)))

        test_kernel()
        for i in range(4):
            assert abs(lengths[i] - 1.0) < 1e-5

    def test_dot_product(self):
        """Test dot product of two vectors."""
        from crayfish.core.ray import dot, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, 5.0, 6.0))

        test_kernel()
        assert abs(result[None] - 32.0) < 1e-5

    def test_cross_product(self):
        """Test cross product of x and y is z."""
        from crayfish.core.ray import cross, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6

    def test_reflect(self):
        """Test reflect((1,-1,0), (0,1,0)) == (1,1,0)."""
        from crayfish.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence_passes_straight(self):
        """Test a ray along the normal is not bent."""
        from crayfish.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_follows_snells_law(self):
        """Test sin(theta_t) = eta * sin(theta_i) for a 45 degree ray."""
        from crayfish.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        eta = 1.0 / 1.5

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result[None]
        sin_t = abs(r[0]) / math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2)
        assert abs(sin_t - eta * math.sin(math.pi / 4)) < 1e-5
        # Refracted ray continues downward
        assert r[1] < 0.0

    def test_schlick_at_normal_incidence_is_r0(self):
        """Test schlick_reflectance(1, eta) equals ((1-eta)/(1+eta))^2."""
        from crayfish.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = schlick_reflectance(1.0, 1.5)
            result[1] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        r0 = ((1.0 - 1.5) / (1.0 + 1.5)) ** 2
        assert abs(result[0] - r0) < 1e-6
        # Grazing incidence reflects everything
        assert abs(result[1] - 1.0) < 1e-6

    def test_near_zero(self):
        """Test near_zero threshold is inclusive at 1e-6 per component."""
        from crayfish.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(0.0, 0.0, 0.0))
            result[1] = near_zero(vec3(1e-7, -1e-7, 1e-7))
            result[2] = near_zero(vec3(1e-7, 1e-3, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 1
        assert result[2] == 0


class TestRandomSampling:
    """Tests for Monte Carlo sampling helpers."""

    def test_random_in_unit_sphere_bounds(self):
        """Test every sample lies strictly inside the unit ball."""
        from crayfish.core.ray import length_squared, random_in_unit_sphere

        n = 1000
        result = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = length_squared(random_in_unit_sphere())

        test_kernel()
        values = result.to_numpy()
        assert (values < 1.0).all()
        # Samples fill the ball rather than collapsing to the center
        assert values.max() > 0.5

    def test_random_in_unit_disk_bounds(self):
        """Test disk samples have z == 0 and lie inside the unit circle."""
        from crayfish.core.ray import random_in_unit_disk

        n = 1000
        result = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = random_in_unit_disk()

        test_kernel()
        points = result.to_numpy()
        assert (points[:, 2] == 0.0).all()
        assert ((points[:, 0] ** 2 + points[:, 1] ** 2) < 1.0).all()
