"""Sphere primitive with ray-sphere intersection.

The intersection solves

    |origin + t * direction - center|^2 = radius^2

which expands to a*t^2 + 2*half_b*t + c = 0 with

    a = dot(direction, direction)
    half_b = dot(oc, direction)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The smaller root is preferred whenever it lies inside [t_min, t_max]; the
larger root is only tried when it does not. Raising t_min slightly above zero
keeps a scattered ray from re-hitting the surface it just left.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Taichi functions cannot return an optional value, so a miss is a record
    with hit == 0 whose other fields are meaningless.

    Attributes:
        hit: 1 if the ray intersected the sphere, 0 on a miss.
        t: Ray parameter of the intersection.
        point: The 3D point where the ray intersected the sphere.
        normal: Unit surface normal, always facing the incoming ray.
        front_face: 1 if the ray arrived from outside the sphere
            (dot(direction, outward_normal) < 0), 0 otherwise.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def sphere_roots(ray_origin: vec3, ray_direction: vec3, sphere: Sphere):
    """Solve the ray-sphere quadratic without filtering by t.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to intersect.

    Returns:
        Tuple (has_roots, t0, t1) with t0 <= t1. Both roots may be negative
        when the sphere lies behind the ray origin; a tangent ray yields
        t0 == t1. The roots are 0.0 when has_roots is 0.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    has_roots = 0
    t0 = 0.0
    t1 = 0.0
    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        has_roots = 1
        t0 = (-half_b - sqrt_d) / a
        t1 = (-half_b + sqrt_d) / a
    return has_roots, t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection inside [t_min, t_max].

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        sphere: The sphere to test intersection against.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Largest accepted ray parameter (inclusive).

    Returns:
        A HitRecord; check its hit field to determine if intersection occurred.
    """
    has_roots, t0, t1 = sphere_roots(ray_origin, ray_direction, sphere)

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if has_roots == 1:
        t = t0
        valid = t_min <= t and t <= t_max
        if not valid:
            t = t1
            valid = t_min <= t and t <= t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere, hitting the back face
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
