"""Unit tests for sphere tracing.

Tests cover:
- Convergence to the analytic sphere intersection
- Misses by escaping past t_max and by exhausting the step budget
- Front-face convention of raymarched hits
"""

import pytest
import taichi as ti


def _march(field, origin, direction, max_steps=100, epsilon=1e-5, t_min=0.001, t_max=100.0):
    """March a ray against a field description and return (hit, t, normal, front_face)."""
    from src.pathtracer.core.ray import make_ray, vec3
    from src.pathtracer.geometry.raymarcher import march
    from src.pathtracer.geometry.sdf import FieldParams, SierpinskiTetrasphere, field_kind

    radius = getattr(field, "radius", 0.0)
    iterations = getattr(field, "iterations", 0)
    gradient = int(isinstance(field, SierpinskiTetrasphere) and field.gradient_normals)

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        kind: ti.i32,
        cx: ti.f64,
        cy: ti.f64,
        cz: ti.f64,
        r: ti.f64,
        n: ti.i32,
        g: ti.i32,
        ox: ti.f64,
        oy: ti.f64,
        oz: ti.f64,
        dx: ti.f64,
        dy: ti.f64,
        dz: ti.f64,
        steps: ti.i32,
        eps: ti.f64,
        lo: ti.f64,
        hi: ti.f64,
    ):
        params = FieldParams(
            kind=kind, center=vec3(cx, cy, cz), radius=r, iterations=n, gradient_normals=g
        )
        ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
        record = march(ray, params, steps, eps, lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(
        int(field_kind(field)),
        *field.center,
        radius,
        iterations,
        gradient,
        *origin,
        *direction,
        max_steps,
        epsilon,
        t_min,
        t_max,
    )
    return hit[None], t_val[None], tuple(normal[None].to_numpy()), front_face[None]


class TestSphereFieldMarching:
    """Sphere tracing of the sphere field against the analytic answer."""

    @pytest.mark.parametrize(
        "origin,direction,expected_t",
        [
            ((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0.5),
            ((0.0, 0.0, 3.0), (0.0, 0.0, -1.0), 3.5),
            ((0.2, 0.1, 2.0), (0.0, 0.0, -1.0), None),
        ],
    )
    def test_converges_to_analytic_t(self, origin, direction, expected_t):
        import math

        from src.pathtracer.geometry.sdf import SphereField

        field = SphereField((0.0, 0.0, -1.0), 0.5)
        if expected_t is None:
            # Offset ray: analytic nearest root of |o + t d - c| = r
            oc = (origin[0], origin[1], origin[2] + 1.0)
            half_b = -oc[2]
            c = sum(x * x for x in oc) - 0.25
            expected_t = -half_b - math.sqrt(half_b * half_b - c)

        hit, t, normal, front_face = _march(field, origin, direction)

        assert hit == 1
        assert t == pytest.approx(expected_t, abs=1e-3)
        assert front_face == 1

    def test_normal_is_radial(self):
        from src.pathtracer.geometry.sdf import SphereField

        _, _, normal, _ = _march(SphereField((0.0, 0.0, -1.0), 0.5), (0, 0, 0), (0, 0, -1))

        assert normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-3)

    def test_miss_when_ray_escapes(self):
        from src.pathtracer.geometry.sdf import SphereField

        hit, _, _, _ = _march(SphereField((0.0, 0.0, -1.0), 0.5), (0, 0, 0), (0, 0, 1))

        assert hit == 0

    def test_miss_beyond_t_max(self):
        from src.pathtracer.geometry.sdf import SphereField

        hit, _, _, _ = _march(
            SphereField((0.0, 0.0, -10.0), 0.5), (0, 0, 0), (0, 0, -1), t_max=5.0
        )

        assert hit == 0

    def test_exhausting_steps_is_miss(self):
        """A grazing ray converges slowly; one step is never enough."""
        from src.pathtracer.geometry.sdf import SphereField

        hit, _, _, _ = _march(
            SphereField((0.0, 0.0, -1.0), 0.5), (0, 0, 0), (0, 0, -1), max_steps=1
        )

        assert hit == 0

    def test_large_epsilon_stops_early(self):
        from src.pathtracer.geometry.sdf import SphereField

        hit, t, _, _ = _march(
            SphereField((0.0, 0.0, -1.0), 0.5), (0, 0, 0), (0, 0, -1), epsilon=0.6
        )

        # The first estimate (0.499) is already below epsilon
        assert hit == 1
        assert t == pytest.approx(0.001)


class TestTetrasphereMarching:
    """Sphere tracing of the fractal."""

    def test_hits_first_level_sphere(self):
        """After one iteration the corner sphere at (0.5, 0.5, 0.5) has radius 0.45."""
        from src.pathtracer.geometry.sdf import SierpinskiTetrasphere

        field = SierpinskiTetrasphere((0.0, 0.0, 0.0), iterations=1)
        hit, t, normal, front_face = _march(field, (0.5, 0.5, 5.0), (0.0, 0.0, -1.0))

        assert hit == 1
        assert t == pytest.approx(4.05, abs=1e-3)
        assert front_face == 1
        # Placeholder normal
        assert normal == pytest.approx((0.0, 0.0, 1.0))

    def test_gradient_normals_on_side_hit(self):
        """Hitting the corner sphere from +x gives a +x normal with gradient normals."""
        from src.pathtracer.geometry.sdf import SierpinskiTetrasphere

        field = SierpinskiTetrasphere((0.0, 0.0, 0.0), iterations=1, gradient_normals=True)
        hit, t, normal, _ = _march(field, (5.0, 0.5, 0.5), (-1.0, 0.0, 0.0))

        assert hit == 1
        assert t == pytest.approx(4.05, abs=1e-3)
        assert normal == pytest.approx((1.0, 0.0, 0.0), abs=1e-3)

    def test_deep_fractal_is_hit(self):
        """Deeper iterations keep the corner sub-sphere at (0.9375, 0.9375, 0.9375)."""
        from src.pathtracer.geometry.sdf import SierpinskiTetrasphere

        field = SierpinskiTetrasphere((0.0, 0.0, 0.0), iterations=4)
        hit, t, _, front_face = _march(field, (0.9375, 0.9375, 5.0), (0.0, 0.0, -1.0))

        assert hit == 1
        # Near surface of the radius 0.9 / 16 sphere
        assert t == pytest.approx(5.0 - 0.9375 - 0.05625, abs=1e-3)
        assert front_face == 1
