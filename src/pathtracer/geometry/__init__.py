"""Geometry module for analytic and sphere-traced primitives.

Components:
    sphere: Shared hit record, front-face rule, analytic ray-sphere intersection
    sdf: Signed distance fields (sphere, Sierpinski tetrasphere)
    raymarcher: Sphere tracing of signed distance fields

All intersection routines are Taichi functions (@ti.func) returning a
HitRecord whose ``hit`` flag encodes whether an intersection was found.
"""

from .raymarcher import march
from .sdf import (
    FieldParams,
    SdfKind,
    SierpinskiTetrasphere,
    SignedDistanceField,
    SphereField,
    distance_estimate,
    field_kind,
    normal_estimate,
)
from .sphere import HitRecord, face_normal, hit_sphere, make_miss_record

__all__ = [
    "HitRecord",
    "face_normal",
    "hit_sphere",
    "make_miss_record",
    "FieldParams",
    "SdfKind",
    "SphereField",
    "SierpinskiTetrasphere",
    "SignedDistanceField",
    "distance_estimate",
    "normal_estimate",
    "field_kind",
    "march",
]
