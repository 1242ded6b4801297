"""Taichi Monte-Carlo path tracer with analytic and sphere-traced geometry.

This package renders scenes built from analytic spheres and signed distance
fields (sphere traced) using Taichi kernels, with support for:
- Lambertian, fuzzy metal and absorbing materials
- Depth-limited path tracing against a sky gradient background
- Per-pixel random streams for reproducible renders
- Progressive rendering with accumulation

Subpackages:
    core: Vector algebra, rays, random streams, integrator and render loop
    geometry: Analytic spheres, signed distance fields and the raymarcher
    materials: Scattering models and the material registry
    scene: Hittable scene trees, upload into Taichi fields, presets
    camera: Look-at pinhole camera
    preview: Quantization and image export
"""

__version__ = "0.1.0"
