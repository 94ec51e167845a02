"""Photon-mapping ray tracer.

This package renders scenes by combining analytic direct lighting (shadow-ray
sampling of area lights) with indirect lighting estimated from a traced
photon population, with support for:
- A KD-tree acceleration structure over triangle meshes
- Two interchangeable photon indices (uniform grid and Hilbert curve)
- Quasi-random photon emission with Russian-roulette termination
- An index-parallel thread pool shared by both rendering phases

Subpackages:
    core: Rays, intersection contracts, sampling, the parallel executor,
        the recursive ray tracer, the photon tracer and the renderer
    geometry: Shape primitives, bounding boxes and the KD-tree
    materials: Material variant and reflection/refraction models
    scene: Scene assembly, composite aggregates and the demo room
    camera: Pinhole camera with eye-ray generation
    photonmap: Photon storage and density estimation
    preview: Tone mapping and image export
"""

__version__ = "0.1.0"
