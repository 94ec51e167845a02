"""Core rendering module.

Components:
    ray: Ray type and vector helpers
    traceable: HitInfo and the Traceable / Light interfaces
    sampling: Per-thread random generators and quasi-random sequences
    parallel: Single-threaded and thread pool loop executors
    integrator: Recursive radiance estimation (RayTracer)
    photon_tracer: Photon emission and random walks
    renderer: RenderConfig and the frame orchestrator

integrator, photon_tracer and renderer depend on the geometry, materials and
photonmap packages; import them from their modules directly.
"""

from .parallel import (
    AtomicCounter,
    Parallelizer,
    SingleThreadedParallelizer,
    ThreadPoolParallelizer,
    create_parallelizer,
)
from .ray import DISTANCE_EPSILON, Ray, normalize, spectrum, vec3
from .sampling import HaltonHammersleySet, reseed, thread_rng

__all__ = [
    "DISTANCE_EPSILON",
    "AtomicCounter",
    "HaltonHammersleySet",
    "Parallelizer",
    "Ray",
    "SingleThreadedParallelizer",
    "ThreadPoolParallelizer",
    "create_parallelizer",
    "normalize",
    "reseed",
    "spectrum",
    "thread_rng",
    "vec3",
]
