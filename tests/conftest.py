"""Pytest configuration for photon mapper tests.

Shared fixtures:
- Reseeding the per-thread random generators before every test, so tests
  drawing pseudo-random numbers are reproducible.
- A small room scene (room shell, ceiling light, sphere on the floor).
- A single-threaded parallelizer for deterministic loops.
"""

import pytest


@pytest.fixture(autouse=True)
def reseed_generators():
    """Reset the per-thread generators to a fixed seed before each test."""
    from src.photonmapper.core.sampling import reseed

    reseed(42)
    yield


@pytest.fixture
def single_threaded():
    """A single-threaded parallelizer."""
    from src.photonmapper.core.parallel import SingleThreadedParallelizer

    with SingleThreadedParallelizer() as parallelizer:
        yield parallelizer


@pytest.fixture
def room_scene():
    """Room shell, a downward ceiling light and a diffuse sphere on the floor.

    Returns a Scene; use ``scene.traceable()`` and ``scene.light()``.
    """
    from src.photonmapper.geometry.room import RoomShell
    from src.photonmapper.geometry.sphere import Sphere
    from src.photonmapper.geometry.square_light import SquareLight
    from src.photonmapper.materials.material import Material
    from src.photonmapper.scene.manager import Scene

    scene = Scene()
    scene.add_object(RoomShell())
    scene.add_object(Sphere((0.0, -0.5, 0.0), 0.3, Material.diffuse(0.8)))
    scene.add_light(
        SquareLight(
            position=(0.0, 0.98, 0.0),
            basis1=(0.25, 0.0, 0.0),
            basis2=(0.0, 0.0, 0.25),
            power=(10.0, 10.0, 10.0),
            sample_count=16,
        )
    )
    return scene
