"""Scene container gathering objects and lights.

``Scene`` keeps the lists the renderer needs:

- objects: everything rays and photons can hit
- lights: emitters used for direct lighting and photon emission

A light is also an object: it is opaque and visible, so ``add_light``
registers it in both lists.

Example:
    >>> from src.photonmapper.scene.manager import Scene
    >>> from src.photonmapper.geometry.room import RoomShell
    >>> from src.photonmapper.geometry.square_light import SquareLight
    >>> scene = Scene()
    >>> scene.add_object(RoomShell())
    >>> scene.add_light(SquareLight((0, 0.98, 0), (0.25, 0, 0), (0, 0, 0.25), (10, 10, 10)))
    >>> len(scene.objects), len(scene.lights)
    (2, 1)
"""

from __future__ import annotations

from collections.abc import Iterable

from src.photonmapper.core.traceable import Light, Traceable
from src.photonmapper.scene.intersection import CompositeLight, CompositeTraceable


class Scene:
    """Objects and lights of a scene.

    Args:
        objects: Initial occluders.
        lights: Initial lights; each is added as an occluder too.
    """

    def __init__(self, objects: Iterable[Traceable] = (), lights: Iterable[Light] = ()) -> None:
        self.objects: list[Traceable] = []
        self.lights: list[Light] = []
        for obj in objects:
            self.add_object(obj)
        for light in lights:
            self.add_light(light)

    def add_object(self, obj: Traceable) -> None:
        self.objects.append(obj)

    def add_light(self, light: Light) -> None:
        """Add a light, both as an emitter and as an occluder."""
        self.lights.append(light)
        self.objects.append(light)

    def clear(self) -> None:
        self.objects.clear()
        self.lights.clear()

    def traceable(self) -> CompositeTraceable:
        """Everything in the scene as one traceable."""
        return CompositeTraceable(self.objects)

    def light(self) -> CompositeLight:
        """All lights as one light."""
        return CompositeLight(self.lights)

    def __repr__(self) -> str:
        return f"Scene(objects={len(self.objects)}, lights={len(self.lights)})"
