"""Scene assembly.

Components:
    intersection: CompositeTraceable and CompositeLight aggregates
    manager: Scene container of objects and lights
    cornell_box: Demo room with a ceiling light and a sphere
"""

from .cornell_box import CornellBoxParams, create_cornell_box_scene
from .intersection import CompositeLight, CompositeTraceable
from .manager import Scene

__all__ = [
    "CompositeLight",
    "CompositeTraceable",
    "CornellBoxParams",
    "Scene",
    "create_cornell_box_scene",
]
