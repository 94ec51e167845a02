"""Cornell box style demo scene.

The scene fills the [-1, 1]^3 cube the photon maps are built for:

- RoomShell walls at +-1 on every axis (red wall at x = -1, green at x = +1,
  grey elsewhere)
- A square light just below the ceiling, facing down
- A sphere resting near the floor (diffuse by default; glass or mirror via
  ``CornellBoxParams.sphere_material``)

The camera sits near the front wall, looking toward the back wall.

Example:
    >>> from src.photonmapper.scene.cornell_box import CornellBoxParams, create_cornell_box_scene
    >>> scene, camera = create_cornell_box_scene(CornellBoxParams(sphere_material="glass"))
    >>> len(scene.lights)
    1
"""

from __future__ import annotations

from dataclasses import dataclass

from src.photonmapper.camera.pinhole import PinholeCamera
from src.photonmapper.geometry.room import RoomShell
from src.photonmapper.geometry.sphere import Sphere
from src.photonmapper.geometry.square_light import DEFAULT_SAMPLE_COUNT, SquareLight
from src.photonmapper.materials.material import Material
from src.photonmapper.scene.manager import Scene

# Light hangs just below the ceiling so its front face sees the room
LIGHT_HEIGHT = 0.98

# Camera at the front wall with a 1-unit-deep, 1-unit-high image plane
CAMERA_POSITION = (0.0, 0.0, 0.95)
CAMERA_TARGET = (0.0, 0.0, -1.0)
CAMERA_VFOV = 53.13

SPHERE_MATERIALS = ("diffuse", "mirror", "glass")


@dataclass
class CornellBoxParams:
    """Parameters of the demo room.

    Attributes:
        light_power: Total RGB power of the ceiling light.
        light_half_size: Half the side length of the square light.
        light_samples: Shadow rays per irradiance estimate.
        wall_color: Reflectance of floor, ceiling, front and back walls.
        left_wall_color: Reflectance of the wall at x = -1.
        right_wall_color: Reflectance of the wall at x = +1.
        sphere_center: Center of the sphere.
        sphere_radius: Radius of the sphere.
        sphere_material: "diffuse", "mirror" or "glass".
        sphere_color: Reflectance of a diffuse or mirror sphere.
        sphere_ior: Refractive index of a glass sphere.
    """

    light_power: tuple[float, float, float] = (10.0, 10.0, 10.0)
    light_half_size: float = 0.25
    light_samples: int = DEFAULT_SAMPLE_COUNT
    wall_color: tuple[float, float, float] = (0.3, 0.3, 0.3)
    left_wall_color: tuple[float, float, float] = (0.9, 0.1, 0.0)
    right_wall_color: tuple[float, float, float] = (0.1, 0.9, 0.0)
    sphere_center: tuple[float, float, float] = (0.3, -0.6, -0.3)
    sphere_radius: float = 0.4
    sphere_material: str = "diffuse"
    sphere_color: tuple[float, float, float] = (0.8, 0.8, 0.8)
    sphere_ior: float = 1.5

    def __post_init__(self) -> None:
        if self.sphere_material not in SPHERE_MATERIALS:
            raise ValueError(
                f"Unknown sphere material {self.sphere_material!r}, expected one of {SPHERE_MATERIALS}"
            )
        if not 0.0 < self.light_half_size < 1.0:
            raise ValueError(f"light_half_size must be in (0, 1), got {self.light_half_size}")

    def make_sphere_material(self) -> Material:
        if self.sphere_material == "glass":
            return Material.dielectric(self.sphere_ior)
        if self.sphere_material == "mirror":
            return Material.specular(*self.sphere_color)
        return Material.diffuse(*self.sphere_color)


def create_cornell_box_scene(
    params: CornellBoxParams | None = None,
    aspect_ratio: float = 4.0 / 3.0,
) -> tuple[Scene, PinholeCamera]:
    """Build the demo room and a camera looking into it.

    Args:
        params: Scene parameters; defaults to ``CornellBoxParams()``.
        aspect_ratio: Width / height of the image the camera renders.

    Returns:
        (scene, camera).
    """
    if params is None:
        params = CornellBoxParams()

    scene = Scene()
    scene.add_object(
        RoomShell(
            material=Material.diffuse(*params.wall_color),
            left_material=Material.diffuse(*params.left_wall_color),
            right_material=Material.diffuse(*params.right_wall_color),
        )
    )
    scene.add_object(Sphere(params.sphere_center, params.sphere_radius, params.make_sphere_material()))

    # basis1 x basis2 = (0, -1, 0): the light faces the floor
    half = params.light_half_size
    scene.add_light(
        SquareLight(
            position=(0.0, LIGHT_HEIGHT, 0.0),
            basis1=(half, 0.0, 0.0),
            basis2=(0.0, 0.0, half),
            power=params.light_power,
            sample_count=params.light_samples,
        )
    )

    camera = PinholeCamera(
        lookfrom=CAMERA_POSITION,
        lookat=CAMERA_TARGET,
        vup=(0.0, 1.0, 0.0),
        vfov=CAMERA_VFOV,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera
