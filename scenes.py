from utils import vec
from materials import Material, CheckerTexture
from geometry import Sphere, Polygon, Rectangle
from lights import PointLight, SpotLight, AreaLight
from illumination import PHONG, PHONG_BLINN
from media import HeightDensity
from world import World
from ray import Camera, RAY_TRACER, RAY_MARCHING
from config import INDEX_BOUNDS


class SceneDef(object):
    def __init__(self, world, ray_type=RAY_TRACER, **camera_kwargs):
        self.world = world
        self.ray_type = ray_type
        self.camera_kwargs = camera_kwargs

    def make_camera(self, **settings):
        """Camera for this scene; settings (resolution, depth, ...) override the scene's own."""
        kwargs = dict(self.camera_kwargs, ray_type=self.ray_type)
        kwargs.update(settings)
        return Camera(**kwargs)


def floor(y=-0.6, x0=-1.5, x1=0.5, z0=0.0, z1=-6.0, material=None):
    if material is None:
        material = Material(k_a=0.3, k_d=1.0, k_s=0.0, p=1.0, texture=CheckerTexture())
    return Rectangle([[x0, y, z0], [x0, y, z1], [x1, y, z1], [x1, y, z0]], material)


def SingleSphereExample():
    """One white sphere in front of the camera, lit from above."""
    world = World()
    world.add_object(Sphere(vec([0.0, 0.0, -1.9]), 0.4,
                            Material(vec([1, 1, 1]), k_a=0.2, k_d=0.5, k_s=1.0, p=50.)))
    world.add_light(PointLight(vec([0.0, 5.0, 3.0]), vec([1, 1, 1])))
    world.set_illumination_model(vec([0.25, 0.61, 1.00]), PHONG)
    return SceneDef(world, depth_or_samples=1)


def TwoSpheresExample():
    """A glass sphere in front of a mirror sphere, over a checkered floor."""
    glass = Material(vec([1, 1, 1]), k_a=0.075, k_d=0.075, k_s=0.2, p=20., k_t=0.8, ior=0.95)
    mirror = Material(vec([0.7, 0.7, 0.7]), k_a=0.15, k_d=0.25, k_s=1.0, p=20., k_r=0.75)

    world = World()
    world.add_object(Sphere(vec([0.0, 0.1, -1.9]), 0.4, glass))
    world.add_object(Sphere(vec([-0.65, -0.2, -2.5]), 0.3, mirror))
    world.add_object(floor())
    world.add_light(PointLight(vec([0.0, 5.0, 3.0]), vec([1, 1, 1])))
    world.set_illumination_model(vec([0.25, 0.61, 1.00]), PHONG)
    world.create_spatial_index(*INDEX_BOUNDS)
    return SceneDef(world, depth_or_samples=3)


def AreaLightExample():
    """A mirror sphere lit by a glowing panel, casting soft shadows on the floor."""
    panel = Rectangle([[0.25, 0.7, -1.25], [0.25, 0.7, -2.25], [-0.25, 0.7, -2.25], [-0.25, 0.7, -1.25]],
                      Material(vec([1, 1, 1]), k_a=0.0, k_d=0.0, k_s=0.0, k_e=vec([1, 1, 1])))

    world = World()
    world.add_object(panel)
    world.add_object(Sphere(vec([0.0, -0.2, -1.9]), 0.3,
                            Material(vec([1, 0.2, 0.2]), k_a=0.1, k_d=0.6, k_s=0.3, p=20., k_r=0.2)))
    world.add_object(floor())
    world.add_light(AreaLight(panel, 16))
    world.set_illumination_model(vec([0.25, 0.61, 1.00]), PHONG_BLINN)
    world.create_spatial_index(*INDEX_BOUNDS)
    return SceneDef(world, depth_or_samples=1)


def FogExample():
    """Two spheres in ground fog, under a spotlight that leaves a visible light shaft."""
    world = World()
    world.add_object(Sphere(vec([0.0, 0.5, -2.0]), 0.4,
                            Material(vec([0, 1, 0]), k_a=0.2, k_d=0.6, k_s=0.6, p=10.)))
    world.add_object(Sphere(vec([-0.65, 0.3, -2.5]), 0.3,
                            Material(vec([0.2, 0.2, 0.2]), k_a=0.5, k_d=0.5, k_s=0.8, p=20.)))
    world.add_object(Polygon([[-1.8, -0.9, 0.0], [-1.8, -0.9, -6.0], [1.8, -0.9, -6.0], [1.8, -0.9, 0.0]],
                             Material(vec([0.5, 0.5, 0.5]), k_a=0.2, k_d=0.3, k_s=0.0, p=1.),
                             normal=vec([0, 1, 0])))
    world.add_light(SpotLight(vec([0.0, 2.0, -2.0]), vec([1, 1, 1]), vec([0, -1, 0]), 20, 20))
    world.add_participant_media(0.05, 0.3, HeightDensity(base=1.0, falloff=0.8, height=-0.9))
    world.set_illumination_model(vec([0.25, 0.61, 1.00]), PHONG)
    return SceneDef(world, RAY_MARCHING, position=vec([0, 0, 1.5]), look_at=vec([0, 0, 0.5]),
                    depth_or_samples=20)


SCENES = {
    'single_sphere': SingleSphereExample,
    'two_spheres': TwoSpheresExample,
    'area_light': AreaLightExample,
    'fog': FogExample,
}
