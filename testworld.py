import unittest
import numpy as np
from ray import Ray, Camera
from geometry import Sphere, Rectangle, no_hit
from lights import PointLight, SpotLight, AreaLight
from materials import Material
from world import World
from scenes import SingleSphereExample, TwoSpheresExample, AreaLightExample, FogExample
from media import ParticipatingMedia, ConstantDensity, HeightDensity
from utils import vec

BLACK = dict(k_a=0., k_d=0., k_s=0.)


def emitter(color=(1, 1, 1)):
    return Material(vec([0, 0, 0]), k_e=vec(color), **BLACK)


def diffuse_floor(y=0.0, size=10.0):
    return Rectangle([[-size, y, size], [-size, y, -size], [size, y, -size], [size, y, size]],
                     Material(vec([1, 1, 1]), k_a=0., k_d=1., k_s=0.))


class TestWorldLifecycle(unittest.TestCase):

    def test_frozen_world_is_read_only(self):
        world = World()
        world.add_object(Sphere(vec([0, 0, -3]), 1.0, Material()))
        world.spawn(Ray(vec([0, 0, 0]), vec([0, 0, -1])), 1)
        self.assertTrue(world.frozen)
        with self.assertRaises(RuntimeError):
            world.add_object(Sphere(vec([0, 0, -5]), 1.0, Material()))
        with self.assertRaises(RuntimeError):
            world.add_light(PointLight(vec([0, 1, 0]), vec([1, 1, 1])))
        with self.assertRaises(RuntimeError):
            world.set_illumination_model(vec([1, 1, 1]))
        with self.assertRaises(RuntimeError):
            world.add_participant_media(0.1, 0.1)
        with self.assertRaises(RuntimeError):
            world.create_spatial_index(-1, 1, -1, 1, -1, 1)

    def test_invalid_arguments(self):
        world = World()
        ray = Ray(vec([0, 0, 0]), vec([0, 0, -1]))
        with self.assertRaises(ValueError):
            world.spawn(ray, -1)
        with self.assertRaises(ValueError):
            world.spawn_ray_march(ray, 0)
        with self.assertRaises(ValueError):
            World().add_participant_media(-0.1, 0.5)


class TestRayTracing(unittest.TestCase):

    def test_miss_returns_background(self):
        background = vec([0.1, 0.2, 0.3])
        ray = Ray(vec([0, 0, 0]), vec([0, 1, 0]))
        for objects in ([], [Sphere(vec([0, 0, -3]), 1.0, Material())]):
            world = World(background)
            for obj in objects:
                world.add_object(obj)
            for depth in range(4):
                np.testing.assert_array_equal(world.spawn(ray, depth), background)

    def test_mirror_bounce(self):
        world = World()
        world.add_object(Sphere(vec([0, 0, -3]), 1.0, Material(vec([1, 1, 1]), k_r=0.5, **BLACK)))
        world.add_object(Sphere(vec([0, 0, 2]), 0.5, emitter()))
        ray = Ray(vec([0, 0, 0]), vec([0, 0, -1]))
        # depth 0 is local shading only, and the mirror itself is black
        np.testing.assert_allclose(world.spawn(ray, 0), [0, 0, 0])
        np.testing.assert_allclose(world.spawn(ray, 1), [0.5, 0.5, 0.5])

    def test_refraction_through_glass(self):
        world = World()
        world.add_object(Sphere(vec([0, 0, -3]), 1.0, Material(vec([1, 1, 1]), k_t=1.0, ior=1.5, **BLACK)))
        world.add_object(Sphere(vec([0, 0, -6]), 0.5, emitter((0.2, 0.9, 0.4))))
        ray = Ray(vec([0, 0, 0]), vec([0, 0, -1]))
        # one bounce only gets the ray inside the glass
        np.testing.assert_allclose(world.spawn(ray, 1), [0, 0, 0])
        np.testing.assert_allclose(world.spawn(ray, 2), [0.2, 0.9, 0.4])

    def test_total_internal_reflection(self):
        world = World()
        world.add_object(Sphere(vec([0, 0, -3]), 1.0, Material(vec([1, 1, 1]), k_t=1.0, ior=1.5, **BLACK)))
        world.add_object(Sphere(vec([0, 0, 0]), 10.0, emitter()))
        # leaving the glass at 53 degrees is past the critical angle of about 42
        grazing = Ray(vec([0, 0.8, -3]), vec([0, 0, -1]))
        np.testing.assert_allclose(world.spawn(grazing, 1), [0, 0, 0])
        straight = Ray(vec([0, 0, -3]), vec([0, 0, -1]))
        np.testing.assert_allclose(world.spawn(straight, 1), [1, 1, 1])

    def test_hard_shadow(self):
        world = World()
        world.add_object(diffuse_floor())
        world.add_object(Sphere(vec([0, 1, 0]), 0.3, Material()))
        world.add_light(PointLight(vec([0, 3, 0]), vec([1, 1, 1])))
        world.set_illumination_model(vec([1, 1, 1]))
        shadowed = world.spawn(Ray(vec([0, 5, 5]), vec([0, -5, -5])), 0)
        np.testing.assert_allclose(shadowed, [0, 0, 0])
        lit = world.spawn(Ray(vec([2, 5, 5]), vec([0, -5, -5])), 0)
        self.assertTrue(np.all(lit > 0))

    def test_spotlight_cone(self):
        world = World()
        world.add_object(diffuse_floor())
        world.add_light(SpotLight(vec([0, 2, 0]), vec([1, 1, 1]), vec([0, -1, 0]), 30))
        inside = world.spawn(Ray(vec([0.5, 1, 0]), vec([0, -1, 0])), 0)
        outside = world.spawn(Ray(vec([3, 1, 0]), vec([0, -1, 0])), 0)
        self.assertTrue(np.all(inside > 0))
        np.testing.assert_array_equal(outside, [0, 0, 0])

    def test_area_light_matches_point_light_from_afar(self):
        bulb = Sphere(vec([0, 3, 0]), 0.2, emitter())
        area = World()
        area.add_object(diffuse_floor())
        area.add_light(AreaLight(bulb, 256))
        point = World()
        point.add_object(diffuse_floor())
        point.add_light(PointLight(bulb.centroid(), vec([1, 1, 1])))
        for x, z in [(0, 0), (1, 0.5), (-2, 1)]:
            ray = Ray(vec([x, 1, z]), vec([0, -1, 0]))
            np.testing.assert_allclose(area.spawn(ray, 0), point.spawn(ray, 0), atol=1e-2)

    def test_soft_shadow_is_partial(self):
        panel = Rectangle([[1, 3, 1], [1, 3, -1], [-1, 3, -1], [-1, 3, 1]], emitter())
        world = World()
        world.add_object(diffuse_floor())
        # blocker covering roughly half of the panel as seen from the origin
        world.add_object(Rectangle([[0, 1.5, 1], [0, 1.5, -1], [-1, 1.5, -1], [-1, 1.5, 1]], Material()))
        world.add_light(AreaLight(panel, 64))
        color = world.spawn(Ray(vec([0, 1, 0]), vec([0, -1, 0])), 0)
        unblocked = World()
        unblocked.add_object(diffuse_floor())
        unblocked.add_light(AreaLight(panel, 64))
        full = unblocked.spawn(Ray(vec([0, 1, 0]), vec([0, -1, 0])), 0)
        self.assertTrue(np.all(color > 0.2 * full))
        self.assertTrue(np.all(color < 0.8 * full))


class TestRayMarching(unittest.TestCase):

    def sphere_world(self, material):
        world = World()
        world.add_object(Sphere(vec([0, 0, -3]), 1.0, material))
        return world

    def test_without_media_is_local_shading(self):
        world = self.sphere_world(Material(vec([0.3, 0.6, 0.9])))
        world.add_light(PointLight(vec([0, 5, 3]), vec([1, 1, 1])))
        world.set_illumination_model(vec([0.2, 0.2, 0.2]))
        ray = Ray(vec([0, 0, 0]), vec([0.05, 0.1, -1]))
        np.testing.assert_allclose(world.spawn_ray_march(ray, 10), world.spawn(ray, 0))

    def test_absorption_only(self):
        world = self.sphere_world(emitter())
        world.add_participant_media(0.5, 0.0)
        # the surface is 2 units away
        color = world.spawn_ray_march(Ray(vec([0, 0, 0]), vec([0, 0, -1])), 10)
        np.testing.assert_allclose(color, np.exp(-1.0) * vec([1, 1, 1]))

    def test_in_scattering(self):
        world = self.sphere_world(Material(vec([0, 0, 0]), **BLACK))
        world.add_light(PointLight(vec([0, 2, -1]), vec([1, 1, 1])))
        world.add_participant_media(0.0, 0.5)
        color = world.spawn_ray_march(Ray(vec([0, 0, 0]), vec([0, 0, -1])), 10)
        step = 0.2
        expected = sum(np.exp(-0.5 * step * k) * 0.5 * step for k in range(10))
        np.testing.assert_allclose(color, [expected] * 3)

    def test_march_length(self):
        world = World()
        ray = Ray(vec([-2, -1, 0]), vec([1, 0, 0]))
        self.assertEqual(world.march_length(ray, no_hit), 0.0)
        world.add_light(PointLight(vec([0, 3, 0]), vec([1, 1, 1])))
        self.assertAlmostEqual(world.march_length(ray, no_hit), np.sqrt(4 + 16))
        # a spotlight's cone exit wins over distances to lights
        world.add_light(SpotLight(vec([0, 0, 0]), vec([1, 1, 1]), vec([0, -1, 0]), 45))
        self.assertAlmostEqual(world.march_length(ray, no_hit), 3.0)
        hit = Sphere(vec([0, -1, 0]), 0.5, Material()).intersect(ray)
        self.assertAlmostEqual(world.march_length(ray, hit), 1.5)

    def test_height_varying_density(self):
        world = World()
        # black ceiling sphere 3 units straight up ends the march
        world.add_object(Sphere(vec([0, 4, 0]), 1.0, Material(vec([0, 0, 0]), **BLACK)))
        world.add_light(PointLight(vec([2, 1.5, 0]), vec([1, 1, 1])))
        world.add_participant_media(0.0, 0.5, HeightDensity(base=1.0, falloff=1.0, height=0.0))
        color = world.spawn_ray_march(Ray(vec([0, 0, 0]), vec([0, 1, 0])), 10)

        step = 0.3
        transmittance, expected = 1.0, 0.0
        for k in range(10):
            rho = np.exp(-(k + 0.5) * step)
            expected += transmittance * 0.5 * rho * step
            transmittance *= np.exp(-0.5 * rho * step)
        np.testing.assert_allclose(color, [expected] * 3)

    def test_spotlight_shaft(self):
        world = World()
        world.add_light(SpotLight(vec([0, 2, -2]), vec([1, 1, 1]), vec([0, -1, 0]), 20))
        world.add_participant_media(0.0, 0.3)
        through = Ray(vec([0, 0, 0]), vec([0, 0, -1]))
        beside = Ray(vec([2, 0, 0]), vec([0, 0, -1]))
        # nothing is hit, so the march ends where the ray leaves the cone
        self.assertAlmostEqual(world.march_length(through, no_hit), 2 + 2 * np.tan(np.radians(20)))
        self.assertTrue(np.all(world.spawn_ray_march(through, 20) > 0))
        np.testing.assert_array_equal(world.spawn_ray_march(beside, 20), [0, 0, 0])


class TestMedia(unittest.TestCase):

    def test_height_density(self):
        density = HeightDensity(base=2.0, falloff=0.5, height=1.0)
        self.assertEqual(density(vec([0, -3, 0])), 2.0)
        self.assertEqual(density(vec([5, 1, 5])), 2.0)
        self.assertAlmostEqual(density(vec([0, 3, 0])), 2.0 * np.exp(-1.0))
        self.assertLess(density(vec([0, 5, 0])), density(vec([0, 3, 0])))

    def test_constant_density(self):
        self.assertEqual(ConstantDensity(0.4)(vec([7, -2, 1])), 0.4)
        with self.assertRaises(ValueError):
            ConstantDensity(-1.0)

    def test_coefficients(self):
        fog = ParticipatingMedia(0.1, 0.3, HeightDensity(base=1.0, falloff=1.0, height=0.0))
        self.assertAlmostEqual(fog.extinction(vec([0, 1, 0])), 0.4 * np.exp(-1.0))
        self.assertAlmostEqual(fog.in_scattering(vec([0, 1, 0])), 0.3 * np.exp(-1.0))
        # a bare number means constant density
        haze = ParticipatingMedia(0.1, 0.3, 2.0)
        self.assertIsInstance(haze.density, ConstantDensity)
        self.assertAlmostEqual(haze.extinction(vec([0, 9, 0])), 0.8)


class TestRender(unittest.TestCase):

    def test_fog_scene(self):
        scene = FogExample()
        colors = scene.make_camera(image_width=4, image_height=4).render(scene.world)
        self.assertEqual(colors.shape, (16, 3))
        self.assertTrue(np.all(np.isfinite(colors)))
        self.assertTrue(np.all(colors >= 0))
        self.assertGreater(colors.max(), 0)

    def test_single_sphere(self):
        scene = SingleSphereExample()
        cam = scene.make_camera(image_width=16, image_height=16)
        colors = cam.render(scene.world)
        self.assertEqual(colors.shape, (256, 3))
        for i in range(16):
            for j in range(16):
                if scene.world.intersect(cam.generate_ray(i, j)).t == np.inf:
                    np.testing.assert_array_equal(colors[i * 16 + j], scene.world.background_color)
        brightest = int(np.argmax(colors.sum(axis=1)))
        i, j = divmod(brightest, 16)
        # the light is above and behind the camera
        self.assertLess(j, 8)
        self.assertLessEqual(abs(i - 7.5), 2)
        lower_limb = colors[7 * 16 + 10]
        self.assertGreater(lower_limb.sum(), 0)
        self.assertLess(lower_limb.sum(), colors[brightest].sum())

    def test_deterministic(self):
        first = AreaLightExample()
        second = AreaLightExample()
        a = first.make_camera(image_width=6, image_height=6).render(first.world)
        b = second.make_camera(image_width=6, image_height=6).render(second.world)
        np.testing.assert_array_equal(a, b)

    def test_worker_pool_matches_serial(self):
        scene = SingleSphereExample()
        cam = scene.make_camera(image_width=4, image_height=4)
        serial = cam.render(scene.world)
        pooled = cam.render(scene.world, workers=2)
        np.testing.assert_array_equal(serial, pooled)

    def test_spatial_index_matches_linear(self):
        indexed = TwoSpheresExample().world
        linear = World(indexed.background_color)
        for obj in indexed.objects:
            linear.add_object(obj)
        for light in indexed.lights:
            linear.add_light(light)
        linear.set_illumination_model(indexed.illumination.ambient_color, indexed.illumination.variant)

        cam = Camera(image_width=8, image_height=8, depth_or_samples=3)
        np.testing.assert_array_equal(cam.render(indexed), cam.render(linear))
        self.assertIsNotNone(indexed.index)
        self.assertIsNone(linear.index)


if __name__ == '__main__':
    unittest.main()
