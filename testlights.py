import unittest
import numpy as np
from ray import Ray
from geometry import Sphere, Rectangle
from lights import PointLight, SpotLight, AreaLight
from materials import Material
from utils import vec, normalize


class TestPointLight(unittest.TestCase):

    def test_always_reaches_unattenuated(self):
        light = PointLight(vec([1, 2, 3]), vec([1, 1, 1]))
        rng = np.random.default_rng(7)
        for p in rng.uniform(-10, 10, (50, 3)):
            self.assertTrue(light.reaches(p))
            self.assertEqual(light.attenuation(p), 1.0)

    def test_contract(self):
        light = PointLight(vec([1, 2, 3]), vec([0.5, 0.5, 1]))
        np.testing.assert_array_equal(light.positions(), [[1, 2, 3]])
        self.assertEqual(light.sample_count(), 1)
        self.assertAlmostEqual(light.min_distance(vec([1, 2, 0])), 3.0)
        self.assertEqual(light.intersect(Ray(vec([0, 0, 0]), vec([1, 2, 3]))), [])
        np.testing.assert_array_equal(light.color, [0.5, 0.5, 1])


class TestSpotLight(unittest.TestCase):

    def setUp(self):
        # 45 degree cone hanging from the origin, pointing down
        self.light = SpotLight(vec([0, 0, 0]), vec([1, 1, 1]), vec([0, -2, 0]), 45, falloff=2)

    def test_reaches_inside_cone(self):
        self.assertTrue(self.light.reaches(vec([0, -1, 0])))
        self.assertTrue(self.light.reaches(vec([0.9, -1, 0])))
        self.assertFalse(self.light.reaches(vec([1.1, -1, 0])))
        self.assertFalse(self.light.reaches(vec([0, 1, 0])))

    def test_boundary_is_inclusive(self):
        self.assertTrue(self.light.reaches(vec([1, -1, 0])))
        self.assertTrue(self.light.reaches(vec([0, -3, 3])))

    def test_attenuation(self):
        # cos^2 of the angle off the axis
        self.assertAlmostEqual(self.light.attenuation(vec([0, -5, 0])), 1.0)
        p = vec([np.sin(np.pi / 6), -np.cos(np.pi / 6), 0])
        self.assertAlmostEqual(self.light.attenuation(p), 0.75)
        # behind the light there is nothing to raise to a power
        self.assertEqual(self.light.attenuation(vec([0, 1, 0])), 0.0)
        flat = SpotLight(vec([0, 0, 0]), vec([1, 1, 1]), vec([0, -1, 0]), 45)
        self.assertEqual(flat.attenuation(p), 1.0)

    def test_cone_crossing(self):
        points = self.light.intersect(Ray(vec([-2, -1, 0]), vec([1, 0, 0])))
        self.assertEqual(len(points), 2)
        np.testing.assert_allclose(points[0], [-1, -1, 0], atol=1e-9)
        np.testing.assert_allclose(points[1], [1, -1, 0], atol=1e-9)

    def test_cone_exit_from_inside(self):
        points = self.light.intersect(Ray(vec([0, -1, 0]), vec([1, 0, 0])))
        self.assertEqual(len(points), 1)
        np.testing.assert_allclose(points[0], [1, -1, 0], atol=1e-9)

    def test_backward_nappe_ignored(self):
        self.assertEqual(self.light.intersect(Ray(vec([-2, 1, 0]), vec([1, 0, 0]))), [])

    def test_miss(self):
        self.assertEqual(self.light.intersect(Ray(vec([-2, -1, 5]), vec([1, 0, 0]))), [])

    def test_parallel_to_surface_is_no_intersection(self):
        # zero leading coefficient in the quadratic
        self.assertEqual(self.light.intersect(Ray(vec([-3, 0, 0]), normalize(vec([1, -1, 0])))), [])


class TestAreaLight(unittest.TestCase):

    def setUp(self):
        self.bulb = Sphere(vec([0, 3, 0]), 0.2, Material(k_e=vec([2, 2, 1])))
        self.light = AreaLight(self.bulb, 16)

    def test_samples(self):
        pts = self.light.positions()
        self.assertEqual(pts.shape, (16, 3))
        self.assertEqual(self.light.sample_count(), 16)
        np.testing.assert_allclose(np.linalg.norm(pts - self.bulb.center, axis=1), 0.2)
        # the same points on every call
        np.testing.assert_array_equal(pts, self.light.positions())

    def test_color_and_contract(self):
        np.testing.assert_array_equal(self.light.color, [2, 2, 1])
        self.assertTrue(self.light.reaches(vec([5, 5, 5])))
        self.assertEqual(self.light.attenuation(vec([5, 5, 5])), 1.0)
        self.assertEqual(self.light.intersect(Ray(vec([0, 0, 0]), vec([0, 1, 0]))), [])

    def test_min_distance(self):
        origin = vec([0, 0, 0])
        d = self.light.min_distance(origin)
        self.assertTrue(np.all(np.linalg.norm(self.light.positions(), axis=1) >= d))
        self.assertGreaterEqual(d, 2.8 - 1e-9)
        self.assertLessEqual(d, 3.2)

    def test_rectangle_panel(self):
        panel = Rectangle([[1, 2, 1], [1, 2, -1], [-1, 2, -1], [-1, 2, 1]], Material(k_e=vec([1, 1, 1])))
        pts = AreaLight(panel, 32, seed=5).positions()
        np.testing.assert_allclose(pts[:, 1], 2.0)
        self.assertTrue(all(panel.contains(p) for p in pts))

    def test_needs_samples(self):
        with self.assertRaises(ValueError):
            AreaLight(self.bulb, 0)


if __name__ == '__main__':
    unittest.main()
