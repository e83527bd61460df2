import unittest
import numpy as np
from ray import Ray
from geometry import Sphere, Triangle, Rectangle
from kdtree import KdTree, closest_hit, any_hit, world_bounds
from materials import Material
from utils import vec, normalize


def random_scene(rng, n_spheres=40, n_triangles=25):
    """Spheres and triangles scattered in [-4, 4]^3, each with its own material."""
    objects = []
    for _ in range(n_spheres):
        objects.append(Sphere(rng.uniform(-4, 4, 3), rng.uniform(0.1, 0.6), Material()))
    for _ in range(n_triangles):
        base = rng.uniform(-4, 4, 3)
        objects.append(Triangle(base + rng.uniform(-0.8, 0.8, (3, 3)), Material()))
    objects.append(Rectangle([[-4.5, -4.5, 4.5], [-4.5, -4.5, -4.5], [4.5, -4.5, -4.5], [4.5, -4.5, 4.5]],
                             Material()))
    return objects


def random_rays(rng, n):
    rays = []
    for _ in range(n):
        origin = rng.uniform(-6, 6, 3)
        # aim roughly at the scene so that most rays hit something
        target = rng.uniform(-3, 3, 3)
        rays.append(Ray(origin, normalize(target - origin)))
    return rays


class TestKdTreeMatchesLinearScan(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(1234)
        self.objects = random_scene(rng)
        self.rays = random_rays(rng, 300)
        self.tree = KdTree(self.objects, world_bounds(-5, 5, -5, 5, -5, 5), max_objects=2)

    def test_tree_is_split(self):
        nodes, leaves, depth = self.tree.stats()
        self.assertGreater(leaves, 4)
        self.assertEqual(nodes, 2 * leaves - 1)
        self.assertGreater(depth, 1)
        self.assertEqual(self.tree.outside, [])

    def test_nearest_hit(self):
        hits = 0
        for ray in self.rays:
            expected = closest_hit(self.objects, ray)
            actual = self.tree.intersect(ray)
            self.assertEqual(actual.t, expected.t)
            if expected.t < np.inf:
                hits += 1
                self.assertIs(actual.material, expected.material)
                np.testing.assert_array_equal(actual.point, expected.point)
        # the comparison is only meaningful if plenty of rays hit
        self.assertGreater(hits, 50)

    def test_segment_queries(self):
        for ray in self.rays:
            segment = Ray(ray.origin, ray.direction, start=1e-4, end=4.0)
            self.assertEqual(self.tree.any_intersect(segment), any_hit(self.objects, segment))
            self.assertEqual(self.tree.intersect(segment).t, closest_hit(self.objects, segment).t)

    def test_axis_aligned_rays(self):
        for axis in range(3):
            for sign in (1, -1):
                d = np.zeros(3)
                d[axis] = sign
                for offset in np.linspace(-3, 3, 7):
                    origin = np.full(3, offset)
                    origin[axis] = -6 * sign
                    ray = Ray(origin, d)
                    self.assertEqual(self.tree.intersect(ray).t, closest_hit(self.objects, ray).t)


class TestKdTreeCoplanar(unittest.TestCase):
    """Surfaces hit at the same t: the object listed first must win, as in a linear scan."""

    def setUp(self):
        self.red = Material(vec([1, 0, 0]))
        self.green = Material(vec([0, 1, 0]))
        # a small patch lying on the floor, like a decal
        self.patch = Rectangle([[-0.5, 0, 0.5], [-0.5, 0, -0.5], [0.5, 0, -0.5], [0.5, 0, 0.5]], self.red)
        rng = np.random.default_rng(99)
        self.fillers = [Sphere(rng.uniform(-3, 3, 3) + vec([0, 1.5, 0]), 0.2, Material()) for _ in range(7)]
        self.rays = [Ray(vec([x, 2, 4]), normalize(vec([x, 0, z]) - vec([x, 2, 4])))
                     for x in np.linspace(-0.45, 0.45, 7) for z in np.linspace(-0.45, 0.45, 7)]

    def check(self, objects, bounds):
        tree = KdTree(objects, bounds, max_objects=1)
        for ray in self.rays:
            expected = closest_hit(objects, ray)
            actual = tree.intersect(ray)
            self.assertEqual(actual.t, expected.t)
            self.assertIs(actual.material, expected.material)
        return tree

    def test_patch_listed_first(self):
        floor = Rectangle([[-4, 0, 4], [-4, 0, -4], [4, 0, -4], [4, 0, 4]], self.green)
        objects = [self.patch, floor] + self.fillers
        self.check(objects, world_bounds(-5, 5, -5, 5, -5, 5))
        # most rays land on the patch rather than on a filler sphere
        reds = sum(closest_hit(objects, ray).material is self.red for ray in self.rays)
        self.assertGreater(reds, 20)

    def test_floor_listed_first(self):
        floor = Rectangle([[-4, 0, 4], [-4, 0, -4], [4, 0, -4], [4, 0, 4]], self.green)
        self.check([floor, self.patch] + self.fillers, world_bounds(-5, 5, -5, 5, -5, 5))

    def test_tie_with_object_outside_bounds(self):
        # the floor reaches past the index bounds, so it is scanned linearly
        floor = Rectangle([[-9, 0, 9], [-9, 0, -9], [9, 0, -9], [9, 0, 9]], self.green)
        tree = self.check([self.patch, floor] + self.fillers, world_bounds(-5, 5, -5, 5, -5, 5))
        self.assertEqual(tree.outside, [floor])
        self.check(self.fillers + [floor, self.patch], world_bounds(-5, 5, -5, 5, -5, 5))


class TestKdTreeBounds(unittest.TestCase):

    def test_objects_outside_bounds_still_found(self):
        inside = Sphere(vec([0, 0, -2]), 0.5, Material())
        outside = Sphere(vec([0, 0, -20]), 1.0, Material())
        straddling = Sphere(vec([3, 0, -2]), 1.0, Material())
        tree = KdTree([inside, outside, straddling], world_bounds(-2.5, 2.5, -2.5, 2.5, -5, 5), max_objects=1)
        self.assertEqual(tree.outside, [outside, straddling])

        hit = tree.intersect(Ray(vec([0, 0, 0]), vec([0, 0, -1])))
        self.assertIs(hit.material, inside.material)
        hit = tree.intersect(Ray(vec([0, 0.8, 0]), vec([0, 0, -1])))
        self.assertIs(hit.material, outside.material)
        hit = tree.intersect(Ray(vec([3.8, 0, 0]), vec([0, 0, -1])))
        self.assertIs(hit.material, straddling.material)

    def test_single_leaf(self):
        objects = [Sphere(vec([x, 0, -3]), 0.4, Material()) for x in (-1, 0, 1)]
        tree = KdTree(objects, world_bounds(-5, 5, -5, 5, -5, 5))
        self.assertEqual(tree.stats(), (1, 1, 0))
        self.assertAlmostEqual(tree.intersect(Ray(vec([0, 0, 0]), vec([0, 0, -1]))).t, 2.6)

    def test_empty(self):
        tree = KdTree([], world_bounds(-1, 1, -1, 1, -1, 1))
        self.assertEqual(tree.intersect(Ray(vec([0, 0, 0]), vec([0, 0, -1]))).t, np.inf)
        self.assertFalse(tree.any_intersect(Ray(vec([0, 0, 0]), vec([0, 0, -1]))))

    def test_invalid_bounds(self):
        with self.assertRaises(ValueError):
            world_bounds(1, -1, 0, 1, 0, 1)


if __name__ == '__main__':
    unittest.main()
