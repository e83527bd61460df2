import io
import unittest
import numpy as np
from ray import Ray
from geometry import AABB, Sphere, Polygon, Rectangle, Triangle, load_mesh, no_hit
from materials import Material, CheckerTexture
from utils import vec, normalize, reflect, refract, read_obj_triangles

SQUARE = [[-1, 0, 1], [-1, 0, -1], [1, 0, -1], [1, 0, 1]]


class TestPolygonIntersect(unittest.TestCase):

    def test_floor_hits(self):
        floor = Rectangle(SQUARE, None)
        hit = floor.intersect(Ray(vec([0.5, 2.0, 0.5]), vec([0, -1, 0])))
        self.assertAlmostEqual(hit.t, 2.0)
        np.testing.assert_allclose(hit.point, [0.5, 0.0, 0.5])
        self.assertAlmostEqual(abs(hit.normal[1]), 1.0)

    def test_outside_misses(self):
        floor = Rectangle(SQUARE, None)
        self.assertIs(floor.intersect(Ray(vec([1.5, 2.0, 0.5]), vec([0, -1, 0]))), no_hit)
        # plane behind the ray
        self.assertIs(floor.intersect(Ray(vec([0.5, 2.0, 0.5]), vec([0, 1, 0]))), no_hit)

    def test_parallel_ray_is_no_hit(self):
        floor = Rectangle(SQUARE, None)
        self.assertIs(floor.intersect(Ray(vec([0.0, 0.0, 3.0]), vec([0, 0, -1]))), no_hit)

    def test_tilted_pentagon(self):
        # regular pentagon in the plane x + y + z = 1
        n = normalize(vec([1, 1, 1]))
        a = normalize(np.cross(n, vec([0, 0, 1])))
        b = np.cross(n, a)
        center = n / np.sqrt(3)
        corners = [center + np.cos(k * 2 * np.pi / 5) * a + np.sin(k * 2 * np.pi / 5) * b for k in range(5)]
        pent = Polygon(corners, None)
        np.testing.assert_allclose(abs(np.dot(pent.normal, n)), 1.0)
        hit = pent.intersect(Ray(center + 2 * n, -n))
        self.assertAlmostEqual(hit.t, 2.0)
        np.testing.assert_allclose(hit.point, center)
        self.assertIs(pent.intersect(Ray(center + 2 * a + 2 * n, -n)), no_hit)

    def test_given_normal_is_normalized(self):
        floor = Polygon(SQUARE, None, normal=vec([0, 3, 0]))
        np.testing.assert_allclose(floor.normal, [0, 1, 0])

    def test_bad_vertex_counts(self):
        with self.assertRaises(ValueError):
            Polygon([[0, 0, 0], [1, 0, 0]], None)
        with self.assertRaises(ValueError):
            Rectangle([[0, 0, 0], [1, 0, 0], [0, 1, 0]], None)
        with self.assertRaises(ValueError):
            Triangle([[0, 0, 0], [1, 0, 0], [2, 0, 0]], None)


class TestSampling(unittest.TestCase):

    def test_sphere_samples_on_surface(self):
        sphere = Sphere(vec([1, 2, 3]), 0.5, None)
        pts = sphere.sample_points(50, np.random.default_rng(1))
        self.assertEqual(pts.shape, (50, 3))
        np.testing.assert_allclose(np.linalg.norm(pts - sphere.center, axis=1), 0.5)

    def test_polygon_samples_inside(self):
        floor = Rectangle(SQUARE, None)
        pts = floor.sample_points(100, np.random.default_rng(2))
        self.assertEqual(pts.shape, (100, 3))
        np.testing.assert_allclose(pts[:, 1], 0.0)
        self.assertTrue(np.all(np.abs(pts[:, [0, 2]]) <= 1.0))
        np.testing.assert_allclose(floor.centroid(), [0, 0, 0])


class TestAABB(unittest.TestCase):

    def test_clip(self):
        box = AABB(vec([-1, -1, -1]), vec([1, 1, 1]))
        tmin, tmax = box.clip(Ray(vec([-3, 0, 0]), vec([1, 0, 0])))
        self.assertAlmostEqual(tmin, 2.0)
        self.assertAlmostEqual(tmax, 4.0)
        self.assertIsNone(box.clip(Ray(vec([-3, 2, 0]), vec([1, 0, 0]))))
        # segment ends before reaching the box
        self.assertIsNone(box.clip(Ray(vec([-3, 0, 0]), vec([1, 0, 0]), end=1.5)))

    def test_flat_box_clip(self):
        box = Rectangle(SQUARE, None).get_bbox()
        self.assertIsNotNone(box.clip(Ray(vec([0, 1, 0]), vec([0, -1, 0]))))

    def test_overlaps_and_split(self):
        box = AABB(vec([0, 0, 0]), vec([2, 2, 2]))
        lower, upper = box.split(0, 1.0)
        np.testing.assert_allclose(lower.max, [1, 2, 2])
        np.testing.assert_allclose(upper.min, [1, 0, 0])
        # touching the split plane counts for both halves
        touching = AABB(vec([1, 0, 0]), vec([1, 1, 1]))
        self.assertTrue(lower.overlaps(touching))
        self.assertTrue(upper.overlaps(touching))
        self.assertFalse(lower.overlaps(AABB(vec([1.5, 0, 0]), vec([2, 1, 1]))))
        self.assertTrue(box.contains(touching))
        self.assertFalse(lower.contains(box))


class TestMaterial(unittest.TestCase):

    def test_texture_overrides_color(self):
        mat = Material(vec([0.1, 0.2, 0.3]), texture=CheckerTexture(1.0, vec([1, 0, 0]), vec([0, 0, 1])))
        np.testing.assert_allclose(mat.color_at(vec([0.5, 0, 0.5])), [1, 0, 0])
        np.testing.assert_allclose(mat.color_at(vec([1.5, 0, 0.5])), [0, 0, 1])
        np.testing.assert_allclose(mat.color_at(vec([-0.5, 0, 0.5])), [0, 0, 1])
        np.testing.assert_allclose(Material(vec([0.1, 0.2, 0.3])).color_at(vec([0, 0, 0])), [0.1, 0.2, 0.3])

    def test_emission(self):
        self.assertFalse(Material().emissive)
        self.assertTrue(Material(k_e=vec([1, 1, 1])).emissive)


class TestVectors(unittest.TestCase):

    def test_reflect(self):
        np.testing.assert_allclose(reflect(vec([1, -1, 0]), vec([0, 1, 0])), [1, 1, 0])

    def test_refract(self):
        n = vec([0, 1, 0])
        # straight through at normal incidence
        np.testing.assert_allclose(refract(vec([0, -1, 0]), n, 1 / 1.5), [0, -1, 0])
        # bends toward the normal entering a denser medium
        d = normalize(vec([1, -1, 0]))
        t = refract(d, n, 1 / 1.5)
        self.assertAlmostEqual(t[0], np.sin(np.pi / 4) / 1.5)
        # total internal reflection leaving it at a grazing angle
        self.assertIsNone(refract(d, n, 1.5))


class TestMeshLoading(unittest.TestCase):

    OBJ = """# unit quad plus a triangle
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
v 2 2 2
f 1 2 3 4
f 1/1/1 2/2/2 5/3/3
f 1 1 2
"""

    def test_read_obj_triangles(self):
        tris = read_obj_triangles(io.StringIO(self.OBJ))
        self.assertEqual(tris.shape, (4, 3, 3))
        np.testing.assert_allclose(tris[1], [[0, 0, 0], [1, 1, 0], [0, 1, 0]])

    def test_load_mesh_skips_degenerate_faces(self):
        mat = Material(vec([1, 0.2, 0.2]))
        mesh = load_mesh(io.StringIO(self.OBJ), mat)
        self.assertEqual(len(mesh), 3)
        self.assertTrue(all(tri.material is mat for tri in mesh))

    def test_empty_file(self):
        self.assertEqual(read_obj_triangles(io.StringIO('')).shape, (0, 3, 3))


if __name__ == '__main__':
    unittest.main()
