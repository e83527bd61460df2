import unittest
import numpy as np
from ray import Ray, Camera, RAY_CENTER, RAY_GRID, RAY_TRACER, RAY_MARCHING, to_image
from geometry import Sphere, Triangle
from utils import normalize, vec

def assert_direction_matches(v, w):
    np.testing.assert_almost_equal(normalize(v), normalize(w))


class TestSphereIntersect(unittest.TestCase):

    def confirm_hit(self, sphere, ray):
        # make sure hit is self-consistent, then return it
        hit = sphere.intersect(ray)
        self.assertLess(hit.t, np.inf)
        np.testing.assert_almost_equal(ray.origin + hit.t * ray.direction, hit.point)
        np.testing.assert_almost_equal(normalize(hit.point - sphere.center), hit.normal)
        self.assertAlmostEqual(np.linalg.norm(hit.point - sphere.center), sphere.radius)
        self.assertIs(hit.material, sphere.material)
        return hit

    def test_unitsphere_hits(self):
        unit_sphere = Sphere(np.array([0,0,0]), 1.0, None)
        # dead center hit
        hit = self.confirm_hit(unit_sphere, Ray(vec([2.0,0.0,0.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        # dead center with non-unit direction
        hit = self.confirm_hit(unit_sphere, Ray(vec([3.0,0.0,0.0]), vec([-2.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        # off center hit
        hit = self.confirm_hit(unit_sphere, Ray(vec([1.0,0.5,0.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1 - np.sin(np.pi/3))
        # center hit from off axis
        hit = self.confirm_hit(unit_sphere, Ray(vec([2.0,3.0,4.0]), vec([-2.0,-3.0,-4.0])))
        self.assertAlmostEqual(hit.t, 1 - 1 / np.sqrt(29))

    def test_unitsphere_misses(self):
        unit_sphere = Sphere(vec([0,0,0]), 1.0, None)
        # on axis miss
        hit = unit_sphere.intersect(Ray(vec([2.0,3.0,0.0]), vec([-1.0,0.0,0.0])))
        self.assertEqual(hit.t, np.inf)
        # sphere behind the ray
        hit = unit_sphere.intersect(Ray(vec([2.0,0.0,0.0]), vec([1.0,0.0,0.0])))
        self.assertEqual(hit.t, np.inf)

    def test_inside_hits_far_side(self):
        unit_sphere = Sphere(vec([0,0,0]), 1.0, None)
        hit = self.confirm_hit(unit_sphere, Ray(vec([0.0,0.0,0.0]), vec([0.0,0.0,-1.0])))
        self.assertAlmostEqual(hit.t, 1.0)

    def test_distance_to_surface(self):
        # aimed at the center from outside: distance to center minus radius
        sphere = Sphere(vec([0,0,0]), 0.4, None)
        origin = vec([1.0, 2.0, -2.5])
        hit = self.confirm_hit(sphere, Ray(origin, normalize(-origin)))
        self.assertAlmostEqual(hit.t, np.linalg.norm(origin) - 0.4)

    def test_nonunit_hits(self):
        # all the same as the first case, but scaled by 3 and shifted by (-1, -5, -7)
        sphere = Sphere(vec([-1,-5,-7]), 3.0, None)
        hit = self.confirm_hit(sphere, Ray(vec([5.0,-5.0,-7.0]), vec([-3.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        hit = self.confirm_hit(sphere, Ray(vec([8.0,-5.0,-7.0]), vec([-6.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        hit = self.confirm_hit(sphere, Ray(vec([2.0,-3.5,-7.0]), vec([-3.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1 - np.sin(np.pi/3))

    def test_ray_window(self):
        unit_sphere = Sphere(vec([0,0,0]), 1.0, None)
        # near hit at t=1 is before start, so the far side is reported
        hit = unit_sphere.intersect(Ray(vec([2.0,0.0,0.0]), vec([-1.0,0.0,0.0]), start=1.5))
        self.assertAlmostEqual(hit.t, 3.0)
        hit = unit_sphere.intersect(Ray(vec([2.0,0.0,0.0]), vec([-1.0,0.0,0.0]), end=0.5))
        self.assertEqual(hit.t, np.inf)


class TestTriangleIntersect(unittest.TestCase):

    def test_simple(self):
        # A triangle on the xy plane and perpendicular rays
        tri = Triangle(np.array([[0,0,0], [1,0,0], [0,1,0]]), None)
        hit = tri.intersect(Ray(vec([0.3, 0.3, 1]), vec([0, 0, -1])))
        self.assertAlmostEqual(hit.t, 1.)
        np.testing.assert_allclose(hit.point, [0.3, 0.3, 0])
        np.testing.assert_allclose(hit.normal, [0, 0, 1])
        hit = tri.intersect(Ray(vec([-0.3, 0.3, 1]), vec([0, 0, -1])))
        self.assertEqual(hit.t, np.inf)

    def test_transformed(self):
        # The same triangle under a linear xf of positive determinant
        M = np.array([[3,1,4],[1,5,9],[2,6,5]])
        M = np.sign(np.linalg.det(M)) * M  # ensure no reflection
        u = np.array([2,7,1])
        tri = Triangle(np.array([u + M @ [0,0,0], u + M @ [1,0,0], u + M @ [0,1,0]]), None)
        hit = tri.intersect(Ray(u + M @ [0.3, 0.3, 1], M @ [0, 0, -1]))
        self.assertAlmostEqual(hit.t, 1.)
        np.testing.assert_allclose(hit.point, u + M @ [0.3, 0.3, 0])
        assert_direction_matches(hit.normal, np.linalg.inv(M.transpose()) @ [0, 0, 1])
        hit = tri.intersect(Ray(u + M @ [-0.3, 0.3, 1], M @ [0, 0, -1]))
        self.assertEqual(hit.t, np.inf)

    def test_parallel_ray_misses(self):
        tri = Triangle(np.array([[0,0,0], [1,0,0], [0,1,0]]), None)
        hit = tri.intersect(Ray(vec([0.3, 0.3, 1]), vec([1, 0, 0])))
        self.assertEqual(hit.t, np.inf)


class RecordingWorld:
    """Stands in for a World: returns a color built from the ray it is given."""

    def __init__(self):
        self.calls = []

    def freeze(self):
        return self

    def spawn(self, ray, depth):
        self.calls.append(('spawn', depth))
        return vec([ray.direction[0], ray.direction[1], 1.0])

    def spawn_ray_march(self, ray, samples):
        self.calls.append(('march', samples))
        return vec([ray.direction[0], ray.direction[1], 2.0])


class TestCamera(unittest.TestCase):

    def test_default_camera(self):
        # A camera located at the origin facing the -z direction
        cam = Camera(image_height=3, image_width=3)
        # Center pixel's ray is straight down the axis
        ray = cam.generate_ray(1, 1)
        np.testing.assert_almost_equal(ray.origin, vec([0,0,0]))
        np.testing.assert_almost_equal(ray.direction, vec([0,0,-1]))

    def test_view_plane_geometry(self):
        # 2x2 pixels on a 0.5x0.5 plane half a unit in front of the eye
        cam = Camera(image_height=2, image_width=2, view_height=0.5, view_width=0.5)
        ray = cam.generate_ray(0, 0)
        np.testing.assert_almost_equal(ray.direction, normalize(vec([-0.125, 0.125, -0.5])))
        ray = cam.generate_ray(1, 1)
        np.testing.assert_almost_equal(ray.direction, normalize(vec([0.125, -0.125, -0.5])))
        # sub-pixel corner at a quarter of the pixel
        ray = cam.generate_ray(0, 0, 0.25, 0.25)
        np.testing.assert_almost_equal(ray.direction, normalize(vec([-0.1875, 0.1875, -0.5])))

    def test_square_frame(self):
        # A camera with a frame where up is equal to v
        cam = Camera(vec([1,2,2]), look_at=vec([1,4,2]), up=vec([0,0,1]), image_height=3, image_width=3)
        # Center ray is straight down the y axis
        ray = cam.generate_ray(1, 1)
        np.testing.assert_almost_equal(ray.origin, vec([1,2,2]))
        assert_direction_matches(ray.direction, vec([0,1,0]))

    def test_invalid_modes(self):
        with self.assertRaises(ValueError):
            Camera(ray_type=7)
        with self.assertRaises(ValueError):
            Camera(grid_or_center=RAY_TRACER)
        with self.assertRaises(ValueError):
            Camera(ray_type=RAY_MARCHING, depth_or_samples=0)
        with self.assertRaises(ValueError):
            Camera(depth_or_samples=-1)

    def test_degenerate_frame(self):
        # up along the viewing direction leaves no sideways axis
        with self.assertRaises(ValueError):
            Camera(vec([0,0,0]), look_at=vec([0,2,0]), up=vec([0,1,0]))
        with self.assertRaises(ValueError):
            Camera(vec([0,0,0]), look_at=vec([0,0,-1]), up=vec([0,0,3]))
        with self.assertRaises(ValueError):
            Camera(vec([1,1,1]), look_at=vec([1,1,1]))

    def test_column_major_order(self):
        cam = Camera(image_height=2, image_width=3, depth_or_samples=4)
        world = RecordingWorld()
        colors = cam.render(world)
        self.assertEqual(colors.shape, (6, 3))
        for i in range(3):
            for j in range(2):
                d = cam.generate_ray(i, j).direction
                np.testing.assert_almost_equal(colors[i * 2 + j], vec([d[0], d[1], 1.0]))
        self.assertEqual(set(world.calls), {('spawn', 4)})

    def test_grid_averages_nine_rays(self):
        cam = Camera(image_height=2, image_width=2, grid_or_center=RAY_GRID,
                     ray_type=RAY_MARCHING, depth_or_samples=5)
        world = RecordingWorld()
        colors = cam.render(world)
        self.assertEqual(len(world.calls), 4 * 9)
        self.assertEqual(set(world.calls), {('march', 5)})
        # the blue channel is constant per ray, so the average must equal it exactly
        np.testing.assert_allclose(colors[:, 2], 2.0)
        # the 3x3 grid is symmetric about the pixel center
        center = cam.generate_ray(0, 0).direction
        self.assertAlmostEqual(colors[0, 0], center[0], places=2)

    def test_to_image(self):
        colors = np.arange(2 * 3 * 3, dtype=np.float64).reshape(6, 3)
        img = to_image(colors, 3, 2)
        self.assertEqual(img.shape, (2, 3, 3))
        # pixel (i=2, j=1) is row 1, column 2
        np.testing.assert_array_equal(img[1, 2], colors[2 * 2 + 1])


if __name__ == '__main__':
    unittest.main()
