import unittest
import numpy as np
from ray import Ray
from geometry import Hit
from lights import PointLight
from materials import Material
from illumination import IlluminationModel, PHONG, PHONG_BLINN
from world import World
from utils import vec, normalize

DIFFUSE_ONLY = dict(k_a=0., k_d=1., k_s=0.)


class TestShading(unittest.TestCase):

    def shading_test(self, p, n, v, l, r, I, material, world):
        # p is surface point, n is normal, v is view vector, l is light vector (not normalized)
        # r is distance to light, I is intensity
        t = 1.3        # arbitrary value
        d = -2.3 * v   # arbitrary scale
        ray = Ray(p - t*d, d)  # ray consistent with hit
        hit = Hit(t, p, n, material)
        world.add_light(PointLight(p + r * normalize(l), I))
        return world.shade(ray, hit)

    def test_diffuse(self):
        # light directly overhead, unit distance and intensity
        np.testing.assert_allclose(
            self.shading_test(
                vec([0,0,0]), vec([0,1,0]), vec([1, 1, 0]),  # p, n, v
                vec([0,1,0]), 1, vec([1,1,1]),  # l, r, I
                Material(vec([0.2,0.4,0.6]), **DIFFUSE_ONLY), World()
            ),
            vec([0.2,0.4,0.6])
        )
        # light at 60 degrees, unit distance and intensity
        np.testing.assert_allclose(
            self.shading_test(
                vec([0,0,0]), vec([0,1,0]), vec([1, 1, 0]),  # p, n, v
                vec([0,1,np.sqrt(3)]), 1, vec([1,1,1]),  # l, r, I
                Material(vec([0.2,0.4,0.6]), **DIFFUSE_ONLY), World()
            ),
            0.5 * vec([0.2,0.4,0.6])
        )

    def test_light_behind_surface(self):
        world = World()
        world.set_illumination_model(vec([1, 1, 1]))
        mat = Material(vec([0.2,0.4,0.6]), k_a=0.5, k_d=1., k_s=1.)
        color = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0, 1, 0]),
            vec([0,-1,0]), 1, vec([1,1,1]),
            mat, world
        )
        np.testing.assert_allclose(color, 0.5 * vec([0.2,0.4,0.6]))

    def test_emission_added(self):
        mat = Material(vec([0.2,0.4,0.6]), k_e=vec([0.5, 0, 0]), **DIFFUSE_ONLY)
        color = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0, 1, 0]),
            vec([0,1,0]), 1, vec([1,1,1]),
            mat, World()
        )
        np.testing.assert_allclose(color, vec([0.7, 0.4, 0.6]))

    def test_normal_flipped_towards_viewer(self):
        # same as the overhead case, but the stored normal points away from the eye
        np.testing.assert_allclose(
            self.shading_test(
                vec([0,0,0]), vec([0,-1,0]), vec([0, 1, 0]),
                vec([0,1,0]), 1, vec([1,1,1]),
                Material(vec([0.2,0.4,0.6]), **DIFFUSE_ONLY), World()
            ),
            vec([0.2,0.4,0.6])
        )


class TestIlluminationModel(unittest.TestCase):

    def setUp(self):
        self.n = vec([0, 1, 0])
        self.v = vec([0, 1, 0])
        self.l = normalize(vec([-1, 1, 0]))
        self.mat = Material(vec([0, 0, 0]), k_a=0., k_d=0., k_s=1., p=1.)

    def specular(self, variant, view_vec):
        model = IlluminationModel(variant=variant)
        return model.shade(vec([0, 0, 0]), self.n, view_vec, self.mat, [(self.l, vec([1, 1, 1]), 1.0)])

    def test_phong(self):
        np.testing.assert_allclose(self.specular(PHONG, self.v), np.cos(np.pi / 4))

    def test_phong_blinn(self):
        np.testing.assert_allclose(self.specular(PHONG_BLINN, self.v), np.cos(np.pi / 8))

    def test_mirror_direction_is_peak(self):
        mirror = normalize(vec([1, 1, 0]))
        np.testing.assert_allclose(self.specular(PHONG, mirror), 1.0)
        np.testing.assert_allclose(self.specular(PHONG_BLINN, mirror), 1.0)

    def test_ambient(self):
        model = IlluminationModel(vec([1, 0.5, 0]))
        mat = Material(vec([0.2, 0.4, 0.6]), k_a=0.5)
        color = model.shade(vec([0, 0, 0]), self.n, self.v, mat, [])
        np.testing.assert_allclose(color, [0.1, 0.1, 0.0])

    def test_weight_scales_contribution(self):
        model = IlluminationModel()
        mat = Material(vec([1, 1, 1]), k_a=0., k_d=1., k_s=0.)
        full = model.shade(vec([0, 0, 0]), self.n, self.v, mat, [(self.n, vec([1, 1, 1]), 1.0)])
        half = model.shade(vec([0, 0, 0]), self.n, self.v, mat, [(self.n, vec([1, 1, 1]), 0.25)] * 2)
        np.testing.assert_allclose(half, 0.5 * full)

    def test_specular_color(self):
        model = IlluminationModel()
        mat = Material(vec([0, 0, 0]), k_a=0., k_d=0., k_s=1., p=10., specular_color=vec([1, 0, 0]))
        color = model.shade(vec([0, 0, 0]), self.n, self.v, mat, [(self.n, vec([1, 1, 1]), 1.0)])
        np.testing.assert_allclose(color, [1, 0, 0])

    def test_unknown_variant(self):
        with self.assertRaises(ValueError):
            IlluminationModel(variant='cook_torrance')


if __name__ == '__main__':
    unittest.main()
