import numpy as np
from utils import vec


class Material:

    def __init__(self, color=vec([1., 1., 1.]), k_a=0.1, k_d=0.7, k_s=0.2, p=20.,
                 specular_color=vec([1., 1., 1.]), k_r=0., k_t=0., ior=1.0, k_e=None,
                 texture=None):
        """
        Create a new material with the given parameters.

        Parameters:
          color : (3,) -- base (flat) color of the surface
          k_a : float -- Ambient coefficient
          k_d : float -- Diffuse coefficient
          k_s : float -- Specular coefficient
          p : float -- Specular exponent (shininess)
          specular_color : (3,) -- color of the specular highlight
          k_r : float -- Mirror reflection coefficient
          k_t : float -- Transmission (refraction) coefficient
          ior : float -- Index of Refraction (1.0 for air, 1.5 for glass)
          k_e : (3,) -- Emissive color, None for surfaces that do not glow
          texture : callable -- procedural texture, point -> color; overrides color
        """
        self.color = vec(color)
        self.k_a = k_a
        self.k_d = k_d
        self.k_s = k_s
        self.p = p
        self.specular_color = vec(specular_color)
        self.k_r = k_r
        self.k_t = k_t
        self.ior = ior
        self.k_e = vec(k_e) if k_e is not None else np.zeros(3)
        self.texture = texture

    def color_at(self, point):
        """Base color at a surface point, taken from the texture when there is one."""
        if self.texture is None:
            return self.color
        return vec(self.texture(point))

    @property
    def emissive(self):
        return bool(np.any(self.k_e > 0))


class CheckerTexture:
    """Planar checkerboard, alternating two colors every `size` units.

    Only the two coordinates named by `axes` are used, so the default
    (x, z) pattern suits horizontal floors.
    """

    def __init__(self, size=0.25, color_a=vec([1., 0., 0.]), color_b=vec([1., 1., 0.]), axes=(0, 2)):
        self.size = size
        self.color_a = vec(color_a)
        self.color_b = vec(color_b)
        self.axes = axes

    def __call__(self, point):
        cells = [int(np.floor(point[a] / self.size)) for a in self.axes]
        if sum(cells) % 2 == 0:
            return self.color_a
        return self.color_b
