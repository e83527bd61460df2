import numpy as np
from utils import vec, normalize, distance


class LightSource:
    """Common contract for the light kinds a World can hold.

    positions() -- sample points on the light, (n, 3)
    color -- emitted color, shared by every sample
    reaches(point) -- whether the light can geometrically reach a point
    attenuation(point) -- multiplicative falloff at a point
    sample_count() -- how many samples shading should take
    min_distance(origin) -- nearest distance from origin to any sample point
    intersect(ray) -- points where the ray crosses the light's volume (ray marching)
    """

    def positions(self):
        raise NotImplementedError

    def reaches(self, point):
        return True

    def attenuation(self, point):
        return 1.0

    def sample_count(self):
        return 1

    def min_distance(self, origin):
        raise NotImplementedError

    def intersect(self, ray):
        return []


class PointLight(LightSource):

    def __init__(self, position, color):
        """Create a point light at given position and with given color"""
        self.position = vec(position)
        self.color = vec(color)

    def positions(self):
        return self.position[None, :]

    def min_distance(self, origin):
        return distance(origin, self.position)


class SpotLight(LightSource):

    def __init__(self, position, color, direction, angle, falloff=0.):
        """Create a cone-shaped light.

        Parameters:
          position : (3,) -- apex of the cone
          color : (3,) -- emitted color
          direction : (3,) -- cone axis (normalized here)
          angle : float -- half-angle of the cone, in degrees
          falloff : float -- exponent of the angular attenuation cos^falloff
        """
        self.position = vec(position)
        self.color = vec(color)
        self.direction = normalize(vec(direction))
        self.angle = angle
        self.falloff = falloff
        self.cos_angle = np.cos(np.radians(angle))

    def positions(self):
        return self.position[None, :]

    def min_distance(self, origin):
        return distance(origin, self.position)

    def _cos_to(self, point):
        offset = point - self.position
        length = np.linalg.norm(offset)
        if length == 0.0:
            return 1.0
        return float(np.dot(offset / length, self.direction))

    def reaches(self, point):
        # inclusive boundary, with slack for the rounding in cos(radians(angle))
        return self._cos_to(point) >= self.cos_angle - 1e-12

    def attenuation(self, point):
        return max(0.0, self._cos_to(point)) ** self.falloff

    def intersect(self, ray):
        """Points where the ray crosses the cone's surface, nearest first.

        Solves (u.M.u) t^2 + 2 (u.M.delta) t + delta.M.delta = 0 with
        M = d d^T - cos^2(angle) I; only roots in front of the ray origin on
        the cone's forward half are kept.
        """
        u = normalize(ray.direction)
        delta = ray.origin - self.position
        m = np.outer(self.direction, self.direction) - self.cos_angle ** 2 * np.eye(3)
        c2 = u @ m @ u
        c1 = u @ m @ delta
        c0 = delta @ m @ delta

        if abs(c2) < 1e-12:
            return []

        disc = c1 * c1 - c0 * c2
        if disc < 0.0:
            return []
        if disc == 0.0:
            roots = [-c1 / c2]
        else:
            root = np.sqrt(disc)
            roots = [(-c1 + root) / c2, (-c1 - root) / c2]

        points = []
        for t in sorted(roots):
            if t <= 0.0:
                continue
            p = ray.origin + t * u
            if np.dot(self.direction, p - self.position) >= 0.0:
                points.append(p)
        return points


class AreaLight(LightSource):

    def __init__(self, obj, num_samples, seed=0):
        """Create a light that samples the surface of an emissive object.

        Parameters:
          obj : Sphere or Polygon -- backing object, its material's k_e is the light color
          num_samples : int -- points sampled on the surface per shading query
          seed : int -- sampling seed; every call draws the same points
        """
        if num_samples < 1:
            raise ValueError('An area light needs at least 1 sample, got %d' % num_samples)
        self.obj = obj
        self.num_samples = num_samples
        self.seed = seed

    @property
    def color(self):
        return self.obj.material.k_e

    def positions(self):
        rng = np.random.default_rng(self.seed)
        return self.obj.sample_points(self.num_samples, rng)

    def sample_count(self):
        return self.num_samples

    def min_distance(self, origin):
        return float(np.min(np.linalg.norm(self.positions() - origin, axis=1)))
