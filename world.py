import logging
import time
import numpy as np
from ray import Ray
from illumination import IlluminationModel, PHONG
from kdtree import KdTree, world_bounds, closest_hit, any_hit, MAX_DEPTH, MAX_OBJECTS
from media import ParticipatingMedia
from utils import vec, normalize, reflect, refract, distance

"""
Scene container and the two light transport algorithms: recursive ray
tracing (spawn) and ray marching through participating media (spawn_ray_march).
"""

logger = logging.getLogger(__name__)

EPSILON = 1e-4 # for offsetting rays


class World:

    def __init__(self, background_color=vec([0., 0., 0.])):
        """Create an empty world.

        Objects, lights, the illumination model, participating media and the
        spatial index are set up first; freeze() ends that phase and the world
        is read-only while rendering.
        """
        self.background_color = vec(background_color)
        self.objects = []
        self.lights = []
        self.illumination = IlluminationModel()
        self.media = None
        self.index = None
        self._index_params = None
        self.frozen = False

    def _check_building(self):
        if self.frozen:
            raise RuntimeError('World is frozen; it cannot be changed once rendering has started')

    def add_object(self, obj):
        self._check_building()
        self.objects.append(obj)

    def add_light(self, light):
        self._check_building()
        self.lights.append(light)

    def set_illumination_model(self, ambient_color, variant=PHONG):
        self._check_building()
        self.illumination = IlluminationModel(ambient_color, variant)

    def add_participant_media(self, absorption, scattering, density=1.0):
        self._check_building()
        self.media = ParticipatingMedia(absorption, scattering, density)

    def create_spatial_index(self, xmin, xmax, ymin, ymax, zmin, zmax,
                             max_depth=MAX_DEPTH, max_objects=MAX_OBJECTS):
        """Request a kd-tree over the given world box; it is built by freeze()."""
        self._check_building()
        self._index_params = (world_bounds(xmin, xmax, ymin, ymax, zmin, zmax), max_depth, max_objects)

    def freeze(self):
        """End the build phase, building the spatial index if one was requested."""
        if self.frozen:
            return self
        if self._index_params is not None:
            bounds, max_depth, max_objects = self._index_params
            start = time.time()
            self.index = KdTree(self.objects, bounds, max_depth, max_objects)
            nodes, leaves, depth = self.index.stats()
            logger.info('Built kd-tree over %d objects: %d nodes, %d leaves, depth %d (%.2fs)',
                        len(self.objects), nodes, leaves, depth, time.time() - start)
        else:
            logger.info('No spatial index requested, using linear traversal of %d objects', len(self.objects))
        self.frozen = True
        return self

    def intersect(self, ray):
        """Computes the first (smallest t) intersection between a ray and the world."""
        if self.index is not None:
            return self.index.intersect(ray)
        return closest_hit(self.objects, ray)

    def is_occluded(self, ray):
        """Return True if any surface blocks the ray (fast boolean)."""
        if self.index is not None:
            return self.index.any_intersect(ray)
        return any_hit(self.objects, ray)

    def light_samples(self, point):
        """Visible light samples at a point as (light_vec, light_color, weight) triples.

        Each light's samples share its weight equally, so area lights average
        over their surface and partially hidden ones give soft shadows.
        """
        samples = []
        for light in self.lights:
            if not light.reaches(point):
                continue
            weight = light.attenuation(point) / light.sample_count()
            if weight <= 0.0:
                continue
            for position in light.positions():
                to_light = position - point
                dist = np.linalg.norm(to_light)
                if dist < 2 * EPSILON:
                    continue
                light_vec = to_light / dist
                shadow_ray = Ray(point, light_vec, start=EPSILON, end=dist - EPSILON)
                if self.is_occluded(shadow_ray):
                    continue
                samples.append((light_vec, light.color, weight))
        return samples

    def shade(self, ray, hit):
        """Emitted plus locally reflected color at a hit, without any bounces."""
        view_vec = -normalize(ray.direction)
        normal = hit.normal if np.dot(hit.normal, view_vec) >= 0 else -hit.normal
        samples = self.light_samples(hit.point)
        return hit.material.k_e + self.illumination.shade(hit.point, normal, view_vec, hit.material, samples)

    def spawn(self, ray, depth):
        """Color arriving along a ray, following at most depth reflection/refraction bounces."""
        if depth < 0:
            raise ValueError('Recursion depth must be non-negative, got %r' % (depth,))
        self.freeze()
        return self._trace(ray, depth)

    def _trace(self, ray, depth):
        hit = self.intersect(ray)
        if hit.t == np.inf:
            return self.background_color.copy()

        color = self.shade(ray, hit)
        if depth == 0:
            return color

        mat = hit.material
        d = normalize(ray.direction)
        entering = np.dot(d, hit.normal) < 0
        nl = hit.normal if entering else -hit.normal

        if mat.k_r > 0:
            refl = normalize(reflect(d, nl))
            color = color + mat.k_r * self._trace(Ray(hit.point, refl, start=EPSILON), depth - 1)

        if mat.k_t > 0:
            eta = 1.0 / mat.ior if entering else mat.ior
            refr = refract(d, nl, eta)
            # None means total internal reflection: no transmitted light
            if refr is not None:
                color = color + mat.k_t * self._trace(Ray(hit.point, refr, start=EPSILON), depth - 1)

        return color

    def march_length(self, ray, hit):
        """How far to march: to the surface hit, else to the farthest light volume exit, else to the lights."""
        if hit.t < np.inf:
            return hit.t
        exits = [distance(ray.origin, p) for light in self.lights for p in light.intersect(ray)]
        if exits:
            return max(exits)
        if self.lights:
            return max(light.min_distance(ray.origin) for light in self.lights)
        return 0.0

    def spawn_ray_march(self, ray, samples):
        """Color arriving along a ray through the world's participating media.

        Integrates single in-scattering with `samples` midpoint steps up to the
        first surface, then adds that surface's direct shading attenuated by the
        medium's transmittance.
        """
        if samples < 1:
            raise ValueError('Ray marching needs at least 1 sample, got %r' % (samples,))
        self.freeze()

        ray = Ray(ray.origin, normalize(ray.direction), ray.start, ray.end)
        hit = self.intersect(ray)
        surface = self.shade(ray, hit) if hit.t < np.inf else self.background_color.copy()
        if self.media is None:
            return surface

        length = self.march_length(ray, hit)
        if length <= 0.0:
            return surface

        step = length / samples
        transmittance = 1.0
        scattered = np.zeros(3)
        for k in range(samples):
            point = ray.origin + (k + 0.5) * step * ray.direction
            sigma_s = self.media.in_scattering(point)
            if sigma_s > 0.0:
                for _, light_color, weight in self.light_samples(point):
                    scattered = scattered + transmittance * sigma_s * step * weight * light_color
            transmittance *= np.exp(-self.media.extinction(point) * step)

        return scattered + transmittance * surface
