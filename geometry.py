import numpy as np
from utils import vec, normalize, read_obj_triangles

# Slack applied to box faces so that hits lying exactly on a face are not lost to rounding
BOX_EPSILON = 1e-9


class Hit:
    def __init__(self, t, point=None, normal=None, material=None):
        """Create a Hit with the given data.

        Parameters:
          t : float -- the t value of the intersection along the ray
          point : (3,) -- the 3D point where the intersection happens
          normal : (3,) -- the 3D outward-facing unit normal to the surface at the hit point
          material : (Material) -- the material of the surface
        """
        self.t = t
        self.point = point
        self.normal = normal
        self.material = material

# Value to represent absence of an intersection
no_hit = Hit(np.inf)


class AABB:
    def __init__(self, min_point, max_point):
        """Create an Axis-Aligned Bounding Box from its two opposite corners."""
        self.min = vec(min_point)
        self.max = vec(max_point)

    def overlaps(self, other):
        """True if the two boxes share at least one point (touching counts)."""
        return bool(np.all(self.min <= other.max) and np.all(other.min <= self.max))

    def contains(self, other):
        return bool(np.all(self.min <= other.min) and np.all(other.max <= self.max))

    def split(self, axis, position):
        """Cut the box with the plane x[axis] = position, returning (lower, upper)."""
        lower_max = self.max.copy()
        lower_max[axis] = position
        upper_min = self.min.copy()
        upper_min[axis] = position
        return AABB(self.min, lower_max), AABB(upper_min, self.max)

    def clip(self, ray):
        """Clip the ray's [start, end] window to the box using the 'Slab Test'.

        Returns the (tmin, tmax) pair of the part of the ray inside the box,
        or None when the ray misses it.
        """
        tmin = ray.start
        tmax = ray.end

        for i in range(3):
            dir_i = ray.direction[i]
            orig_i = ray.origin[i]
            lo = self.min[i] - BOX_EPSILON
            hi = self.max[i] + BOX_EPSILON

            # If the ray is parallel to the slab, check origin against bounds
            if np.abs(dir_i) < 1e-12:
                if orig_i < lo or orig_i > hi:
                    return None
                continue

            inv = 1.0 / dir_i
            t0 = (lo - orig_i) * inv
            t1 = (hi - orig_i) * inv

            if t0 > t1:
                t0, t1 = t1, t0

            tmin = max(tmin, t0)
            tmax = min(tmax, t1)

            if tmin > tmax:
                return None

        return tmin, tmax


class Sphere:

    def __init__(self, center, radius, material):
        """Create a sphere with the given center and radius.

        Parameters:
          center : (3,) -- a 3D point specifying the sphere's center
          radius : float -- a Python float specifying the sphere's radius
          material : Material -- the material of the surface
        """
        self.center = vec(center)
        self.radius = radius
        self.material = material

    def get_bbox(self):
        """Return the AABB for this sphere."""
        r_vec = vec([self.radius, self.radius, self.radius])
        return AABB(self.center - r_vec, self.center + r_vec)

    def centroid(self):
        return self.center

    def intersect(self, ray):
        """Computes the first (smallest t) intersection between a ray and this sphere.

        Parameters:
          ray : Ray -- the ray to intersect with the sphere
        Return:
          Hit -- the hit data
        """
        sphere_vec = ray.origin - self.center
        a = np.dot(ray.direction, ray.direction)
        b = 2 * np.dot(ray.direction, sphere_vec)
        c = np.dot(sphere_vec, sphere_vec) - self.radius * self.radius
        discriminant = b * b - 4 * a * c
        if discriminant < 0:
            return no_hit
        disc_sqrt = np.sqrt(discriminant)
        minus = (-b - disc_sqrt) / (2 * a)
        plus = (-b + disc_sqrt) / (2 * a)
        if ray.start < minus < ray.end:
            hit = minus
        elif ray.start < plus < ray.end:
            hit = plus
        else:
            return no_hit
        point = ray.origin + hit * ray.direction
        normal = (point - self.center) / self.radius
        return Hit(hit, point, normal, self.material)

    def sample_points(self, n, rng):
        """Draw n points uniformly distributed over the sphere's surface."""
        z = 1.0 - 2.0 * rng.random(n)
        r = np.sqrt(np.maximum(0.0, 1.0 - z * z))
        phi = 2.0 * np.pi * rng.random(n)
        dirs = np.stack([r * np.cos(phi), r * np.sin(phi), z], axis=1)
        return self.center + self.radius * dirs


class Polygon:

    def __init__(self, vertices, material, normal=None):
        """Create a planar polygon from three or more coplanar vertices.

        Parameters:
          vertices (n,3) -- the corners of the polygon, in order around its boundary
          material : Material -- the material of the surface
          normal (3,) -- the plane normal; computed from the vertices when omitted
        """
        self.vs = np.array(vertices, dtype=np.float64)
        if len(self.vs) < 3:
            raise ValueError('A polygon needs at least 3 vertices, got %d' % len(self.vs))
        self.material = material
        if normal is None:
            # Newell's method, robust to collinear leading vertices
            normal = np.sum(np.cross(self.vs, np.roll(self.vs, -1, axis=0)), axis=0)
        if np.linalg.norm(normal) < 1e-15:
            raise ValueError('Degenerate polygon: vertices do not span a plane')
        self.normal = normalize(vec(normal))
        self.offset = -np.dot(self.normal, self.vs[0])

        # drop the dominant normal axis for the 2D containment test
        drop = int(np.argmax(np.abs(self.normal)))
        self._axes = [a for a in range(3) if a != drop]

        # fan triangulation used for area sampling
        a = self.vs[0]
        self._fan = [(a, self.vs[k], self.vs[k + 1]) for k in range(1, len(self.vs) - 1)]
        areas = np.array([0.5 * np.linalg.norm(np.cross(b - a, c - a)) for a, b, c in self._fan])
        self._fan_weights = areas / areas.sum()

    def get_bbox(self):
        return AABB(self.vs.min(axis=0), self.vs.max(axis=0))

    def centroid(self):
        return self.vs.mean(axis=0)

    def contains(self, point):
        """Even-odd crossing test for a point lying in the polygon's plane."""
        a, b = self._axes
        pa, pb = point[a], point[b]
        inside = False
        j = len(self.vs) - 1
        for i in range(len(self.vs)):
            vi, vj = self.vs[i], self.vs[j]
            if (vi[b] > pb) != (vj[b] > pb) and \
                    pa < (vj[a] - vi[a]) * (pb - vi[b]) / (vj[b] - vi[b]) + vi[a]:
                inside = not inside
            j = i
        return inside

    def intersect(self, ray):
        denom = np.dot(self.normal, ray.direction)
        if abs(denom) < 1e-12:
            return no_hit
        t = -(np.dot(self.normal, ray.origin) + self.offset) / denom
        if not (ray.start < t < ray.end):
            return no_hit
        point = ray.origin + t * ray.direction
        if not self.contains(point):
            return no_hit
        return Hit(t, point, self.normal, self.material)

    def sample_points(self, n, rng):
        """Draw n points uniformly over the (convex) polygon's area."""
        idx = rng.choice(len(self._fan), size=n, p=self._fan_weights)
        a = np.array([self._fan[k][0] for k in idx])
        b = np.array([self._fan[k][1] for k in idx])
        c = np.array([self._fan[k][2] for k in idx])
        r1 = np.sqrt(rng.random(n))[:, None]
        r2 = rng.random(n)[:, None]
        return (1 - r1) * a + r1 * (1 - r2) * b + r1 * r2 * c


class Rectangle(Polygon):

    def __init__(self, vertices, material, normal=None):
        if len(vertices) != 4:
            raise ValueError('A rectangle needs exactly 4 vertices, got %d' % len(vertices))
        super().__init__(vertices, material, normal)


class Triangle(Polygon):

    def __init__(self, vs, material):
        """Create a triangle from the given vertices.

        Parameters:
          vs (3,3) -- an arry of 3 3D points that are the vertices (CCW order)
          material : Material -- the material of the surface
        """
        if len(vs) != 3:
            raise ValueError('A triangle needs exactly 3 vertices, got %d' % len(vs))
        super().__init__(vs, material)
        self.edge_1 = self.vs[1] - self.vs[0]
        self.edge_2 = self.vs[2] - self.vs[0]

    def intersect(self, ray):
        """Computes the intersection between a ray and this triangle, if it exists.

        Parameters:
          ray : Ray -- the ray to intersect with the triangle
        Return:
          Hit -- the hit data
        """
        temp_vec = np.cross(ray.direction, self.edge_2)
        det = np.dot(self.edge_1, temp_vec)

        if -1e-12 < det < 1e-12:
            return no_hit

        inverse_det = 1.0 / det
        s = ray.origin - self.vs[0]
        u = np.dot(s, temp_vec) * inverse_det

        if u < 0 or u > 1:
            return no_hit

        temp_vec2 = np.cross(s, self.edge_1)
        v = np.dot(ray.direction, temp_vec2) * inverse_det

        if v < 0 or u + v > 1:
            return no_hit

        t = np.dot(self.edge_2, temp_vec2) * inverse_det

        if ray.start < t < ray.end:
            point = ray.origin + t * ray.direction
            return Hit(t, point, self.normal, self.material)

        return no_hit


def load_mesh(f, material):
    """Read an OBJ file into a list of Triangles that all share one material."""
    tris = read_obj_triangles(f)
    # zero-area faces are common in scanned meshes and have no surface to hit
    area = np.linalg.norm(np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0]), axis=1)
    return [Triangle(vs, material) for vs in tris[area > 1e-15]]
