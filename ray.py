import logging
import time
from multiprocessing import Pool, cpu_count
import numpy as np
from utils import vec, normalize

"""
Rays and the camera that turns pixels into rays and rays into colors.
"""

logger = logging.getLogger(__name__)

# where rays go inside a pixel
RAY_CENTER = 0
RAY_GRID = 1

# which transport the camera asks the world for
RAY_TRACER = 2
RAY_MARCHING = 3


class Ray:

    def __init__(self, origin, direction, start=0., end=np.inf):
        """Create a ray with the given origin and direction.

        Parameters:
          origin : (3,) -- the start point of the ray, a 3D point
          direction : (3,) -- the direction of the ray, a 3D vector
          start, end : float -- the minimum and maximum t values for intersections
        """
        self.origin = np.array(origin, np.float64)
        self.direction = np.array(direction, np.float64)
        self.start = start
        self.end = end


# World handed to each pool worker once, by the pool initializer
_worker_state = {}


def _init_worker(camera, world):
    _worker_state['camera'] = camera
    _worker_state['world'] = world


def _render_column_worker(i):
    return _worker_state['camera'].render_column(_worker_state['world'], i)


class Camera:

    def __init__(self, position=vec([0, 0, 0]), look_at=vec([0, 0, -1]), up=vec([0, 1, 0]),
                 image_height=512, image_width=512, view_height=0.5, view_width=0.5,
                 ray_type=RAY_TRACER, depth_or_samples=1, grid_or_center=RAY_CENTER,
                 focal_length=0.5):
        """Create a camera with given viewing parameters.

        Parameters:
          position : (3,) -- the eye point
          look_at : (3,) -- the point the camera looks at
          up : (3,) -- the up direction
          image_height, image_width : int -- output resolution in pixels
          view_height, view_width : float -- size of the view plane in world units
          ray_type : RAY_TRACER or RAY_MARCHING
          depth_or_samples : int -- max recursion depth (ray tracing) or steps per ray (ray marching)
          grid_or_center : RAY_CENTER (one ray per pixel) or RAY_GRID (3x3 rays per pixel)
          focal_length : float -- distance from the eye to the view plane
        """
        if ray_type not in (RAY_TRACER, RAY_MARCHING):
            raise ValueError("%r is an invalid value for 'ray_type', use RAY_TRACER or RAY_MARCHING" % (ray_type,))
        if grid_or_center not in (RAY_CENTER, RAY_GRID):
            raise ValueError("%r is an invalid value for 'grid_or_center', use RAY_CENTER or RAY_GRID"
                             % (grid_or_center,))
        if depth_or_samples < 0 or (ray_type == RAY_MARCHING and depth_or_samples < 1):
            raise ValueError('%r is an invalid depth or sample count' % (depth_or_samples,))

        self.position = vec(position)
        self.image_height = image_height
        self.image_width = image_width
        self.view_height = view_height
        self.view_width = view_width
        self.ray_type = ray_type
        self.depth_or_samples = depth_or_samples
        self.grid_or_center = grid_or_center
        self.focal_length = focal_length

        view = self.position - vec(look_at)
        if np.linalg.norm(view) < 1e-12:
            raise ValueError('Camera position and look_at must differ')
        self.w = normalize(view)
        side = np.cross(vec(up), self.w)
        if np.linalg.norm(side) < 1e-12:
            raise ValueError('Camera up vector %s is parallel to the viewing direction' % (vec(up),))
        self.u = normalize(side)
        self.v = np.cross(self.w, self.u)

        # each pixel
        self.units_high = view_height / image_height
        self.units_wide = view_width / image_width

    def sub_pixel_offsets(self):
        """Fractions of a pixel where the rays go: the center, or a 3x3 grid at quarters."""
        if self.grid_or_center == RAY_CENTER:
            return [0.5]
        return [0.25, 0.5, 0.75]

    def generate_ray(self, i, j, fx=0.5, fy=0.5):
        """Ray through the point (fx, fy) of pixel (i, j), counted from the top left."""
        x = -self.view_width / 2.0 + self.units_wide * (i + fx)
        y = self.view_height / 2.0 - self.units_high * (j + fy)
        direction = x * self.u + y * self.v - self.focal_length * self.w
        return Ray(self.position, normalize(direction))

    def spawn(self, world, ray):
        if self.ray_type == RAY_TRACER:
            return world.spawn(ray, self.depth_or_samples)
        return world.spawn_ray_march(ray, self.depth_or_samples)

    def pixel_color(self, world, i, j):
        """Average color of the rays through pixel (i, j)."""
        offsets = self.sub_pixel_offsets()
        total = np.zeros(3)
        for fx in offsets:
            for fy in offsets:
                total += self.spawn(world, self.generate_ray(i, j, fx, fy))
        return total / (len(offsets) * len(offsets))

    def render_column(self, world, i):
        column = np.zeros((self.image_height, 3))
        for j in range(self.image_height):
            column[j] = self.pixel_color(world, i, j)
        return column

    def render(self, world, workers=None):
        """Render the world into a flat, column-major buffer of colors.

        Returns a (width * height, 3) array; pixel (i, j) is at index
        i * height + j. With workers > 1 columns are rendered by a process pool.
        """
        world.freeze()
        start = time.time()
        if workers is None:
            workers = 1
        elif workers <= 0:
            workers = cpu_count()

        logger.info('Rendering %dx%d (%s, %s) with %d worker(s)...', self.image_width, self.image_height,
                    'ray tracing' if self.ray_type == RAY_TRACER else 'ray marching',
                    'center' if self.grid_or_center == RAY_CENTER else '3x3 grid', workers)

        if workers == 1:
            columns = [self.render_column(world, i) for i in range(self.image_width)]
        else:
            with Pool(processes=workers, initializer=_init_worker, initargs=(self, world)) as pool:
                columns = pool.map(_render_column_worker, range(self.image_width))

        logger.info('Rendering completed in %.2f seconds', time.time() - start)
        return np.concatenate(columns, axis=0)


def to_image(colors, width, height):
    """Rearrange a column-major color buffer into a (height, width, 3) image array."""
    return np.asarray(colors).reshape(width, height, 3).transpose(1, 0, 2)
