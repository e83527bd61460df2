import logging
import numpy as np
from geometry import no_hit, AABB

logger = logging.getLogger(__name__)

MAX_DEPTH = 16     # deepest split level
MAX_OBJECTS = 4    # leaves hold at most this many objects unless MAX_DEPTH is hit

# index reported along with no_hit, after every real object
NO_INDEX = np.inf


def closest_hit(objects, ray):
    """Linear scan: the first (smallest t) hit among objects, or no_hit.

    Among hits at the same t the object listed first wins.
    """
    closest = no_hit
    for obj in objects:
        hit = obj.intersect(ray)
        if hit.t < closest.t:
            closest = hit
    return closest


def any_hit(objects, ray):
    """True if any object intersects the ray within [start, end]."""
    for obj in objects:
        if obj.intersect(ray).t < np.inf:
            return True
    return False


def closest_entry(entries, ray):
    """Nearest hit among (index, object) pairs, returned with its object's index.

    Hits are ordered by (t, index), so ties go to the object that comes first
    in the world's list, exactly as in closest_hit.
    """
    closest, closest_index = no_hit, NO_INDEX
    for index, obj in entries:
        hit = obj.intersect(ray)
        if (hit.t, index) < (closest.t, closest_index):
            closest, closest_index = hit, index
    return closest, closest_index


class KdNode:
    def __init__(self, bbox, axis=None, split=None, left=None, right=None, entries=None):
        """Create a kd-tree node: either an inner split or a leaf holding (index, object) entries."""
        self.bbox = bbox
        self.axis = axis
        self.split = split
        self.left = left
        self.right = right
        self.entries = entries

    @property
    def is_leaf(self):
        return self.entries is not None

    def plane_t(self, ray):
        """t where the ray crosses the split plane, inf when it runs parallel to it."""
        d = ray.direction[self.axis]
        if d == 0:
            return np.inf
        return (self.split - ray.origin[self.axis]) / d

    def intersect(self, ray):
        """Nearest hit along the ray among the objects under this node, with its index."""
        if self.bbox.clip(ray) is None:
            return no_hit, NO_INDEX

        if self.is_leaf:
            return closest_entry(self.entries, ray)

        # visit the child the ray enters first
        near, far = self.left, self.right
        if ray.direction[self.axis] < 0:
            near, far = far, near

        hit, index = near.intersect(ray)
        # objects only in the far child lie strictly past the split plane
        if hit.t < self.plane_t(ray):
            return hit, index

        other, other_index = far.intersect(ray)
        if (other.t, other_index) < (hit.t, index):
            return other, other_index
        return hit, index

    def any_intersect(self, ray):
        """Return True if any object intersects ray within [start,end]. Fast early exit."""
        if self.bbox.clip(ray) is None:
            return False

        if self.is_leaf:
            return any_hit([obj for _, obj in self.entries], ray)

        return self.left.any_intersect(ray) or self.right.any_intersect(ray)

    def stats(self, depth=0):
        """(node count, leaf count, max depth) of the subtree."""
        if self.is_leaf:
            return 1, 1, depth
        ln, ll, ld = self.left.stats(depth + 1)
        rn, rl, rd = self.right.stats(depth + 1)
        return 1 + ln + rn, ll + rl, max(ld, rd)


def choose_split(items, bbox):
    """Split along the longest axis at the median of the object centers.

    Falls back to the midpoint when the median would not cut the box.
    """
    extents = bbox.max - bbox.min
    axis = int(np.argmax(extents))
    centers = [(box.min[axis] + box.max[axis]) * 0.5 for _, _, box in items]
    position = float(np.median(centers))
    if not (bbox.min[axis] < position < bbox.max[axis]):
        position = float((bbox.min[axis] + bbox.max[axis]) * 0.5)
    return axis, position


def build_kdtree(items, bbox, depth=0, max_depth=MAX_DEPTH, max_objects=MAX_OBJECTS):
    """Recursively build the kd-tree.

    items is a list of (index, object, AABB) triples in index order. Objects
    overlapping the split plane are placed in both children; leaves keep
    index order.
    """
    if len(items) <= max_objects or depth >= max_depth:
        return KdNode(bbox, entries=[(index, obj) for index, obj, _ in items])

    axis, position = choose_split(items, bbox)
    lower, upper = bbox.split(axis, position)
    left_items = [item for item in items if item[2].overlaps(lower)]
    right_items = [item for item in items if item[2].overlaps(upper)]

    # splitting made no progress: every object straddles the plane
    if len(left_items) == len(items) and len(right_items) == len(items):
        return KdNode(bbox, entries=[(index, obj) for index, obj, _ in items])

    left_child = build_kdtree(left_items, lower, depth + 1, max_depth, max_objects)
    right_child = build_kdtree(right_items, upper, depth + 1, max_depth, max_objects)
    return KdNode(bbox, axis=axis, split=position, left=left_child, right=right_child)


class KdTree:

    def __init__(self, objects, bounds, max_depth=MAX_DEPTH, max_objects=MAX_OBJECTS):
        """Build the index over objects inside the world box bounds.

        Parameters:
          objects : list -- scene primitives (need get_bbox and intersect)
          bounds : AABB -- explicit world bounds used as the root region
        """
        self.bounds = bounds
        items = []
        # objects not fully inside the world box are scanned linearly on every query
        self.outside = []
        self._outside_entries = []
        for index, obj in enumerate(objects):
            box = obj.get_bbox()
            if bounds.contains(box):
                items.append((index, obj, box))
            else:
                self.outside.append(obj)
                self._outside_entries.append((index, obj))
        if self.outside:
            logger.warning('%d object(s) extend past the spatial index bounds and will be tested linearly',
                           len(self.outside))
        self.root = build_kdtree(items, bounds, max_depth=max_depth, max_objects=max_objects)

    def intersect(self, ray):
        hit, index = self.root.intersect(ray)
        other, other_index = closest_entry(self._outside_entries, ray)
        if (other.t, other_index) < (hit.t, index):
            return other
        return hit

    def any_intersect(self, ray):
        return self.root.any_intersect(ray) or any_hit(self.outside, ray)

    def stats(self):
        return self.root.stats()


def world_bounds(xmin, xmax, ymin, ymax, zmin, zmax):
    """AABB from the explicit per-axis extents of the world."""
    if xmin > xmax or ymin > ymax or zmin > zmax:
        raise ValueError('Invalid world bounds: min must not exceed max on any axis')
    return AABB([xmin, ymin, zmin], [xmax, ymax, zmax])
