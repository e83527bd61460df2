import numpy as np

def vec(list):
    """Handy shorthand to make a double-precision float array."""
    return np.array(list, dtype=np.float64)

def normalize(v):
    """Return a unit vector in the direction of the vector v."""
    return v / np.linalg.norm(v)

def distance(p, q):
    """Euclidean distance between the points p and q."""
    return float(np.linalg.norm(q - p))

def reflect(d, n):
    """Mirror the direction d about the unit normal n."""
    return d - 2.0 * np.dot(d, n) * n

def refract(d, n, eta):
    """Bend the unit direction d through a surface with unit normal n.

    n must face against d, and eta is the ratio of refractive indices
    (incident over transmitted). Returns None on total internal reflection.
    """
    cos_i = -np.dot(d, n)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    if k < 0.0:
        return None
    return normalize(eta * d + (eta * cos_i - np.sqrt(k)) * n)


def to_srgb(img):
    img_clip = np.clip(img, 0, 1)
    return np.where(img > 0.0031308, (1.055 * img_clip**(1/2.4) - 0.055), 12.92 * img_clip)

def to_srgb8(img):
    return np.clip(np.round(255.0 * to_srgb(img)), 0, 255).astype(np.uint8)


def read_obj_triangles(f):
    """Read a file in the Wavefront OBJ file format and convert to separate triangles.

    Argument is an open file (or any iterable of lines). Only vertex positions
    and faces are used; faces with more than three corners are split into a fan.
    Returns an array of shape (n, 3, 3) that has the 3D vertex positions of n triangles.
    """
    posns = []
    tris = []
    for words in (line.split() for line in f):
        if not words:
            continue
        if words[0] == 'v':
            posns.append([float(s) for s in words[1:4]])
        elif words[0] == 'f':
            # 'f 1/2/3 ...' keeps only the position index; negative indices count from the end
            corners = []
            for w in words[1:]:
                i = int(w.split('/')[0])
                corners.append(i - 1 if i > 0 else len(posns) + i)
            for k in range(1, len(corners) - 1):
                tris.append([corners[0], corners[k], corners[k + 1]])

    if not tris:
        return np.zeros((0, 3, 3), dtype=np.float64)
    return np.array(posns, dtype=np.float64)[np.array(tris, dtype=np.int32)]
