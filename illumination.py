import numpy as np
from utils import vec, normalize, reflect

PHONG = 'phong'
PHONG_BLINN = 'phong_blinn'


def phong_specular(normal, view_vec, light_vec):
    """Reflection-vector . view-vector term of the classic Phong model."""
    return max(0.0, np.dot(reflect(-light_vec, normal), view_vec))


def blinn_specular(normal, view_vec, light_vec):
    """Half-vector . normal term of the Phong-Blinn model."""
    halfway_vec = normalize(light_vec + view_vec)
    return max(0.0, np.dot(normal, halfway_vec))


SPECULAR_TERMS = {
    PHONG: phong_specular,
    PHONG_BLINN: blinn_specular,
}


class IlluminationModel:

    def __init__(self, ambient_color=vec([0., 0., 0.]), variant=PHONG):
        """Create the local reflectance model used for every surface of a World.

        Parameters:
          ambient_color : (3,) -- color of the ambient light
          variant : str -- PHONG or PHONG_BLINN
        """
        if variant not in SPECULAR_TERMS:
            raise ValueError('Unknown illumination model %r, use %r or %r' % (variant, PHONG, PHONG_BLINN))
        self.ambient_color = vec(ambient_color)
        self.variant = variant
        self.specular_term = SPECULAR_TERMS[variant]

    def shade(self, point, normal, view_vec, material, light_samples):
        """Compute the reflected color at a surface point.

        Parameters:
          point : (3,) -- the surface point
          normal : (3,) -- unit normal, facing the viewer
          view_vec : (3,) -- unit vector from the point towards the viewer
          material : Material -- surface coefficients
          light_samples : iterable of (light_vec, light_color, weight) -- visible
            light samples; light_vec is the unit vector towards the sample and
            weight folds in attenuation and the per-light sample average
        """
        color = material.color_at(point)
        # ambient light is tinted by the surface color, like the diffuse term
        result = material.k_a * color * self.ambient_color

        for light_vec, light_color, weight in light_samples:
            diffuse = np.dot(normal, light_vec)
            if diffuse <= 0.0:
                continue
            specular = self.specular_term(normal, view_vec, light_vec) ** material.p
            result = result + weight * light_color * (
                material.k_d * diffuse * color + material.k_s * specular * material.specular_color)

        return result
