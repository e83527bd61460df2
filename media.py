import numpy as np


class ConstantDensity:
    """Homogeneous medium: the same density everywhere."""

    def __init__(self, value=1.0):
        if value < 0:
            raise ValueError('Density must be non-negative, got %r' % (value,))
        self.value = value

    def __call__(self, point):
        return self.value


class HeightDensity:
    """Fog that thins out exponentially above a reference height.

    density(p) = base * exp(-falloff * (p.y - height)), capped at base below the reference.
    """

    def __init__(self, base=1.0, falloff=1.0, height=0.0):
        self.base = base
        self.falloff = falloff
        self.height = height

    def __call__(self, point):
        return self.base * np.exp(-self.falloff * max(0.0, point[1] - self.height))


class ParticipatingMedia:

    def __init__(self, absorption, scattering, density=1.0):
        """Describe the medium filling the World for ray marching.

        Parameters:
          absorption : float -- absorption coefficient (sigma_a)
          scattering : float -- scattering coefficient (sigma_s)
          density : float or callable -- point -> density; a number means constant density
        """
        if absorption < 0 or scattering < 0:
            raise ValueError('Absorption and scattering coefficients must be non-negative')
        self.absorption = absorption
        self.scattering = scattering
        self.density = density if callable(density) else ConstantDensity(density)

    def extinction(self, point):
        """sigma_t at a point: (absorption + scattering) * density."""
        return (self.absorption + self.scattering) * self.density(point)

    def in_scattering(self, point):
        return self.scattering * self.density(point)
