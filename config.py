"""
Default settings for rendering from the command line
"""

# Rendering settings
RENDER_SETTINGS = {
    'width': 128,
    'height': 128,
    'view_width': 0.5,   # view plane size in world units
    'view_height': 0.5,
    'grid': False,       # 3x3 rays per pixel instead of one through the center
    'workers': 0,        # 0 uses every CPU
}

# Output settings
OUTPUT_SETTINGS = {
    'output': 'render.png',
    'srgb_whitepoint': 1.0,
}

# World bounds for the spatial index (xmin, xmax, ymin, ymax, zmin, zmax)
INDEX_BOUNDS = (-5, 5, -5, 5, -5, 5)
