"""
Numerical tolerances and rendering defaults for the minirt ray tracer.
"""

# Geometry
SHADOW_BIAS = 1e-3  # offset along the normal before casting shadow rays
DUPLICATE_HIT_EPSILON = 1e-6  # coincident opposite-facing hits cancel out
ROOT_MAGNITUDE_LIMIT = 1e12  # leading terms that only shape roots beyond this are dropped
NEWTON_POLISH_STEPS = 2
DEGENERATE_LENGTH = 1e-12

# World frame (Z is up)
WORLD_UP = (0.0, 0.0, 1.0)
FALLBACK_UP = (0.0, 1.0, 0.0)

# Shading
DIELECTRIC_F0 = 0.04
BRDF_COSINE_FLOOR = 1e-5
POINT_LIGHT_MIN_DISTANCE = 1e-3
SPOT_DEFAULT_SOFTNESS = 0.1

# Image defaults
DEFAULT_IMAGE_WIDTH = 640
DEFAULT_IMAGE_HEIGHT = 480
DEFAULT_GAMMA = 2.2
DEFAULT_EXPOSURE = 1.0
DEFAULT_FOV_DEGREES = 60.0
DEFAULT_NOMINAL_ASPECT_RATIO = 1.0
