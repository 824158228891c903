"""
Image post-processing: tone mapping, quantization and file output.
"""
import io
import os

import numpy as np
import PIL.Image

from minirt import constants


def tone_map(hdr, exposure=constants.DEFAULT_EXPOSURE, gamma=constants.DEFAULT_GAMMA):
    """
    Exponential exposure curve followed by gamma encoding.

    Args:
        hdr: (..., 3) array of non-negative radiance.
        exposure: Scale applied before the curve.
        gamma: Display gamma; the output is raised to 1 / gamma.

    Returns:
        Array of the same shape in [0, 1].
    """
    if exposure <= 0.0 or gamma <= 0.0:
        raise ValueError("exposure and gamma must be positive")
    hdr = np.maximum(np.asarray(hdr, dtype=np.float64), 0.0)
    return (1.0 - np.exp(-hdr * exposure)) ** (1.0 / gamma)


def clamp_ldr(hdr):
    """Treat radiance as display values directly, clipping to [0, 1]."""
    return np.clip(np.asarray(hdr, dtype=np.float64), 0.0, 1.0)


def to_uint8(ldr):
    return (np.clip(ldr, 0.0, 1.0) * 255.0).astype(np.uint8)


def encode_image(pixels, image_format="BMP") -> bytes:
    """Encode an (H, W, 3) uint8 array with Pillow."""
    buffer = io.BytesIO()
    PIL.Image.fromarray(pixels).save(buffer, format=image_format)
    return buffer.getvalue()


def output_path(path, bmp_suffix=True):
    """Append .bmp unless the path already ends with it or appending is disabled."""
    if bmp_suffix and not path.lower().endswith(".bmp"):
        return path + ".bmp"
    return path


def save_image(pixels, path):
    """Write pixels to `path`; the format follows the suffix, BMP when there is none."""
    suffix = os.path.splitext(path)[1]
    PIL.Image.fromarray(pixels).save(path, format=None if suffix else "BMP")
    return path
