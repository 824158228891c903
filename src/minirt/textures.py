"""
Image textures for albedo lookup.

Images are decoded with Pillow into float arrays of shape (H, W, 3) in [0, 1]
and shared through an ImageCache so a file referenced by several materials is
read only once.
"""
import logging
import os
import threading

import numpy as np
import PIL.Image

from minirt.color import LDRColor

logger = logging.getLogger(__name__)


class PillowImageLoader:
    """Reads images relative to a base directory (usually the scene file's)."""

    def __init__(self, base_dir="."):
        self.base_dir = base_dir

    def resolve(self, path):
        return path if os.path.isabs(path) else os.path.join(self.base_dir, path)

    def load(self, path) -> np.ndarray:
        full_path = self.resolve(path)
        logger.debug("Loading texture %s", full_path)
        with PIL.Image.open(full_path) as image:
            pixels = np.asarray(image.convert("RGB"), dtype=np.float64) / 255.0
        pixels.setflags(write=False)
        return pixels


class ImageCache:
    """
    Path-keyed memo around an image loader.

    Concurrent callers asking for the same path block until the first load
    finishes; the loader runs at most once per path.
    """

    def __init__(self, loader=None):
        self.loader = loader or PillowImageLoader()
        self._images = {}
        self._lock = threading.Lock()

    def load(self, path) -> np.ndarray:
        with self._lock:
            if path not in self._images:
                self._images[path] = self.loader.load(path)
            return self._images[path]

    def __len__(self):
        return len(self._images)


def _to_ldr(values):
    r, g, b = (min(1.0, max(0.0, float(c))) for c in values)
    return LDRColor(r, g, b)


class Texture:
    def __init__(self, image: np.ndarray):
        if image.ndim != 3 or image.shape[2] != 3 or image.shape[0] == 0 or image.shape[1] == 0:
            raise ValueError(f"Texture image must have shape (H, W, 3), got {image.shape}")
        self.image = image

    @property
    def height(self):
        return self.image.shape[0]

    @property
    def width(self):
        return self.image.shape[1]

    def get(self, u: float, v: float) -> LDRColor:
        raise NotImplementedError


class NearestTexture(Texture):
    """Nearest-texel lookup; coordinates wrap around."""

    def get(self, u, v):
        x = int(round(u * self.width)) % self.width
        y = int(round(v * self.height)) % self.height
        return _to_ldr(self.image[y, x])


class LinearTexture(Texture):
    """Bilinear lookup with coordinates clamped to the image edges."""

    def get(self, u, v):
        fx = min(1.0, max(0.0, u)) * (self.width - 1)
        fy = min(1.0, max(0.0, v)) * (self.height - 1)
        x0, y0 = int(fx), int(fy)
        x1 = min(x0 + 1, self.width - 1)
        y1 = min(y0 + 1, self.height - 1)
        tx, ty = fx - x0, fy - y0

        top = self.image[y0, x0] * (1.0 - tx) + self.image[y0, x1] * tx
        bottom = self.image[y1, x0] * (1.0 - tx) + self.image[y1, x1] * tx
        return _to_ldr(top * (1.0 - ty) + bottom * ty)
