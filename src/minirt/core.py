"""
Row rendering and the Renderer.

Rows are super-sampled into HDR radiance, serially or on a worker pool. HDR
images are cached per renderer and settings, so tone mapping can be repeated
without tracing again.
"""
import functools
import logging
import math
import multiprocessing

import numpy as np

from minirt import constants
from minirt.shading import sample
from minirt.utils import clamp_ldr, to_uint8, tone_map

logger = logging.getLogger(__name__)

# Scene shared with pool workers; set once per worker by _init_worker.
_worker_scene = None
_worker_super_sampling = 1


def _init_worker(scene, super_sampling):
    global _worker_scene, _worker_super_sampling
    _worker_scene = scene
    _worker_super_sampling = super_sampling


def _render_row_in_worker(row):
    return row, render_row(_worker_scene, row, _worker_super_sampling)


def subpixel_offsets(super_sampling):
    """Offsets of an s x s grid of sample centers inside a unit pixel."""
    return [(i + 0.5) / super_sampling for i in range(super_sampling)]


def render_row(scene, row, super_sampling=1):
    """
    Averaged HDR radiance of one image row.

    Returns:
        (W, 3) float array.
    """
    width = scene.image_width
    height = scene.image_height
    offsets = subpixel_offsets(super_sampling)
    count = super_sampling * super_sampling
    pixels = np.zeros((width, 3))
    for column in range(width):
        total = np.zeros(3)
        for dy in offsets:
            y = (row + dy) / height
            for dx in offsets:
                total += sample(scene, (column + dx) / width, y).to_array()
        pixels[column] = total / count
    return pixels


class Renderer:
    def __init__(self, scene, super_sampling=1, jobs=1):
        """
        Render a Scene into pixel arrays.

        Args:
            scene: Scene to render; its image size sets the output size.
            super_sampling: Samples per pixel along each axis (s x s per pixel).
            jobs: Worker processes; 1 renders in the calling process.
        """
        if super_sampling < 1:
            raise ValueError(f"super_sampling must be >= 1, got {super_sampling}")
        if jobs < 1:
            raise ValueError(f"jobs must be >= 1, got {jobs}")
        self.scene = scene
        self.super_sampling = super_sampling
        self.jobs = jobs

    @property
    def width(self):
        return self.scene.image_width

    @property
    def height(self):
        return self.scene.image_height

    @functools.lru_cache(maxsize=4)
    def _render_cached(self, super_sampling, jobs):
        image = np.zeros((self.height, self.width, 3))
        if jobs == 1:
            for row in range(self.height):
                image[row] = render_row(self.scene, row, super_sampling)
        else:
            logger.info("Rendering %d rows on %d worker processes", self.height, jobs)
            with multiprocessing.Pool(jobs, initializer=_init_worker,
                                      initargs=(self.scene, super_sampling)) as pool:
                for row, pixels in pool.imap_unordered(_render_row_in_worker, range(self.height)):
                    image[row] = pixels
        image.setflags(write=False)
        return image

    def render_hdr(self):
        """Linear radiance as a read-only (H, W, 3) float array."""
        return self._render_cached(self.super_sampling, self.jobs)

    def render(self, exposure=constants.DEFAULT_EXPOSURE, gamma=constants.DEFAULT_GAMMA,
               ldr=False):
        """
        Display-ready (H, W, 3) uint8 image.

        With ldr=True radiance is clipped to [0, 1] instead of tone mapped.
        """
        hdr = self.render_hdr()
        return to_uint8(clamp_ldr(hdr) if ldr else tone_map(hdr, exposure, gamma))

    def _primary_hits(self):
        """Nearest hit (or None) through every pixel center."""
        for row in range(self.height):
            for column in range(self.width):
                ray = self.scene.camera.ray((column + 0.5) / self.width, (row + 0.5) / self.height)
                yield row, column, self.scene.test(ray)

    def render_normals(self):
        """Surface normals mapped from [-1, 1] to [0, 255]; misses stay black."""
        image = np.zeros((self.height, self.width, 3))
        for row, column, hit in self._primary_hits():
            if hit is not None:
                image[row, column] = (hit.normal.to_array() + 1.0) / 2.0
        return to_uint8(image)

    def render_distances(self):
        """Grayscale hit distance: near is bright, the farthest hit is dark gray."""
        distances = np.full((self.height, self.width), np.nan)
        for row, column, hit in self._primary_hits():
            if hit is not None and math.isfinite(hit.distance):
                distances[row, column] = hit.distance

        image = np.zeros((self.height, self.width, 3))
        found = np.isfinite(distances)
        if np.any(found):
            farthest = np.max(distances[found])
            scale = farthest if farthest > 0.0 else 1.0
            # Farthest hit maps to dark gray so it stays distinct from the sky.
            image[found] = (1.0 - 0.9 * distances[found] / scale)[:, None]
        return to_uint8(image)
