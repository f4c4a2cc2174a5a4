"""
Decoded image access.

A PixelSource wraps a decoded image as a ``(height, width, 3)`` uint8 numpy
array. Images are decoded with Pillow and always converted to RGB, so
grayscale, palette and RGBA files all yield three 8-bit channels.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Union

import numpy as np
from PIL import Image

from .errors import DecodeError

logger = logging.getLogger(__name__)


class PixelSource:
    def __init__(self, array: np.ndarray):
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected an (height, width, 3) array, got {array.shape}")
        if array.dtype != np.uint8:
            raise ValueError(f"Expected a uint8 array, got {array.dtype}")
        self.array = array

    @property
    def width(self) -> int:
        return int(self.array.shape[1])

    @property
    def height(self) -> int:
        return int(self.array.shape[0])

    def contains(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        return (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) out of bounds for {self.width}x{self.height} image"
            )
        r, g, b = self.array[y, x]
        return int(r), int(g), int(b)

    def get_pixels(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Gather pixels at coordinate arrays as an ``(n, 3)`` array."""
        xs = np.asarray(xs, dtype=np.int64)
        ys = np.asarray(ys, dtype=np.int64)
        inside = self.contains(xs, ys)
        if not inside.all():
            bad = int(np.argmin(inside))
            raise IndexError(
                f"Pixel ({xs[bad]}, {ys[bad]}) out of bounds for "
                f"{self.width}x{self.height} image"
            )
        return self.array[ys, xs]

    def freeze(self) -> "PixelSource":
        self.array.setflags(write=False)
        return self


def open_pixel_source(path: Union[str, Path]) -> PixelSource:
    try:
        with Image.open(path) as im:
            array = np.asarray(im.convert("RGB"), dtype=np.uint8)
    except (OSError, Image.DecompressionBombError, ValueError) as e:
        raise DecodeError(f"Failed to decode image {path}: {e}") from e
    logger.debug("Decoded %s (%dx%d)", path, array.shape[1], array.shape[0])
    return PixelSource(array)


class ImageCache:
    """
    Shared decoded images keyed by image id.

    Each key is decoded at most once even when many threads ask for it at the
    same time; cached arrays are read-only. A failed decode is not cached, the
    error goes to the thread that triggered it.
    """

    def __init__(self, loader: Callable[[Path], PixelSource] = open_pixel_source):
        self.loader = loader
        self._sources: Dict[str, PixelSource] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, key: str, path: Path) -> PixelSource:
        source = self._sources.get(key)
        if source is not None:
            return source
        with self._lock_for(key):
            source = self._sources.get(key)
            if source is None:
                source = self.loader(path).freeze()
                self._sources[key] = source
        return source

    def __len__(self) -> int:
        return len(self._sources)
