import logging

import numpy as np

from .models import Annotation, Color
from .pixels import PixelSource
from .validation import validate_border_geometry

logger = logging.getLogger(__name__)

INSET = 1
OUTSET = 1


def ring_coordinates(x: int, y: int, w: int, h: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Perimeter of the box with corners (x, y) and (x + w, y + h), both inclusive.

    Rows come first (top then bottom for each column), then columns (left then
    right for each row). Corners appear twice and are not deduplicated, so the
    ring has ``2 * (w + 1) + 2 * (h + 1)`` points.
    """
    cols = np.arange(x, x + w + 1, dtype=np.int64)
    rows = np.arange(y, y + h + 1, dtype=np.int64)

    row_xs = np.repeat(cols, 2)
    row_ys = np.tile(np.array([y, y + h], dtype=np.int64), len(cols))
    col_xs = np.tile(np.array([x, x + w], dtype=np.int64), len(rows))
    col_ys = np.repeat(rows, 2)

    return np.concatenate([row_xs, col_xs]), np.concatenate([row_ys, col_ys])


def inset_ring(
    xywh: tuple[int, int, int, int], inset: int = INSET
) -> tuple[np.ndarray, np.ndarray]:
    x, y, w, h = xywh
    return ring_coordinates(x + inset, y + inset, w - 2 * inset, h - 2 * inset)


def outset_ring(
    xywh: tuple[int, int, int, int], outset: int = OUTSET
) -> tuple[np.ndarray, np.ndarray]:
    x, y, w, h = xywh
    return ring_coordinates(x - outset, y - outset, w + 2 * outset, h + 2 * outset)


def in_bounds(
    xs: np.ndarray, ys: np.ndarray, width: int, height: int
) -> np.ndarray:
    return (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)


def gather_pixels(source, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Pixels at the given coordinates as an ``(n, 3)`` array.

    Any object with ``width``, ``height`` and ``get_pixel(x, y)`` works; the
    vectorized ``get_pixels`` is used when the source has one.
    """
    get_pixels = getattr(source, "get_pixels", None)
    if get_pixels is not None:
        return get_pixels(xs, ys)
    pixels = [source.get_pixel(int(x), int(y)) for x, y in zip(xs, ys)]
    return np.array(pixels, dtype=np.int64).reshape(-1, 3)


def mean_color(samples: np.ndarray) -> Color:
    """Per-channel integer mean of an ``(n, 3)`` sample array, truncating."""
    if len(samples) == 0:
        raise ValueError("Cannot average an empty sample set")
    sums = samples.astype(np.int64).sum(axis=0)
    r, g, b = (int(s) // len(samples) for s in sums)
    return Color(r, g, b)


class BorderSampler:
    """Mean color of the pixel rings just inside and just outside a bbox."""

    def __init__(self, inset: int = INSET, outset: int = OUTSET):
        self.inset = inset
        self.outset = outset

    def samples(self, annotation: Annotation, source: PixelSource) -> np.ndarray:
        xywh = annotation.bbox.pixel_xywh
        validate_border_geometry(
            xywh,
            source.width,
            source.height,
            inset=self.inset,
            outset=self.outset,
            annotation_id=annotation.id,
        )

        inner = gather_pixels(source, *inset_ring(xywh, self.inset))

        xs, ys = outset_ring(xywh, self.outset)
        inside = in_bounds(xs, ys, source.width, source.height)
        outer = gather_pixels(source, xs[inside], ys[inside])

        logger.debug(
            "Annotation %s: %d inset and %d outset samples (%d clipped)",
            annotation.id,
            len(inner),
            len(outer),
            int((~inside).sum()),
        )
        return np.concatenate([inner, outer])

    def sample(self, annotation: Annotation, source: PixelSource) -> Color:
        return mean_color(self.samples(annotation, source))
