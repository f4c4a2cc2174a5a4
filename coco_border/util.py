from typing import Dict, Iterable, List

from coco_border.errors import EmptyDatasetError
from coco_border.models import Annotation, Color


def group_annotations_by_image(
    annotations: List[Annotation],
) -> Dict[str, List[Annotation]]:
    grouped = {}
    for annotation in annotations:
        if annotation.image_id not in grouped:
            grouped[annotation.image_id] = []
        grouped[annotation.image_id].append(annotation)
    return grouped


def index_first_by_id(items: Iterable) -> dict:
    table = {}
    for item in items:
        if item.id not in table:
            table[item.id] = item
    return table


def sum_colors(colors: Iterable[Color]) -> Color:
    total = Color.zero()
    for color in colors:
        total = total + color
    return total


def reduce_means(means: Iterable[Color]) -> Color:
    """Sum per-annotation means and divide by their count, truncating."""
    means = list(means)
    if not means:
        raise EmptyDatasetError("No annotations to average")
    return sum_colors(means) // len(means)
