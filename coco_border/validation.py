import math
from typing import List, Dict, Any

from .errors import InvalidGeometryError


def validate_required_fields(data: dict, required: List[str], entity: str) -> None:
    missing = [f for f in required if f not in data]
    if missing:
        raise ValueError(
            f"{entity.capitalize()} missing required fields: {', '.join(missing)}"
        )


def validate_bbox(bbox: List[float]) -> None:
    if not isinstance(bbox, (list, tuple)) or len(bbox) != 4:
        raise ValueError("Invalid bbox format")
    for v in bbox:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ValueError(f"Invalid bbox format: {bbox}")


def validate_sections_exist(data: dict) -> None:
    for section in ["images", "categories", "annotations"]:
        if section not in data:
            raise ValueError(f"Missing section: {section}")


def validate_images(images: List[dict]) -> None:
    for img_data in images:
        validate_required_fields(img_data, ["id", "file_name"], "image")


def validate_categories(categories: List[dict]) -> None:
    for cat_data in categories:
        validate_required_fields(cat_data, ["id", "name"], "category")


def validate_annotations(annotations: List[dict]) -> None:
    for ann_data in annotations:
        validate_required_fields(
            ann_data, ["id", "image_id", "category_id", "bbox"], "annotation"
        )
        validate_bbox(ann_data["bbox"])


def find_duplicate_ids(items: List[Any], entity: str) -> List[Dict[str, Any]]:
    """Return one record per item whose id was already seen earlier in ``items``."""
    ids = set()
    duplicates = []
    for position, item in enumerate(items):
        if item.id in ids:
            duplicates.append({"entity": entity, "id": item.id, "position": position})
        ids.add(item.id)
    return duplicates


def validate_border_geometry(
    xywh: tuple[int, int, int, int],
    image_width: int,
    image_height: int,
    inset: int = 1,
    outset: int = 1,
    annotation_id: str | None = None,
) -> None:
    """
    Check that both sampling rings can be built for a truncated box.

    The inset ring is never clipped, so it has to have non-negative extent and
    lie fully inside the image. The outset ring is clipped on the right and
    bottom only: its top-left corner must not go below zero.
    """
    x, y, w, h = xywh
    label = f"Annotation {annotation_id}" if annotation_id is not None else "Box"

    if x < outset or y < outset:
        raise InvalidGeometryError(
            f"{label} bbox {list(xywh)} is within {outset}px of the image top/left edge"
        )
    if w < 2 * inset or h < 2 * inset:
        raise InvalidGeometryError(
            f"{label} bbox {list(xywh)} is smaller than {2 * inset}px in width or height"
        )
    if x + w - inset >= image_width or y + h - inset >= image_height:
        raise InvalidGeometryError(
            f"{label} bbox {list(xywh)} inset ring falls outside "
            f"{image_width}x{image_height} image"
        )
