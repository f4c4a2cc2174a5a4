import json
import logging
from pathlib import Path
from typing import List, Union

from .errors import DatasetLoadError
from .models import Annotation, BBox, Category, Image
from .validation import (
    validate_sections_exist,
    validate_images,
    validate_categories,
    validate_annotations,
)

logger = logging.getLogger(__name__)


class COCODataset:
    """The three flat lists of a COCO file, in file order, duplicates kept."""

    def __init__(
        self,
        images: List[Image],
        annotations: List[Annotation],
        categories: List[Category],
    ):
        self.images = images
        self.annotations = annotations
        self.categories = categories

    @classmethod
    def parse_image(cls, img_data: dict) -> Image:
        return Image(id=str(img_data["id"]), file_name=img_data["file_name"])

    @classmethod
    def parse_category(cls, cat_data: dict) -> Category:
        return Category(id=int(cat_data["id"]), name=cat_data["name"])

    @classmethod
    def parse_annotation(cls, ann_data: dict) -> Annotation:
        return Annotation(
            id=str(ann_data["id"]),
            category_id=int(ann_data["category_id"]),
            image_id=str(ann_data["image_id"]),
            bbox=BBox(*(float(v) for v in ann_data["bbox"])),
        )

    @classmethod
    def validate_data_dict(cls, data: dict) -> None:
        validate_sections_exist(data)
        validate_images(data["images"])
        validate_categories(data["categories"])
        validate_annotations(data["annotations"])

    @classmethod
    def from_dict(cls, data: dict) -> "COCODataset":
        cls.validate_data_dict(data)

        images = [cls.parse_image(d) for d in data["images"]]
        annotations = [cls.parse_annotation(d) for d in data["annotations"]]
        categories = [cls.parse_category(d) for d in data["categories"]]

        return cls(images, annotations, categories)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "COCODataset":
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DatasetLoadError(f"Failed to load COCO file {path}: {e}") from e
        if not isinstance(data, dict):
            raise DatasetLoadError(f"COCO file {path} does not contain a JSON object")

        dataset = cls.from_dict(data)
        logger.info(
            "Loaded %s: %d images, %d annotations, %d categories",
            path,
            len(dataset.images),
            len(dataset.annotations),
            len(dataset.categories),
        )
        return dataset

    def to_dict(self) -> dict:
        return {
            "images": [image.to_dict() for image in self.images],
            "annotations": [ann.to_dict() for ann in self.annotations],
            "categories": [category.to_dict() for category in self.categories],
        }
