import logging
from typing import Dict, List, Optional

from .dataset import COCODataset
from .errors import MissingImageError
from .models import Annotation, Category, Image
from .util import group_annotations_by_image, index_first_by_id
from .validation import find_duplicate_ids

logger = logging.getLogger(__name__)


class DatasetIndex:
    """
    Id-keyed lookup tables over a COCO dataset.

    Built once and never mutated, so it can be shared between worker threads
    without locking. When an id repeats, the first occurrence is kept in the id
    tables and later ones are dropped with a warning. The per-image grouping
    keeps every annotation, duplicates included, in input order. Annotations
    are not checked against the image table here; ``require_image`` does that
    when pixels are needed.
    """

    def __init__(
        self,
        images: List[Image],
        annotations: List[Annotation],
        categories: List[Category],
    ):
        for kind, items in (
            ("image", images),
            ("annotation", annotations),
            ("category", categories),
        ):
            for dup in find_duplicate_ids(items, kind):
                logger.warning(
                    "Duplicate %s id %s at position %d ignored, keeping first occurrence",
                    dup["entity"],
                    dup["id"],
                    dup["position"],
                )

        self.images: Dict[str, Image] = index_first_by_id(images)
        self.annotations: Dict[str, Annotation] = index_first_by_id(annotations)
        self.annotations_by_image_id: Dict[str, List[Annotation]] = (
            group_annotations_by_image(annotations)
        )
        self.categories: Dict[int, Category] = index_first_by_id(categories)

    @classmethod
    def from_dataset(cls, dataset: COCODataset) -> "DatasetIndex":
        return cls(dataset.images, dataset.annotations, dataset.categories)

    def image_by_id(self, image_id: str) -> Optional[Image]:
        return self.images.get(image_id)

    def annotation_by_id(self, annotation_id: str) -> Optional[Annotation]:
        return self.annotations.get(annotation_id)

    def annotations_for_image(self, image_id: str) -> List[Annotation]:
        return list(self.annotations_by_image_id.get(image_id, []))

    def category_by_id(self, category_id: int) -> Optional[Category]:
        return self.categories.get(category_id)

    def require_image(self, annotation: Annotation) -> Image:
        image = self.image_by_id(annotation.image_id)
        if image is None:
            raise MissingImageError(annotation.image_id, annotation.id)
        return image

    def sorted_categories(self) -> List[Category]:
        return [self.categories[k] for k in sorted(self.categories)]

    def __repr__(self) -> str:
        return (
            f"DatasetIndex(images={len(self.images)}, "
            f"annotations={len(self.annotations)}, "
            f"categories={len(self.categories)})"
        )
