import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from tqdm import tqdm

from .errors import EmptyDatasetError
from .index import DatasetIndex
from .models import Annotation, Color
from .pixels import ImageCache, PixelSource, open_pixel_source
from .sampling import BorderSampler
from .util import reduce_means

logger = logging.getLogger(__name__)


@dataclass
class SamplerConfig:
    workers: Optional[int] = None
    cache_images: bool = False
    progress: bool = True

    @property
    def max_workers(self) -> int:
        return max(1, self.workers or os.cpu_count() or 1)


class BorderColorAggregator:
    """
    Dataset-wide mean border color.

    Every annotation in the index is sampled on a thread pool. The first task
    that raises cancels whatever has not started yet and its exception is
    re-raised from ``run``; there is no partial result.
    """

    def __init__(
        self,
        index: DatasetIndex,
        image_dir: Union[str, Path],
        config: Optional[SamplerConfig] = None,
        sampler: Optional[BorderSampler] = None,
        loader: Callable[[Path], PixelSource] = open_pixel_source,
    ):
        self.index = index
        self.image_dir = Path(image_dir)
        self.config = config or SamplerConfig()
        self.sampler = sampler or BorderSampler()
        self.loader = loader
        self.cache = ImageCache(loader) if self.config.cache_images else None

    def image_path(self, annotation: Annotation) -> Path:
        image = self.index.require_image(annotation)
        return self.image_dir / image.file_name

    def load_source(self, annotation: Annotation) -> PixelSource:
        path = self.image_path(annotation)
        if self.cache is not None:
            return self.cache.get(annotation.image_id, path)
        return self.loader(path)

    def annotation_mean(self, annotation: Annotation) -> Color:
        return self.sampler.sample(annotation, self.load_source(annotation))

    def run(self) -> Color:
        annotations = list(self.index.annotations.values())
        if not annotations:
            raise EmptyDatasetError("Dataset has no annotations")

        max_workers = self.config.max_workers
        logger.info(
            "Sampling %d annotations with %d workers", len(annotations), max_workers
        )

        means = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self.annotation_mean, a) for a in annotations]
            try:
                for future in tqdm(
                    as_completed(futures),
                    total=len(futures),
                    desc="Annotations",
                    unit="ann",
                    disable=not self.config.progress,
                ):
                    means.append(future.result())
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

        mean = reduce_means(means)
        logger.info("Dataset mean border color %s", mean.to_hex())
        return mean


def dataset_border_mean(
    index: DatasetIndex,
    image_dir: Union[str, Path],
    config: Optional[SamplerConfig] = None,
) -> Color:
    return BorderColorAggregator(index, image_dir, config=config).run()
