from .models import BBox, Category, Annotation, Image, Color
from .dataset import COCODataset
from .index import DatasetIndex
from .pixels import PixelSource, ImageCache, open_pixel_source
from .sampling import BorderSampler
from .aggregate import BorderColorAggregator, SamplerConfig, dataset_border_mean
from .errors import (
    BorderColorError,
    DatasetLoadError,
    MissingImageError,
    InvalidGeometryError,
    DecodeError,
    EmptyDatasetError,
)

__all__ = [
    "BBox",
    "Category",
    "Annotation",
    "Image",
    "Color",
    "COCODataset",
    "DatasetIndex",
    "PixelSource",
    "ImageCache",
    "open_pixel_source",
    "BorderSampler",
    "BorderColorAggregator",
    "SamplerConfig",
    "dataset_border_mean",
    "BorderColorError",
    "DatasetLoadError",
    "MissingImageError",
    "InvalidGeometryError",
    "DecodeError",
    "EmptyDatasetError",
]
