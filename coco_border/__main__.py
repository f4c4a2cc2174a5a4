import sys
import argparse
import logging

from .aggregate import BorderColorAggregator, SamplerConfig
from .dataset import COCODataset
from .errors import BorderColorError
from .index import DatasetIndex

logger = logging.getLogger("coco_border")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="coco-border",
        description="Calculate the mean pixels of 1px inset and outset boxes "
        "around each object in a COCO dataset",
    )
    parser.add_argument("image_dir", type=str, help="Path to the image directory")
    parser.add_argument("coco_path", type=str, help="Path to COCO annotations")
    parser.add_argument(
        "--workers", "-j", type=int, default=None, help="Number of worker threads"
    )
    parser.add_argument(
        "--cache-images",
        action="store_true",
        help="Decode each image once and share it between its annotations",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Hide the progress bar"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SamplerConfig(
        workers=args.workers,
        cache_images=args.cache_images,
        progress=not args.no_progress,
    )

    try:
        dataset = COCODataset.from_json(args.coco_path)
        index = DatasetIndex.from_dataset(dataset)

        print(f"Images: {len(index.images)}")
        print(f"Annotations: {len(index.annotations)}")
        print(f"Categories: {len(index.categories)}")
        for category in index.sorted_categories():
            print(f"Category: {category.id} - {category.name}")

        mean = BorderColorAggregator(index, args.image_dir, config=config).run()
    except (BorderColorError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print(f"Mean: {mean.to_rgb()}")
    print(f"Mean: {mean.to_hex()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
