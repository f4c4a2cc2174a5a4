import random
import threading

import numpy as np
import pytest

from coco_border import (
    Annotation,
    BBox,
    BorderColorAggregator,
    Color,
    COCODataset,
    DatasetIndex,
    DecodeError,
    EmptyDatasetError,
    Image,
    ImageCache,
    InvalidGeometryError,
    MissingImageError,
    SamplerConfig,
    dataset_border_mean,
    open_pixel_source,
)
from coco_border.util import reduce_means, sum_colors


def solid(width, height, color):
    array = np.zeros((height, width, 3), dtype=np.uint8)
    array[:, :] = color
    return array


def no_progress(**kwargs):
    return SamplerConfig(progress=False, **kwargs)


class TestReduce:
    def test_two_means(self):
        assert reduce_means([Color(100, 0, 0), Color(200, 0, 0)]) == Color(150, 0, 0)

    def test_truncating_division(self):
        assert reduce_means([Color(100, 0, 0), Color(201, 0, 0)]) == Color(150, 0, 0)

    def test_empty(self):
        with pytest.raises(EmptyDatasetError):
            reduce_means([])

    def test_grouping_does_not_matter(self):
        rng = random.Random(0)
        colors = [
            Color(rng.randrange(256), rng.randrange(256), rng.randrange(256))
            for _ in range(50)
        ]
        direct = sum_colors(colors)

        for _ in range(10):
            shuffled = colors[:]
            rng.shuffle(shuffled)
            cuts = sorted(rng.sample(range(1, len(shuffled)), 4))
            groups = [
                shuffled[a:b] for a, b in zip([0] + cuts, cuts + [len(shuffled)])
            ]
            assert sum_colors(sum_colors(g) for g in groups) == direct


class TestAggregator:
    def test_dataset_mean(self, sample_data, image_dir):
        index = DatasetIndex.from_dataset(COCODataset.from_dict(sample_data))
        mean = dataset_border_mean(index, image_dir, config=no_progress())
        # two annotations on each uniformly colored image
        assert mean == Color((10 * 2 + 200 * 2) // 4, (20 * 2 + 100 * 2) // 4, 40)

    @pytest.mark.parametrize("workers", [1, 4])
    def test_asymmetric_means(self, tmp_path, make_image, workers):
        make_image("a.png", solid(8, 8, (100, 0, 0)))
        make_image("b.png", solid(8, 8, (201, 0, 0)))
        index = DatasetIndex(
            [Image("a", "a.png"), Image("b", "b.png")],
            [
                Annotation("1", 1, "a", BBox(2, 2, 3, 3)),
                Annotation("2", 1, "b", BBox(2, 2, 3, 3)),
            ],
            [],
        )
        aggregator = BorderColorAggregator(
            index, tmp_path, config=no_progress(workers=workers)
        )
        assert aggregator.run() == Color(150, 0, 0)

    def test_duplicate_annotation_ids_sampled_once(self, tmp_path, make_image):
        make_image("a.png", solid(8, 8, (90, 0, 0)))
        make_image("b.png", solid(8, 8, (10, 0, 0)))
        index = DatasetIndex(
            [Image("a", "a.png"), Image("b", "b.png")],
            [
                Annotation("1", 1, "a", BBox(2, 2, 3, 3)),
                Annotation("1", 1, "b", BBox(2, 2, 3, 3)),
            ],
            [],
        )
        assert dataset_border_mean(index, tmp_path, no_progress()) == Color(90, 0, 0)

    def test_missing_image_aborts(self, tmp_path, make_image):
        make_image("a.png", solid(8, 8, (1, 1, 1)))
        index = DatasetIndex(
            [Image("a", "a.png")],
            [
                Annotation("1", 1, "a", BBox(2, 2, 3, 3)),
                Annotation("2", 1, "ghost", BBox(2, 2, 3, 3)),
            ],
            [],
        )
        with pytest.raises(MissingImageError, match="Annotation 2"):
            dataset_border_mean(index, tmp_path, no_progress())

    def test_invalid_geometry_aborts(self, tmp_path, make_image):
        make_image("a.png", solid(8, 8, (1, 1, 1)))
        index = DatasetIndex(
            [Image("a", "a.png")],
            [
                Annotation("1", 1, "a", BBox(2, 2, 3, 3)),
                Annotation("2", 1, "a", BBox(0, 2, 3, 3)),
            ],
            [],
        )
        with pytest.raises(InvalidGeometryError):
            dataset_border_mean(index, tmp_path, no_progress(workers=2))

    def test_undecodable_image_aborts(self, tmp_path):
        (tmp_path / "broken.png").write_bytes(b"\x89PNG\r\n")
        index = DatasetIndex(
            [Image("a", "broken.png")],
            [Annotation("1", 1, "a", BBox(2, 2, 3, 3))],
            [],
        )
        with pytest.raises(DecodeError, match="broken.png"):
            dataset_border_mean(index, tmp_path, no_progress())

    def test_missing_file_aborts(self, tmp_path):
        index = DatasetIndex(
            [Image("a", "nope.png")],
            [Annotation("1", 1, "a", BBox(2, 2, 3, 3))],
            [],
        )
        with pytest.raises(DecodeError):
            dataset_border_mean(index, tmp_path, no_progress())

    def test_empty_dataset(self, tmp_path):
        with pytest.raises(EmptyDatasetError):
            dataset_border_mean(DatasetIndex([], [], []), tmp_path, no_progress())

    def test_each_annotation_decodes_its_image(self, tmp_path, make_image):
        make_image("a.png", solid(8, 8, (5, 5, 5)))
        calls = []

        def loader(path):
            calls.append(path)
            return open_pixel_source(path)

        index = DatasetIndex(
            [Image("a", "a.png")],
            [Annotation(str(i), 1, "a", BBox(2, 2, 3, 3)) for i in range(5)],
            [],
        )
        aggregator = BorderColorAggregator(
            index, tmp_path, config=no_progress(workers=3), loader=loader
        )
        assert aggregator.run() == Color(5, 5, 5)
        assert len(calls) == 5
        assert all(p == tmp_path / "a.png" for p in calls)

    def test_cache_decodes_each_image_once(self, tmp_path, make_image):
        make_image("a.png", solid(8, 8, (5, 5, 5)))
        make_image("b.png", solid(8, 8, (15, 15, 15)))
        calls = []
        lock = threading.Lock()

        def loader(path):
            with lock:
                calls.append(path)
            return open_pixel_source(path)

        index = DatasetIndex(
            [Image("a", "a.png"), Image("b", "b.png")],
            [
                Annotation(str(i), 1, "a" if i % 2 else "b", BBox(2, 2, 3, 3))
                for i in range(20)
            ],
            [],
        )
        aggregator = BorderColorAggregator(
            index,
            tmp_path,
            config=no_progress(workers=8, cache_images=True),
            loader=loader,
        )
        assert aggregator.run() == Color(10, 10, 10)
        assert sorted(p.name for p in calls) == ["a.png", "b.png"]
        assert len(aggregator.cache) == 2


class TestImageCache:
    def test_cached_arrays_are_read_only(self, make_image):
        path = make_image("a.png", solid(4, 4, (1, 2, 3)))
        cache = ImageCache()
        source = cache.get("a", path)
        assert cache.get("a", path) is source
        assert not source.array.flags.writeable

    def test_failed_decode_is_not_cached(self, tmp_path):
        cache = ImageCache()
        with pytest.raises(DecodeError):
            cache.get("a", tmp_path / "missing.png")
        assert len(cache) == 0


def test_open_pixel_source_converts_to_rgb(tmp_path):
    from PIL import Image as PILImage

    path = tmp_path / "gray.png"
    PILImage.new("L", (6, 4), 77).save(path)
    source = open_pixel_source(path)
    assert (source.width, source.height) == (6, 4)
    assert source.get_pixel(5, 3) == (77, 77, 77)


def test_open_pixel_source_oversized_image(tmp_path, monkeypatch):
    from PIL import Image as PILImage

    path = tmp_path / "big.png"
    PILImage.new("RGB", (100, 100), (1, 2, 3)).save(path)
    monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 10)

    with pytest.raises(DecodeError, match="big.png"):
        open_pixel_source(path)


def test_oversized_image_aborts_run(tmp_path, make_image, monkeypatch):
    from PIL import Image as PILImage

    make_image("a.png", solid(100, 100, (1, 2, 3)))
    monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 10)
    index = DatasetIndex(
        [Image("a", "a.png")],
        [Annotation("1", 1, "a", BBox(2, 2, 3, 3))],
        [],
    )
    with pytest.raises(DecodeError):
        dataset_border_mean(index, tmp_path, no_progress())
