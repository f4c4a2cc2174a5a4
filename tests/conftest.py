import json

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def sample_data():
    return {
        "images": [
            {"id": 1, "file_name": "000000001.png", "width": 32, "height": 24},
            {"id": 2, "file_name": "000000002.png", "width": 32, "height": 24},
        ],
        "categories": [
            {"id": 1, "name": "person", "supercategory": "person"},
            {"id": 2, "name": "dog", "supercategory": "animal"},
            {"id": 3, "name": "cat", "supercategory": "animal"},
        ],
        "annotations": [
            {"id": 1, "image_id": 1, "category_id": 1, "bbox": [4, 4, 10, 8]},
            {"id": 2, "image_id": 1, "category_id": 2, "bbox": [20.7, 10.2, 6.9, 5.5]},
            {"id": 3, "image_id": 2, "category_id": 1, "bbox": [2, 3, 12, 12]},
            {"id": 4, "image_id": 2, "category_id": 3, "bbox": [25, 15, 7, 9]},
        ],
    }


def write_image(path, array):
    Image.fromarray(np.asarray(array, dtype=np.uint8)).save(path)


def solid(width, height, color):
    array = np.zeros((height, width, 3), dtype=np.uint8)
    array[:, :] = color
    return array


@pytest.fixture
def image_dir(tmp_path, sample_data):
    d = tmp_path / "images"
    d.mkdir()
    write_image(d / "000000001.png", solid(32, 24, (10, 20, 30)))
    write_image(d / "000000002.png", solid(32, 24, (200, 100, 50)))
    return d


@pytest.fixture
def make_image(tmp_path):
    def _make(name, array):
        path = tmp_path / name
        write_image(path, array)
        return path

    return _make


@pytest.fixture
def coco_path(tmp_path, sample_data):
    p = tmp_path / "instances.json"
    p.write_text(json.dumps(sample_data, indent=2))
    return p
