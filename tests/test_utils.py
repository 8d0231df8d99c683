"""Tests for the array IO and scaling helpers."""

import numpy as np
import pytest
from PIL import Image

from pixelcrunch.errors import InvalidDimensionsError
from pixelcrunch.utils.loader import load_image, save_image, to_rgba
from pixelcrunch.utils.pixelate import downscale_block_average, downscaled_size
from pixelcrunch.utils.resize import resize_nearest
from pixelcrunch.utils.upscale import upscale_nearest, upscale_to_size


class TestDownscale:
    def test_factor_one_copies(self):
        arr = np.arange(12, dtype=np.uint8).reshape(2, 2, 3)
        out = downscale_block_average(arr, 1)
        np.testing.assert_array_equal(out, arr)
        assert out is not arr

    def test_full_blocks(self):
        arr = np.zeros((4, 4, 1), dtype=np.uint8)
        arr[:2, :2] = 40
        arr[2:, 2:] = 200
        out = downscale_block_average(arr, 2)
        np.testing.assert_array_equal(out[:, :, 0], [[40, 0], [0, 200]])

    def test_partial_blocks_average_covered_pixels_only(self):
        arr = np.array([[[0], [100], [200]]], dtype=np.uint8)
        out = downscale_block_average(arr, 2)
        assert out.shape == (1, 2, 1)
        np.testing.assert_array_equal(out[0, :, 0], [50, 200])

    def test_partial_rows(self):
        arr = np.full((3, 2, 3), 90, dtype=np.uint8)
        arr[2] = 30
        out = downscale_block_average(arr, 2)
        assert out.shape == (2, 1, 3)
        np.testing.assert_array_equal(out[:, 0, 0], [90, 30])

    def test_block_larger_than_image(self):
        arr = np.array([[[10, 20, 30], [30, 40, 50]]], dtype=np.uint8)
        out = downscale_block_average(arr, 8)
        np.testing.assert_array_equal(out, [[[20, 30, 40]]])

    def test_rejects_bad_factor(self):
        with pytest.raises(ValueError):
            downscale_block_average(np.zeros((2, 2, 3), dtype=np.uint8), 0)

    def test_downscaled_size(self):
        assert downscaled_size(13, 17, 4) == (4, 5)
        assert downscaled_size(8, 8, 4) == (2, 2)


class TestUpscale:
    def test_upscale_nearest(self):
        arr = np.array([[[1, 1, 1], [2, 2, 2]]], dtype=np.uint8)
        out = upscale_nearest(arr, 3)
        assert out.shape == (3, 6, 3)
        np.testing.assert_array_equal(out[:, :, 0], [[1, 1, 1, 2, 2, 2]] * 3)

    def test_upscale_to_size_with_block_crops(self):
        small = np.arange(6, dtype=np.uint8).reshape(2, 3, 1)
        out = upscale_to_size(small, 3, 5, block=2)
        assert out.shape == (3, 5, 1)
        np.testing.assert_array_equal(out[:, :, 0], [[0, 0, 1, 1, 2], [0, 0, 1, 1, 2], [3, 3, 4, 4, 5]])

    def test_upscale_to_size_without_block_stretches(self):
        small = np.array([[[10], [20]]], dtype=np.uint8)
        out = upscale_to_size(small, 2, 4)
        np.testing.assert_array_equal(out[:, :, 0], [[10, 10, 20, 20], [10, 10, 20, 20]])

    def test_upscale_to_size_block_too_small(self):
        with pytest.raises(ValueError):
            upscale_to_size(np.zeros((2, 2, 4), dtype=np.uint8), 10, 10, block=2)

    def test_upscale_keeps_exact_colors(self):
        small = np.random.default_rng(5).integers(0, 256, size=(3, 4, 4), dtype=np.uint8)
        out = upscale_to_size(small, 7, 9)
        assert {tuple(p) for p in out.reshape(-1, 4)} <= {tuple(p) for p in small.reshape(-1, 4)}


class TestResize:
    def test_same_size_copies(self):
        arr = np.ones((2, 2, 3), dtype=np.uint8)
        out = resize_nearest(arr, 2, 2)
        np.testing.assert_array_equal(out, arr)
        assert out is not arr

    def test_downsize_samples_centers(self):
        arr = np.arange(4, dtype=np.uint8).reshape(1, 4, 1)
        np.testing.assert_array_equal(resize_nearest(arr, 1, 2)[0, :, 0], [1, 3])

    def test_rejects_empty_target(self):
        with pytest.raises(ValueError):
            resize_nearest(np.ones((2, 2, 3), dtype=np.uint8), 0, 2)


class TestLoader:
    def test_rgba_round_trip(self, tmp_path):
        arr = np.random.default_rng(9).integers(0, 256, size=(5, 4, 4), dtype=np.uint8)
        path = tmp_path / "x.png"
        save_image(arr, path)
        np.testing.assert_array_equal(load_image(path), arr)

    def test_rgb_file_loads_opaque(self, tmp_path):
        path = tmp_path / "rgb.png"
        Image.new("RGB", (3, 2), (10, 20, 30)).save(path)
        arr = load_image(path)
        assert arr.shape == (2, 3, 4)
        assert (arr[:, :, 3] == 255).all()
        assert (arr[:, :, :3] == (10, 20, 30)).all()

    def test_save_rgba_as_jpeg_drops_alpha(self, tmp_path):
        path = tmp_path / "x.jpg"
        save_image(np.zeros((4, 4, 4), dtype=np.uint8), path)
        with Image.open(path) as im:
            assert im.mode == "RGB"

    def test_save_rejects_bad_arrays(self, tmp_path):
        with pytest.raises(TypeError):
            save_image(np.zeros((2, 2, 3), dtype=np.float32), tmp_path / "x.png")
        with pytest.raises(ValueError):
            save_image(np.zeros((2, 2, 2), dtype=np.uint8), tmp_path / "x.png")

    def test_to_rgba(self):
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        assert to_rgba(rgba) is rgba
        out = to_rgba(np.zeros((2, 3, 3), dtype=np.uint8))
        assert out.shape == (2, 3, 4)
        assert (out[:, :, 3] == 255).all()
        out = to_rgba(np.full((2, 2), 7, dtype=np.uint8))
        assert (out[:, :, :3] == 7).all()
        out = to_rgba(np.array([[[300.0, -5.0, 12.4]]]))
        np.testing.assert_array_equal(out[0, 0], [255, 0, 12, 255])

    def test_to_rgba_rejects_bad_shape(self):
        with pytest.raises(InvalidDimensionsError):
            to_rgba(np.zeros((2, 2, 5), dtype=np.uint8))
