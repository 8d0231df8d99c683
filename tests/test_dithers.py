"""Unit tests for the dithering algorithms."""

import numpy as np
import pytest

from pixelcrunch.dithers import apply_dither, quantize_indices
from pixelcrunch.dithers.atkinson import ATKINSON_KERNEL, dither_atkinson
from pixelcrunch.dithers.bayer import BAYER_2X2, BAYER_4X4, BAYER_8X8, _bayer_matrix, threshold_map
from pixelcrunch.dithers.diffusion import diffuse
from pixelcrunch.dithers.floyd import FLOYD_STEINBERG_KERNEL, dither_floyd
from pixelcrunch.palette import get_palette
from pixelcrunch.params import DitherMethod

BW = np.array([[255, 255, 255], [0, 0, 0]], dtype=np.float64)
WHITE, BLACK = 0, 1


def _gray_row(*values):
    return np.array([[[v, v, v] for v in values]], dtype=np.float64)


class TestBayerMatrices:
    def test_2x2(self):
        np.testing.assert_array_equal(BAYER_2X2, [[0, 2], [3, 1]])

    def test_4x4(self):
        np.testing.assert_array_equal(
            BAYER_4X4,
            [[0, 8, 2, 10], [12, 4, 14, 6], [3, 11, 1, 9], [15, 7, 13, 5]],
        )

    def test_8x8(self):
        expected = [
            [0, 32, 8, 40, 2, 34, 10, 42],
            [48, 16, 56, 24, 50, 18, 58, 26],
            [12, 44, 4, 36, 14, 46, 6, 38],
            [60, 28, 52, 20, 62, 30, 54, 22],
            [3, 35, 11, 43, 1, 33, 9, 41],
            [51, 19, 59, 27, 49, 17, 57, 25],
            [15, 47, 7, 39, 13, 45, 5, 37],
            [63, 31, 55, 23, 61, 29, 53, 21],
        ]
        np.testing.assert_array_equal(BAYER_8X8, expected)

    def test_matrices_are_read_only(self):
        with pytest.raises(ValueError):
            BAYER_4X4[0, 0] = 99

    def test_rejects_non_power_of_two(self):
        with pytest.raises(ValueError):
            _bayer_matrix(3)

    def test_threshold_map_tiles_and_crops(self):
        T = threshold_map(3, 5, 2)
        assert T.shape == (3, 5)
        assert T[0, 0] == -0.5
        assert T[0, 1] == 0.0
        assert T[2, 4] == -0.5
        assert T[1, 2] == 0.25


class TestOrdered:
    def test_mid_gray_breaks_tie_with_matrix(self):
        work = np.full((4, 4, 3), 128.0)
        idx = quantize_indices(work, BW, DitherMethod.BAYER_4X4, amount=1.0)
        expected = np.where(BAYER_4X4 >= 8, WHITE, BLACK)
        np.testing.assert_array_equal(idx, expected)

    def test_zero_amount_matches_threshold(self):
        rng = np.random.default_rng(7)
        work = rng.integers(0, 256, size=(9, 11, 3)).astype(np.float64)
        pal = get_palette("Sepia").to_array()
        plain = quantize_indices(work, pal, DitherMethod.THRESHOLD)
        for m in (DitherMethod.BAYER_2X2, DitherMethod.BAYER_4X4, DitherMethod.BAYER_8X8):
            np.testing.assert_array_equal(quantize_indices(work, pal, m, amount=0.0), plain)

    def test_leaves_work_untouched(self):
        work = np.full((2, 2, 3), 77.0)
        quantize_indices(work, BW, DitherMethod.BAYER_2X2)
        assert (work == 77.0).all()


class TestErrorDiffusion:
    def test_floyd_weights_sum_to_one(self):
        assert sum(w for _, _, w in FLOYD_STEINBERG_KERNEL) == 1.0

    def test_atkinson_weights_sum_to_three_quarters(self):
        assert sum(w for _, _, w in ATKINSON_KERNEL) == 0.75

    @pytest.mark.parametrize("kernel", [FLOYD_STEINBERG_KERNEL, ATKINSON_KERNEL])
    def test_kernels_only_reach_unvisited_pixels(self, kernel):
        for dx, dy, _ in kernel:
            assert dy > 0 or (dy == 0 and dx > 0)

    def test_floyd_pushes_error_right(self):
        work = _gray_row(128, 128, 128)
        idx = dither_floyd(work, BW)
        # 128 -> white (err -127); 128 - 127*7/16 -> black; then back to white.
        np.testing.assert_array_equal(idx, [[WHITE, BLACK, WHITE]])

    def test_atkinson_drops_part_of_the_error(self):
        work = _gray_row(128, 128, 128)
        idx = dither_atkinson(work, BW)
        np.testing.assert_array_equal(idx, [[WHITE, BLACK, BLACK]])

    def test_zero_amount_matches_threshold(self):
        rng = np.random.default_rng(3)
        src = rng.integers(0, 256, size=(6, 7, 3)).astype(np.float64)
        pal = get_palette("GameBoy").to_array()
        plain = quantize_indices(src.copy(), pal, DitherMethod.THRESHOLD, brightness=10, contrast=30)
        for m in (DitherMethod.FLOYD_STEINBERG, DitherMethod.ATKINSON):
            idx = quantize_indices(src.copy(), pal, m, amount=0.0, brightness=10, contrast=30)
            np.testing.assert_array_equal(idx, plain)

    def test_work_holds_palette_colors_afterwards(self):
        work = _gray_row(10, 200, 90, 180)
        idx = dither_floyd(work, BW)
        np.testing.assert_array_equal(work[0], BW[idx[0]])

    def test_downward_error_reaches_next_row(self):
        # A single column: all error goes to (0, +1).
        work = np.array([[[128.0] * 3], [[128.0] * 3]])
        idx = dither_floyd(work, BW)
        np.testing.assert_array_equal(idx, [[WHITE], [BLACK]])

    def test_atkinson_reaches_two_rows_down(self):
        # 100 -> black (err 100); 1/8 of it lands on both lower pixels.
        # The last pixel ends at 139.06 and flips to white only with the (0, +2) share.
        work = np.array([[[100.0] * 3], [[0.0] * 3], [[125.0] * 3]])
        idx = dither_atkinson(work, BW)
        np.testing.assert_array_equal(idx, [[BLACK], [BLACK], [WHITE]])

    def test_overshoot_is_clamped_when_visited(self):
        pal = np.array([[0, 0, 0], [200, 200, 200]], dtype=np.float64)
        # Row 1 is pushed to 261.875 but diffuses from 255, so row 2 ends at
        # 86 + 6.875 + 6.875 = 99.75 and falls to black. Diffusing from the
        # unclamped value would give 100.61 and pick gray.
        work = np.array([[[255.0] * 3], [[255.0] * 3], [[86.0] * 3]])
        idx = dither_atkinson(work, pal)
        np.testing.assert_array_equal(idx, [[1], [1], [0]])
        np.testing.assert_array_equal(work[:, 0], pal[idx[:, 0]])

    def test_single_pixel_skips_out_of_bounds(self):
        idx = dither_atkinson(_gray_row(60), BW)
        np.testing.assert_array_equal(idx, [[BLACK]])

    def test_requires_float64_buffer(self):
        with pytest.raises(ValueError):
            diffuse(np.zeros((2, 2, 3), dtype=np.uint8), BW, FLOYD_STEINBERG_KERNEL)


class TestApplyDither:
    @pytest.mark.parametrize("method", list(DitherMethod))
    def test_output_colors_come_from_palette(self, method):
        rng = np.random.default_rng(11)
        img = rng.integers(0, 256, size=(10, 12, 3), dtype=np.uint8)
        pal = get_palette("Glitch")
        out = apply_dither(img, pal, method)
        assert out.shape == img.shape
        assert out.dtype == np.uint8
        allowed = {tuple(c) for c in pal.colors}
        assert {tuple(px) for px in out.reshape(-1, 3)} <= allowed

    def test_does_not_modify_input(self):
        img = np.full((3, 3, 3), 128, dtype=np.uint8)
        apply_dither(img, BW, "floyd")
        assert (img == 128).all()

    def test_rejects_non_rgb(self):
        with pytest.raises(ValueError):
            apply_dither(np.zeros((4, 4), dtype=np.uint8), BW, "none")
