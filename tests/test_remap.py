"""Tests for resampling an image through a coordinate map."""

import numpy as np
import pytest
from scipy import ndimage

import warpgrid
from warpgrid import BorderMode, CoordinateMap, Interpolation, RemapConfig
from warpgrid.errors import InvalidParameterError
from warpgrid.remap import remap, warp
from conftest import random_image

KERNELS = [Interpolation.NEAREST, Interpolation.BILINEAR]


def single_point_map(x, y):
    return CoordinateMap(np.array([[x]], np.float32), np.array([[y]], np.float32))


# =============================================================================
# Concrete scenarios
# =============================================================================

class TestIdentity:
    def test_4x4_ramp_identity(self, ramp_4x4):
        cmap = warpgrid.map_rst(ramp_4x4.shape, angle=0.0)
        out = remap(ramp_4x4, cmap, Interpolation.NEAREST, BorderMode.CONSTANT, 9)
        np.testing.assert_array_equal(out, ramp_4x4)

    @pytest.mark.parametrize("border_mode", ["constant", "replicate"])
    def test_identity_map_copies_color_image(self, color_image, border_mode):
        cmap = CoordinateMap.identity(*color_image.shape[:2])
        out = remap(color_image, cmap, "nearest", border_mode)
        np.testing.assert_array_equal(out, color_image)

    def test_bilinear_replicate_identity(self, color_image):
        """The last row and column are clamped onto the second-to-last ones."""
        height, width = color_image.shape[:2]
        cmap = CoordinateMap.identity(height, width)
        out = remap(color_image, cmap, "bilinear", "replicate")
        rows = np.minimum(np.arange(height), height - 2)
        cols = np.minimum(np.arange(width), width - 2)
        np.testing.assert_array_equal(out, color_image[rows][:, cols])

    def test_bilinear_constant_identity_borders_last_row_and_column(self, ramp_4x4):
        cmap = CoordinateMap.identity(4, 4)
        out = remap(ramp_4x4, cmap, "bilinear", "constant", border_value=99)
        np.testing.assert_array_equal(out[:3, :3], ramp_4x4[:3, :3])
        assert np.all(out[3, :] == 99)
        assert np.all(out[:, 3] == 99)


# =============================================================================
# Kernel agreement and interpolation values
# =============================================================================

class TestInterpolation:
    @pytest.mark.parametrize("border_mode", ["constant", "replicate"])
    def test_kernels_agree_on_grid_points(self, border_mode):
        image = random_image((8, 8, 3))
        cmap = single_point_map(3.0, 4.0)
        nearest = remap(image, cmap, "nearest", border_mode)
        bilinear = remap(image, cmap, "bilinear", border_mode)
        np.testing.assert_array_equal(nearest, bilinear)
        np.testing.assert_array_equal(nearest[0, 0], image[4, 3])

    def test_nearest_truncates(self, ramp_4x4):
        out = remap(ramp_4x4, single_point_map(2.9, 1.6), "nearest")
        assert out[0, 0] == ramp_4x4[1, 2]

    def test_bilinear_midpoint(self):
        image = np.array([[0, 10], [20, 30]], np.float32)
        image = np.pad(image, ((0, 1), (0, 1)), mode="edge")
        out = remap(image, single_point_map(0.5, 0.5), "bilinear")
        np.testing.assert_allclose(out[0, 0], 15.0)

    def test_bilinear_truncates_integer_output(self):
        image = np.array([[0, 10, 10], [0, 10, 10], [0, 10, 10]], np.uint8)
        out = remap(image, single_point_map(0.57, 0.0), "bilinear")
        assert out.dtype == np.uint8
        assert out[0, 0] == 5

    def test_bilinear_matches_scipy(self, float_image):
        rng = np.random.default_rng(3)
        height, width = float_image.shape
        map_x = rng.uniform(0, width - 1.01, size=(15, 25)).astype(np.float32)
        map_y = rng.uniform(0, height - 1.01, size=(15, 25)).astype(np.float32)
        out = remap(float_image, CoordinateMap(map_x, map_y), "bilinear", "constant")
        expected = ndimage.map_coordinates(
            float_image, [map_y.astype(np.float64), map_x.astype(np.float64)], order=1)
        np.testing.assert_allclose(out, expected, rtol=1e-6, atol=1e-6)

    def test_channels_are_independent(self, color_image):
        rng = np.random.default_rng(4)
        map_x = rng.uniform(-2, 18, size=(6, 9)).astype(np.float32)
        map_y = rng.uniform(-2, 14, size=(6, 9)).astype(np.float32)
        cmap = CoordinateMap(map_x, map_y)
        out = remap(color_image, cmap, "bilinear", "replicate")
        assert out.shape == (6, 9, 3)
        for ch in range(3):
            np.testing.assert_array_equal(
                out[..., ch], remap(color_image[..., ch], cmap, "bilinear", "replicate"))


# =============================================================================
# Border handling
# =============================================================================

class TestBorders:
    @pytest.mark.parametrize("interpolation", KERNELS)
    def test_negative_half_pixel(self, ramp_4x4, interpolation):
        cmap = single_point_map(-0.5, 2.0)
        constant = remap(ramp_4x4, cmap, interpolation, BorderMode.CONSTANT, border_value=42)
        replicate = remap(ramp_4x4, cmap, interpolation, BorderMode.REPLICATE)
        assert constant[0, 0] == 42
        assert replicate[0, 0] == ramp_4x4[2, 0]

    @pytest.mark.parametrize("interpolation", KERNELS)
    def test_sentinel_gives_border_value(self, interpolation):
        image = random_image((6, 6, 3))
        cmap = CoordinateMap.from_arrays(
            np.array([[-1, 2]], np.float32), np.array([[-1, 3]], np.float32))
        out = remap(image, cmap, interpolation, "constant", border_value=9)
        np.testing.assert_array_equal(out[0, 0], [9, 9, 9])
        np.testing.assert_array_equal(out[0, 1], image[3, 2])

    @pytest.mark.parametrize("interpolation", KERNELS)
    def test_invalid_cell_replicates_origin(self, ramp_4x4, interpolation):
        cmap = CoordinateMap(
            np.array([[2.0]], np.float32), np.array([[3.0]], np.float32), np.array([[False]]))
        out = remap(ramp_4x4, cmap, interpolation, "replicate")
        assert out[0, 0] == ramp_4x4[0, 0]

    @pytest.mark.parametrize("interpolation", KERNELS)
    def test_nan_coordinate_is_out_of_range(self, ramp_4x4, interpolation):
        cmap = CoordinateMap(np.array([[np.nan]]), np.array([[1.0]]), np.array([[True]]))
        out = remap(ramp_4x4, cmap, interpolation, "constant", border_value=3)
        assert out[0, 0] == 3

    def test_nearest_constant_upper_edge(self, ramp_4x4):
        assert remap(ramp_4x4, single_point_map(3.99, 0.0), "nearest", "constant", 99)[0, 0] == 3
        assert remap(ramp_4x4, single_point_map(4.0, 0.0), "nearest", "constant", 99)[0, 0] == 99

    def test_bilinear_constant_upper_edge(self, ramp_4x4):
        assert remap(ramp_4x4, single_point_map(2.0, 0.0), "bilinear", "constant", 99)[0, 0] == 2
        assert remap(ramp_4x4, single_point_map(3.0, 0.0), "bilinear", "constant", 99)[0, 0] == 99

    def test_nearest_replicate_clamps_far_coordinates(self, ramp_4x4):
        cmap = CoordinateMap(
            np.array([[-100.0, 100.0]], np.float32), np.array([[100.0, -100.0]], np.float32))
        out = remap(ramp_4x4, cmap, "nearest", "replicate")
        np.testing.assert_array_equal(out, [[ramp_4x4[3, 0], ramp_4x4[0, 3]]])

    def test_bilinear_replicate_clamps_to_second_last(self, ramp_4x4):
        """Past the last column, bilinear replicate samples column W-2."""
        out = remap(ramp_4x4, single_point_map(10.0, 1.0), "bilinear", "replicate")
        assert out[0, 0] == ramp_4x4[1, 2]

    def test_bilinear_replicate_keeps_last_interval(self):
        image = np.array([[0, 10, 20, 30]] * 4, np.float64)
        out = remap(image, single_point_map(2.5, 1.0), "bilinear", "replicate")
        np.testing.assert_allclose(out[0, 0], 25.0)

    @pytest.mark.parametrize("interpolation", KERNELS)
    @pytest.mark.parametrize("shape", [(1, 1), (1, 5), (5, 1)])
    def test_degenerate_source_never_reads_outside(self, interpolation, shape):
        image = np.arange(np.prod(shape), dtype=np.float32).reshape(shape) + 1
        cmap = CoordinateMap(
            np.array([[0.0, 0.5, 7.0, -3.0]], np.float32),
            np.array([[0.0, 0.5, 7.0, -3.0]], np.float32))
        out = remap(image, cmap, interpolation, "replicate")
        assert np.all(np.isin(out, image) | ((out >= image.min()) & (out <= image.max())))


# =============================================================================
# Purity and argument handling
# =============================================================================

class TestArguments:
    def test_inputs_not_modified(self, color_image):
        original = color_image.copy()
        cmap = warpgrid.map_rst(color_image.shape, angle=0.4)
        map_x = cmap.map_x.copy()
        out = remap(color_image, cmap, "bilinear", "replicate")
        np.testing.assert_array_equal(color_image, original)
        np.testing.assert_array_equal(cmap.map_x, map_x)
        assert not np.shares_memory(out, color_image)

    def test_output_shape_follows_map(self, color_image):
        cmap = CoordinateMap.identity(5, 7)
        assert remap(color_image, cmap).shape == (5, 7, 3)
        assert remap(color_image[..., 0], cmap).shape == (5, 7)

    def test_isolated_border_rejected(self, ramp_4x4):
        with pytest.raises(InvalidParameterError):
            remap(ramp_4x4, CoordinateMap.identity(4, 4), border_mode=BorderMode.ISOLATED)

    @pytest.mark.parametrize("kwargs", [
        dict(interpolation="bicubic"),
        dict(border_mode="wrap"),
        dict(border_value=np.inf),
    ])
    def test_bad_options_rejected(self, ramp_4x4, kwargs):
        with pytest.raises(InvalidParameterError):
            remap(ramp_4x4, CoordinateMap.identity(4, 4), **kwargs)

    @pytest.mark.parametrize("dtype, border_value", [
        (np.uint8, 256), (np.uint8, 300), (np.uint8, -1), (np.int16, 40000)])
    def test_border_value_outside_dtype_rejected(self, dtype, border_value):
        """A fill value the source dtype cannot hold must not wrap around."""
        src = np.zeros((4, 4), dtype)
        cmap = CoordinateMap.from_arrays(np.full((1, 2), -5.0), np.zeros((1, 2)))
        with pytest.raises(InvalidParameterError):
            remap(src, cmap, border_value=border_value)

    def test_border_value_at_dtype_limits(self):
        src = np.zeros((4, 4), np.uint8)
        cmap = CoordinateMap.from_arrays(np.full((1, 2), -5.0), np.zeros((1, 2)))
        np.testing.assert_array_equal(remap(src, cmap, border_value=255), 255)
        np.testing.assert_array_equal(remap(src.astype(np.float32), cmap, border_value=300), 300)

    def test_empty_source_rejected(self):
        with pytest.raises(InvalidParameterError):
            remap(np.zeros((0, 4), np.uint8), CoordinateMap.identity(2, 2))

    def test_raw_arrays_rejected(self, ramp_4x4):
        with pytest.raises(InvalidParameterError):
            remap(ramp_4x4, (np.zeros((2, 2)), np.zeros((2, 2))))

    def test_warp_uses_config(self, ramp_4x4):
        config = RemapConfig(
            interpolation=Interpolation.BILINEAR, border_mode=BorderMode.CONSTANT, border_value=77)
        out = warp(ramp_4x4, CoordinateMap.identity(4, 4), config)
        assert out[3, 3] == 77
        assert out[1, 1] == ramp_4x4[1, 1]
