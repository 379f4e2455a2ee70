"""
Tests for compositing elevation, color and shade layers into pixel buffers.
"""

import pytest
import numpy as np

from src.dem_viewer.color_mapping import elevation_colormap, gradient_color
from src.dem_viewer.exceptions import ConfigError, IoError, ParseError
from src.dem_viewer.hillshade import LightSource, compute_hillshade
from src.dem_viewer.rendering import (
    PixelBuffer,
    RenderMode,
    blend_with_hillshade,
    compose,
    render,
)

NODATA = -99999.0
ALL_MODES = ["grayscale", "color", "hillshade", "color+hillshade"]


class TestRenderMode:
    """Tests for RenderMode parsing."""

    @pytest.mark.parametrize("name", ALL_MODES)
    def test_parses_each_mode(self, name):
        """Every documented mode name resolves."""
        assert RenderMode.parse(name).value == name

    def test_case_insensitive(self):
        """Mode names ignore case and surrounding whitespace."""
        assert RenderMode.parse(" Color+Hillshade ") is RenderMode.COLOR_HILLSHADE

    def test_unknown_mode_raises(self):
        """Unsupported modes are configuration errors."""
        with pytest.raises(ConfigError, match="sepia"):
            RenderMode.parse("sepia")

    def test_non_string_raises(self):
        """Non-string modes are rejected."""
        with pytest.raises(ConfigError):
            RenderMode.parse(3)

    def test_layer_requirements(self):
        """Each mode declares which layers it needs."""
        assert not RenderMode.GRAYSCALE.needs_color and not RenderMode.GRAYSCALE.needs_shade
        assert RenderMode.COLOR.needs_color and not RenderMode.COLOR.needs_shade
        assert RenderMode.HILLSHADE.needs_shade and not RenderMode.HILLSHADE.needs_color
        assert RenderMode.COLOR_HILLSHADE.needs_color and RenderMode.COLOR_HILLSHADE.needs_shade


class TestPixelBuffer:
    """Tests for PixelBuffer."""

    def test_dimensions_and_rows(self):
        """Rows are yielded in row-major order."""
        pixels = np.arange(18, dtype=np.uint8).reshape(2, 3, 3)
        buffer = PixelBuffer(pixels=pixels)

        assert buffer.width == 3
        assert buffer.height == 2
        assert len(buffer) == 6
        rows = list(buffer.to_rows())
        assert rows[0] == (0, 1, 2)
        assert rows[3] == (9, 10, 11)

    def test_pixels_read_only(self):
        """The pixel array cannot be modified."""
        buffer = PixelBuffer(pixels=np.zeros((1, 1, 3), dtype=np.uint8))

        with pytest.raises(ValueError):
            buffer.pixels[0, 0, 0] = 1

    def test_rejects_wrong_shape(self):
        """Only (H, W, 3) uint8 arrays are accepted."""
        with pytest.raises(ValueError):
            PixelBuffer(pixels=np.zeros((2, 2), dtype=np.uint8))
        with pytest.raises(ValueError):
            PixelBuffer(pixels=np.zeros((2, 2, 3), dtype=np.float64))


class TestCompose:
    """Tests for compose function."""

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_dimensions_match_field(self, sample_field, mode):
        """One pixel per cell in every mode."""
        buffer = compose(sample_field, mode)

        assert buffer.width == sample_field.width
        assert buffer.height == sample_field.height
        assert len(buffer) == sample_field.width * sample_field.height
        assert buffer.mode is RenderMode.parse(mode)

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_no_data_is_black(self, sample_field, mode):
        """No-data cells are black in every mode."""
        buffer = compose(sample_field, mode)

        assert buffer.pixels[5, 7].tolist() == [0, 0, 0]
        assert buffer.pixels[10, 12].tolist() == [0, 0, 0]

    @pytest.mark.parametrize("mode", ["hillshade", "color+hillshade"])
    def test_border_is_black_in_shaded_modes(self, field_factory, mode):
        """Shaded modes blacken the whole border regardless of elevation."""
        data = np.full((6, 7), 500.0)
        data[2:4, 2:5] = 900.0
        buffer = compose(field_factory(data), mode)
        pixels = buffer.pixels

        for edge in (pixels[0], pixels[-1], pixels[:, 0], pixels[:, -1]):
            assert not edge.any()
        assert pixels[1:-1, 1:-1].any()

    def test_grayscale_bounds(self, field_factory):
        """Min elevation is 0, max 255, others strictly between, R=G=B."""
        buffer = compose(field_factory([[10.0, 40.0], [70.0, 100.0]]), "grayscale")
        pixels = buffer.pixels

        assert pixels[0, 0].tolist() == [0, 0, 0]
        assert pixels[1, 1].tolist() == [255, 255, 255]
        assert 0 < pixels[0, 1, 0] < pixels[1, 0, 0] < 255
        assert np.all(pixels[..., 0] == pixels[..., 1])
        assert np.all(pixels[..., 1] == pixels[..., 2])

    def test_color_bounds(self, field_factory):
        """Min elevation gets the ramp start, max the ramp end."""
        buffer = compose(field_factory([[10.0, 55.0, 100.0]]), "color")

        assert np.array_equal(buffer.pixels[0, 0], gradient_color(0.0))
        assert np.array_equal(buffer.pixels[0, 2], gradient_color(1.0))

    def test_near_extreme_elevations_stay_strictly_inside(self, field_factory):
        """Values just above the min or just below the max never reach the ends."""
        field = field_factory([[0.0, 0.1, 999.0, 999.9, 1000.0]])
        gray = compose(field, "grayscale").pixels[0, :, 0]
        color = compose(field, "color").pixels[0]

        assert gray[0] == 0
        assert gray[-1] == 255
        assert np.all((gray[1:-1] > 0) & (gray[1:-1] < 255))
        for inner in color[1:-1]:
            assert not np.array_equal(inner, color[0])
            assert not np.array_equal(inner, color[-1])

    def test_flat_field_color_is_uniform_midpoint(self, field_factory):
        """A flat field renders the midpoint color without errors."""
        buffer = compose(field_factory(np.full((4, 4), 12.0)), "color")

        assert np.all(buffer.pixels == gradient_color(0.5))

    def test_hillshade_is_gray_intensity(self, sample_field):
        """Hillshade mode emits the shade intensity on all channels."""
        shade = compute_hillshade(sample_field)
        buffer = compose(sample_field, "hillshade")

        valid = ~np.isnan(shade)
        for channel in range(3):
            assert np.array_equal(buffer.pixels[..., channel][valid], shade[valid].astype(np.uint8))
        assert not buffer.pixels[~valid].any()

    def test_composite_consistency(self, sample_field):
        """Composite channel equals round(color * shade / 255) where both layers are valid."""
        colors = elevation_colormap(sample_field).astype(np.float64)
        shade = compute_hillshade(sample_field)
        buffer = compose(sample_field, "color+hillshade")

        valid = ~np.isnan(shade) & sample_field.valid_mask
        expected = np.rint(colors[valid] * shade[valid][:, np.newaxis] / 255.0)
        assert np.array_equal(buffer.pixels[valid], expected.astype(np.uint8))

    def test_light_source_is_used(self, sample_field):
        """A different sun position changes the shaded output."""
        default = compose(sample_field, "hillshade")
        low_east = compose(sample_field, "hillshade", light=LightSource(azimuth=90.0, altitude=20.0))

        assert not np.array_equal(default.pixels, low_east.pixels)

    def test_unknown_mode_raises(self, sample_field):
        """compose rejects unsupported modes."""
        with pytest.raises(ConfigError):
            compose(sample_field, "sepia")

    def test_field_not_modified(self, sample_field):
        """Rendering leaves the input untouched."""
        before = sample_field.data.copy()
        for mode in ALL_MODES:
            compose(sample_field, mode)

        assert np.array_equal(sample_field.data, before)


class TestBlendWithHillshade:
    """Tests for blend_with_hillshade."""

    def test_multiplicative(self):
        """Channels scale by shade / 255 and round."""
        colors = np.array([[[200, 100, 51]]], dtype=np.uint8)
        shade = np.array([[128.0]])

        blended = blend_with_hillshade(colors, shade)

        assert blended[0, 0].tolist() == [100, 50, 26]

    def test_nan_shade_is_black(self):
        """Unshaded cells are black."""
        colors = np.full((1, 2, 3), 255, dtype=np.uint8)
        shade = np.array([[np.nan, 255.0]])

        blended = blend_with_hillshade(colors, shade)

        assert blended[0, 0].tolist() == [0, 0, 0]
        assert blended[0, 1].tolist() == [255, 255, 255]


class TestRender:
    """Tests for the file-level render entry point."""

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_renders_file(self, sample_asc_file, mode):
        """render() loads the file and composes it."""
        buffer = render(sample_asc_file, mode)

        assert (buffer.width, buffer.height) == (4, 3)
        assert buffer.pixels[1, 2].tolist() == [0, 0, 0]

    def test_sepia_fails_before_reading(self, tmp_path):
        """Mode errors surface before the file is touched."""
        with pytest.raises(ConfigError):
            render(tmp_path / "does-not-exist.asc", "sepia")

    def test_unknown_colormap_fails_before_reading(self, tmp_path):
        """Colormap errors surface before the file is touched."""
        with pytest.raises(ConfigError):
            render(tmp_path / "does-not-exist.asc", "color", cmap_name="nope")

    def test_missing_file(self, tmp_path):
        """Missing input raises IoError."""
        with pytest.raises(IoError):
            render(tmp_path / "missing.asc", "grayscale")

    def test_short_file(self, asc_writer, tmp_path):
        """A grid with too few rows raises ParseError and no buffer."""
        path = asc_writer(np.ones((3, 3)))
        lines = path.read_text().splitlines()
        path.write_text("\n".join(lines[:-1]) + "\n")

        with pytest.raises(ParseError):
            render(path, "color")

    def test_written_grid_round_trip_dimensions(self, asc_writer):
        """A W x H grid written to disk renders W x H pixels."""
        path = asc_writer(np.arange(35, dtype=np.float64).reshape(5, 7), cell_size=25.0)
        buffer = render(path, "color+hillshade")

        assert buffer.pixels.shape == (5, 7, 3)
