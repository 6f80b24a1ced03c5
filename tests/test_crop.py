"""Tests for region cropping."""

import numpy as np
import pytest

from conftest import run
from scan2doc.errors import CropError
from scan2doc.models import NormalizedBox
from scan2doc.pipeline.stage_crop import compute_crop_rect, crop_region, crop_region_async
from scan2doc.pipeline.stage_extract import decode_image


def box(*values) -> NormalizedBox:
    return NormalizedBox.from_list(list(values))


class TestComputeCropRect:
    """Tests for pixel rectangle computation."""

    def test_padding_applied(self):
        """A box inside the image gets 5 pixels on every side."""
        # 200x100 image: x 20..100, y 10..50
        assert compute_crop_rect(box(100, 100, 500, 500), 200, 100) == (15, 5, 105, 55)

    def test_full_box_clamped_to_image(self):
        """The full-page box is clamped at the borders."""
        assert compute_crop_rect(box(0, 0, 1000, 1000), 200, 100) == (0, 0, 200, 100)

    def test_clamped_at_right_edge(self):
        """Padding never extends past the image."""
        assert compute_crop_rect(box(0, 900, 1000, 1000), 200, 100) == (175, 0, 200, 100)

    def test_reversed_box_is_degenerate(self):
        """Boxes violating ymin<ymax or xmin<xmax fall back to the full image."""
        assert compute_crop_rect(box(500, 500, 400, 400), 200, 100) is None
        assert compute_crop_rect(box(100, 100, 100, 500), 200, 100) is None

    def test_reversed_box_on_tiny_image(self):
        """Ordering is checked before padding can hide the inversion."""
        assert compute_crop_rect(box(500, 500, 400, 400), 20, 20) is None

    def test_box_outside_image(self):
        """A box starting past the edge leaves nothing to crop."""
        assert compute_crop_rect(box(0, 1100, 1000, 1200), 200, 100) is None

    def test_zero_padding(self):
        """Padding is tunable."""
        assert compute_crop_rect(box(100, 100, 500, 500), 200, 100, padding=0) == (20, 10, 100, 50)


class TestCropRegion:
    """Tests for extracting regions from encoded images."""

    def test_crop_pixels_match_source(self, png_image):
        """The cropped PNG holds exactly the padded source region."""
        data, image = png_image
        result = crop_region(data, box(100, 100, 500, 500), padding=5)

        assert (result.width, result.height) == (90, 50)
        assert np.array_equal(decode_image(result.data), image[5:55, 15:105])
        assert result.data.startswith(b"\x89PNG")
        assert result.is_full_page is False

    def test_full_box_is_whole_image(self, png_image):
        """[0,0,1000,1000] yields the whole image."""
        data, image = png_image
        result = crop_region(data, box(0, 0, 1000, 1000))

        assert (result.width, result.height) == (200, 100)
        assert np.array_equal(decode_image(result.data), image)

    def test_degenerate_box_matches_full_box(self, png_image):
        """A reversed box is byte-for-byte the full-page crop."""
        data, _ = png_image
        full = crop_region(data, box(0, 0, 1000, 1000))
        degenerate = crop_region(data, box(500, 500, 400, 400))

        assert degenerate.data == full.data
        assert degenerate.is_full_page is True

    def test_idempotent(self, png_image):
        """Repeated crops give identical output and leave the input untouched."""
        data, _ = png_image
        original = bytes(data)
        first = crop_region(data, box(200, 300, 800, 700))
        second = run(crop_region_async(data, box(200, 300, 800, 700)))

        assert first == second
        assert data == original

    def test_undecodable_source(self):
        """Garbage input raises CropError."""
        with pytest.raises(CropError, match="load failed"):
            crop_region(b"not an image", box(0, 0, 1000, 1000))
