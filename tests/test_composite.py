"""Tests for watermark placement and blending"""

import numpy as np
import pytest

from watermark_profiles.composite import Anchor, composite, resolve_anchor


class TestAnchor:

    @pytest.mark.parametrize("anchor,expected", [
        (Anchor.TOP_LEFT, (5, 5)),
        (Anchor.TOP_RIGHT, (75, 5)),
        (Anchor.BOTTOM_LEFT, (5, 65)),
        (Anchor.BOTTOM_RIGHT, (75, 65)),
    ])
    def test_resolve_corners(self, anchor, expected):
        assert resolve_anchor((100, 80), (20, 10), anchor, 5) == expected

    @pytest.mark.parametrize("text,expected", [
        ("top-right", Anchor.TOP_RIGHT),
        ("right top", Anchor.TOP_RIGHT),
        ("TOP-LEFT", Anchor.TOP_LEFT),
        ("bottom", Anchor.BOTTOM_RIGHT),
        ("left", Anchor.BOTTOM_LEFT),
    ])
    def test_parse_strings(self, text, expected):
        assert Anchor.parse(text) is expected

    def test_flags(self):
        assert Anchor.from_flags(top=False, left=True) is Anchor.BOTTOM_LEFT
        assert Anchor.TOP_RIGHT.is_top and not Anchor.TOP_RIGHT.is_left


class TestComposite:

    def test_opaque_pixel_replaces_colour(self, solid):
        target = solid(10, 10, (10, 20, 30, 255))
        watermark = solid(2, 2, (200, 150, 100, 255))

        result = composite(target, watermark, Anchor.TOP_LEFT, 0)

        assert result is target
        assert target.get(0, 0) == (200, 150, 100, 255)
        assert target.get(1, 1) == (200, 150, 100, 255)
        assert target.get(2, 2) == (10, 20, 30, 255)

    def test_transparent_pixel_leaves_colour(self, solid):
        target = solid(10, 10, (10, 20, 30, 255))
        before = target.copy()

        composite(target, solid(4, 4, (255, 255, 255, 0)), Anchor.BOTTOM_RIGHT, 2)
        assert target == before

    def test_half_alpha_blend(self, solid):
        target = solid(4, 4, (0, 0, 0, 255))
        composite(target, solid(1, 1, (255, 255, 255, 128)), Anchor.TOP_LEFT, 0)

        assert target.get(0, 0) == (128, 128, 128, 255)

    def test_target_alpha_kept(self, solid):
        target = solid(4, 4, (0, 0, 0, 200))
        composite(target, solid(4, 4, (255, 0, 0, 255)), Anchor.TOP_LEFT, 0)

        assert target.get(3, 3) == (255, 0, 0, 200)

    def test_placement_with_padding(self, solid):
        target = solid(20, 20, (0, 0, 0, 255))
        composite(target, solid(3, 3, (255, 255, 255, 255)), Anchor.TOP_RIGHT, 2)

        white = np.argwhere(target.pixels[..., 0] == 255)
        assert white[:, 0].min() == 2 and white[:, 0].max() == 4
        assert white[:, 1].min() == 15 and white[:, 1].max() == 17

    def test_oversized_watermark_clips(self, solid):
        target = solid(10, 10, (0, 0, 0, 255))
        composite(target, solid(30, 30, (255, 255, 255, 255)), Anchor.TOP_LEFT, 0)

        assert target.size == (10, 10)
        assert (target.pixels[..., :3] == 255).all()

    def test_watermark_entirely_outside(self, solid):
        target = solid(10, 10, (0, 0, 0, 255))
        before = target.copy()

        # Offset (10 - 30 - 25, 25) does not overlap at all
        composite(target, solid(30, 30, (255, 255, 255, 255)), Anchor.TOP_RIGHT, 25)
        assert target == before

    def test_partial_overflow(self, solid):
        target = solid(10, 10, (0, 0, 0, 255))
        composite(target, solid(4, 4, (255, 0, 0, 255)), Anchor.TOP_LEFT, 8)

        assert target.get(8, 8) == (255, 0, 0, 255)
        assert target.get(9, 9) == (255, 0, 0, 255)
        assert target.get(7, 7) == (0, 0, 0, 255)

    def test_watermark_untouched(self, solid):
        watermark = solid(3, 3, (1, 2, 3, 100))
        before = watermark.copy()
        composite(solid(5, 5), watermark, "bottom-left", 1)

        assert watermark == before

    def test_none_watermark_is_noop(self, solid):
        target = solid(5, 5, (9, 9, 9, 255))
        before = target.copy()

        assert composite(target, None) is target
        assert target == before

    def test_negative_padding_clips(self, solid):
        target = solid(5, 5, (0, 0, 0, 255))
        composite(target, solid(2, 2, (255, 255, 255, 255)), Anchor.TOP_LEFT, -1)

        # Watermark spans -1..0 on both axes, only its last pixel lands
        assert target.get(0, 0) == (255, 255, 255, 255)
        assert target.get(1, 0) == (0, 0, 0, 255)
        assert target.get(0, 1) == (0, 0, 0, 255)

    def test_negative_padding_bottom_right(self, solid):
        target = solid(5, 5, (0, 0, 0, 255))
        composite(target, solid(3, 3, (255, 255, 255, 255)), Anchor.BOTTOM_RIGHT, -2)

        white = np.argwhere(target.pixels[..., 0] == 255)
        assert white.min() == 4 and white.max() == 4
