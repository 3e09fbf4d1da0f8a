"""
Unit tests for the numpy render service.
"""

import numpy as np
import pytest

from crossmix.clip import Clip
from crossmix.render import NumpyRenderer, RenderService
from crossmix.timeline import Compositor, Placement, compose
from conftest import make_clip


@pytest.fixture
def renderer():
    return NumpyRenderer()


class TestNumpyRenderer:
    """Test mixdown of placements."""

    def test_satisfies_protocol(self, renderer):
        assert isinstance(renderer, RenderService)

    def test_concatenation_without_fade(self, renderer):
        clips = [make_clip(1.0, 0.25), make_clip(1.0, -0.5)]
        plan = compose(clips, 0.0)
        out = Compositor(renderer).render(plan)

        assert out.shape == (1, 2000)
        assert out.dtype == np.float32
        np.testing.assert_allclose(out[0, :1000], 0.25)
        np.testing.assert_allclose(out[0, 1000:], -0.5)

    def test_crossfade_sums_to_unity(self, renderer):
        """Linear fade-out + fade-in of equal constant clips stays flat."""
        clips = [make_clip(2.0, 0.5), make_clip(2.0, 0.5)]
        plan = compose(clips, 1.0)
        out = Compositor(renderer).render(plan)

        assert out.shape == (1, 3000)
        np.testing.assert_allclose(out[0], 0.5, atol=1e-5)

    def test_fade_ramp_values(self, renderer):
        clips = [make_clip(2.0, 1.0), make_clip(2.0, 0.0)]
        plan = compose(clips, 1.0)
        out = Compositor(renderer).render(plan)

        # First clip fades out over [1.0s, 2.0s]
        assert out[0, 500] == pytest.approx(1.0)
        assert out[0, 1500] == pytest.approx(0.5, abs=1e-3)
        assert out[0, 1999] == pytest.approx(0.001, abs=1e-3)

    def test_overlap_not_limited(self, renderer):
        """Overlaps sum without a limiter."""
        clips = [make_clip(1.0, 0.9), make_clip(1.0, 0.9)]
        plan = compose(clips, 0.0)
        second = plan.placements[1]
        placements = (plan.placements[0], Placement(clip=second.clip, start=0.0, envelope=second.envelope))
        out = renderer.render(1, 1000, 1000, placements)

        np.testing.assert_allclose(out[0], 1.8, atol=1e-6)

    def test_truncates_past_end(self, renderer):
        clip = make_clip(1.0, 0.5)
        plan = compose([clip, make_clip(1.0, 0.5)], 0.0)
        out = renderer.render(1, 1500, 1000, plan.placements)

        assert out.shape == (1, 1500)
        np.testing.assert_allclose(out[0], 0.5)

    def test_stereo_channels_independent(self, renderer):
        left_right = np.vstack([np.full(1000, 0.1), np.full(1000, -0.2)])
        clips = [Clip(left_right, 1000), Clip(left_right, 1000)]
        out = Compositor(renderer).render(compose(clips, 0.0))

        assert out.shape == (2, 2000)
        np.testing.assert_allclose(out[0], 0.1, atol=1e-6)
        np.testing.assert_allclose(out[1], -0.2, atol=1e-6)

    def test_rejects_rate_mismatch(self, renderer):
        plan = compose([make_clip(1.0), make_clip(1.0)], 0.0)

        with pytest.raises(ValueError):
            renderer.render(1, 2000, 2000, plan.placements)

    def test_empty_target(self, renderer):
        plan = compose([make_clip(1.0), make_clip(1.0)], 0.0)
        out = renderer.render(1, 0, 1000, plan.placements)

        assert out.shape == (1, 0)

    def test_fade_longer_than_clips_renders_finite(self, renderer):
        """Clips shorter than the fade start before zero and still render."""
        clips = [make_clip(0.5), make_clip(0.5), make_clip(2.0)]
        plan = compose(clips, 1.0)
        out = Compositor(renderer).render(plan)

        assert plan.starts == pytest.approx([0.0, -0.5, -1.0])
        assert out.shape == (1, 1000)
        assert np.all(np.isfinite(out))

    def test_mono_duplicated_into_stereo(self, renderer):
        plan = compose([make_clip(1.0, 0.25), make_clip(1.0, 0.25)], 0.0)
        out = Compositor(renderer).render(plan, channels=2)

        assert out.shape == (2, 2000)
        np.testing.assert_array_equal(out[0], out[1])
        np.testing.assert_allclose(out[1], 0.25)
