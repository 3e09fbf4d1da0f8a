"""
Render Module: offline mixdown of a render plan.

- Linear-interpolated gain envelopes per placement
- Sample-wise summation of overlapping clips
- Output: channel-first float32 ComposedBuffer
"""

from .mixer import NumpyRenderer, RenderService

__all__ = ["NumpyRenderer", "RenderService"]
