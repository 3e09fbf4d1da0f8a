"""
Timeline Module: crossfade scheduling.

- Start offsets with overlap compensation
- Linear fade-in / fade-out gain envelopes
- Render plan construction
"""

from .envelope import GainEnvelope, fade_envelope
from .compositor import (
    Compositor,
    Placement,
    RenderPlan,
    compose,
    normalize_fade,
    start_offsets,
    total_duration,
)

__all__ = [
    "Compositor",
    "GainEnvelope",
    "Placement",
    "RenderPlan",
    "compose",
    "fade_envelope",
    "normalize_fade",
    "start_offsets",
    "total_duration",
]
