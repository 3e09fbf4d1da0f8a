"""
Decode Module: encoded file bytes -> Clip (soundfile).
"""

from .decoder import DecodeError, Decoder, SoundFileDecoder

__all__ = ["DecodeError", "Decoder", "SoundFileDecoder"]
