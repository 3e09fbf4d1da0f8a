# Crossmix-Headless: crossfade merger for pre-decoded audio clips
# Package: src.crossmix

__version__ = "1.0.0.dev0"
__author__ = "Crossmix Contributors"
__description__ = "Compose clips with linear crossfades and stream them through an MP3 block encoder"

# Module structure:
#   - crossmix.clip      : Clip data type and homogeneity checks
#   - crossmix.timeline  : Timeline math, gain envelopes, render plans
#   - crossmix.render    : Render service (numpy mixdown)
#   - crossmix.encode    : Float -> int16 conversion and streaming MP3 encoding
#   - crossmix.decode    : Decoder service (soundfile)
#   - crossmix.pipeline  : End-to-end merge engine
#   - crossmix.config    : Configuration management
