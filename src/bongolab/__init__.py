"""BongoLab - turn still photos into drumming bongo cat GIFs."""

__version__: str = "0.1.0"
__author__: str = "BongoLab Team"

# Public re-exports for convenience ---------------------------------------------------

# NOTE: keep imports lightweight; the HTTP service is imported on demand.

from .encoder import AnimationParameters, GifSequenceEncoder, encode
from .meta import SourceImage, decode_image
from .pipeline import BongoPipeline, process_photo
from .synthesis import Frame, FrameSynthesizer, synthesize

__all__ = [
    "AnimationParameters",
    "BongoPipeline",
    "Frame",
    "FrameSynthesizer",
    "GifSequenceEncoder",
    "SourceImage",
    "decode_image",
    "encode",
    "process_photo",
    "synthesize",
]
