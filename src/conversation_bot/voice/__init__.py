"""Voice input and output module boundaries."""

from .interfaces import RecognitionEngine, RecognitionListener, SynthesisEngine, TextModel
from .models import (
    RecognitionAlternative,
    RecognitionErrorEvent,
    RecognitionResult,
    RecognitionUpdate,
    Utterance,
    Voice,
)
from .playback import DEFAULT_CHUNK_SIZE, PlaybackSegmenter, chunk_words
from .recognition import RecognitionCoordinator, Transcript

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "PlaybackSegmenter",
    "RecognitionAlternative",
    "RecognitionCoordinator",
    "RecognitionEngine",
    "RecognitionErrorEvent",
    "RecognitionListener",
    "RecognitionResult",
    "RecognitionUpdate",
    "SynthesisEngine",
    "TextModel",
    "Transcript",
    "Utterance",
    "Voice",
    "chunk_words",
]
