"""Plain data exchanged between the voice capabilities and the core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


@dataclass(slots=True, frozen=True)
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


@dataclass(slots=True, frozen=True)
class RecognitionResult:
    """One recognized phrase; the recognizer will not revise it once ``is_final``."""

    alternatives: tuple[RecognitionAlternative, ...]
    is_final: bool = False

    @property
    def transcript(self) -> str:
        return self.alternatives[0].transcript if self.alternatives else ""


@dataclass(slots=True, frozen=True)
class RecognitionUpdate:
    """Incremental recognition event.

    ``results`` holds every result of the session so far; only the entries
    from ``result_index`` onwards changed since the previous update.
    """

    results: tuple[RecognitionResult, ...]
    result_index: int = 0

    def changed(self) -> tuple[RecognitionResult, ...]:
        return self.results[self.result_index :]


@dataclass(slots=True, frozen=True)
class RecognitionErrorEvent:
    error: str
    message: str = ""


@dataclass(slots=True, frozen=True)
class Voice:
    id: str
    name: str
    languages: tuple[str, ...] = ()


@dataclass(slots=True)
class Utterance:
    """One unit of text submitted to the synthesis capability."""

    text: str
    voice: Voice | None = None
    rate: float = 1.0
    on_end: Callable[[], None] | None = field(default=None, repr=False)

    def finished(self) -> None:
        if self.on_end is not None:
            self.on_end()
