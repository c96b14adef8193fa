"""Contracts for speech recognition, synthesis and text generation."""

from __future__ import annotations

from typing import Callable, Protocol

from .models import RecognitionErrorEvent, RecognitionUpdate, Utterance, Voice


class RecognitionListener(Protocol):
    """Receives session notifications from a recognition engine."""

    def handle_start(self) -> None: ...

    def handle_result(self, update: RecognitionUpdate) -> None: ...

    def handle_end(self) -> None: ...

    def handle_error(self, event: RecognitionErrorEvent) -> None: ...


class RecognitionEngine(Protocol):
    """Converts live microphone speech into incremental transcript events."""

    def bind(self, listener: RecognitionListener) -> None:
        """Register the listener that receives session notifications."""

    def start(self) -> None:
        """Begin a recognition session; ``handle_start`` follows."""

    def stop(self) -> None:
        """Finish the session gracefully; ``handle_end`` follows."""

    def abort(self) -> None:
        """Drop the session immediately."""


class SynthesisEngine(Protocol):
    """Speaks short utterances and reports completion per utterance."""

    @property
    def speaking(self) -> bool:
        """Whether an utterance is active or queued."""

    def speak(self, utterance: Utterance) -> None:
        """Queue an utterance; ``utterance.on_end`` fires once it finished."""

    def cancel(self) -> None:
        """Drop active and queued utterances immediately."""

    @property
    def voices_ready(self) -> bool:
        """Whether the voice list finished loading, even if it came back empty."""

    def get_voices(self) -> list[Voice]:
        """Return the voices loaded so far (possibly none yet)."""

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked when the voice list gets populated."""


class TextModel(Protocol):
    """Remote text-generation capability."""

    async def generate(self, prompt: str) -> str:
        """Return the completion text for ``prompt``."""
