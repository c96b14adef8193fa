"""Recognition session bookkeeping: transcript accumulation across updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from conversation_bot.errors import RecognitionSessionError, RecognitionUnavailable

from .interfaces import RecognitionEngine
from .models import RecognitionErrorEvent, RecognitionUpdate


@dataclass(slots=True)
class Transcript:
    """Finalized text plus the provisional phrase currently being uttered."""

    finalized: str = ""
    interim: str = ""

    def reset(self) -> None:
        self.finalized = ""
        self.interim = ""

    def apply(self, update: RecognitionUpdate) -> None:
        finalized_parts: list[str] = []
        interim_parts: list[str] = []
        for result in update.changed():
            if result.is_final:
                finalized_parts.append(result.transcript + " ")
            else:
                interim_parts.append(result.transcript)

        self.finalized += "".join(finalized_parts)
        self.interim = "".join(interim_parts)

    @property
    def display(self) -> str:
        return self.finalized + self.interim


class RecognitionCoordinator:
    """Owns the lifecycle of one recognition session at a time."""

    def __init__(self, engine: RecognitionEngine | None, *, logger: logging.Logger | None = None) -> None:
        self._engine = engine
        self._logger = logger or logging.getLogger("conversation_bot.recognition")
        self._transcript = Transcript()
        self._listening = False
        self._last_error: RecognitionSessionError | None = None
        self._transcript_listeners: list[Callable[[str], None]] = []
        if engine is not None:
            engine.bind(self)

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def finalized_text(self) -> str:
        return self._transcript.finalized

    @property
    def interim_text(self) -> str:
        return self._transcript.interim

    @property
    def display_text(self) -> str:
        return self._transcript.display

    @property
    def last_error(self) -> RecognitionSessionError | None:
        return self._last_error

    def on_transcript_ready(self, callback: Callable[[str], None]) -> None:
        """Register a callback receiving the finalized transcript when a session ends."""
        self._transcript_listeners.append(callback)

    def start(self) -> RecognitionUnavailable | None:
        """Start a new session, returning the failure instead of raising it."""
        if self._engine is None:
            failure = RecognitionUnavailable("Speech recognition is not supported on this platform.")
            self._logger.error("recognition_unavailable")
            return failure

        if self._listening:
            self._logger.info("recognition_start_ignored", extra={"reason": "already_listening"})
            return None

        self._transcript.reset()
        self._last_error = None
        # The engine confirms through handle_start; mark early so a second start() is rejected.
        self._listening = True
        try:
            self._engine.start()
        except Exception as exc:  # noqa: BLE001 - a failed start is reported like a missing engine.
            self._listening = False
            self._logger.exception("recognition_start_failed")
            return RecognitionUnavailable(f"Speech recognition failed to start: {exc}")
        self._logger.info("recognition_started")
        return None

    def stop(self) -> None:
        if self._engine is not None and self._listening:
            self._engine.stop()

    def abort(self) -> None:
        if self._engine is not None:
            self._engine.abort()
        self._listening = False
        self._transcript.interim = ""

    def edit(self, text: str) -> None:
        """Replace the finalized transcript with user-edited text."""
        if self._listening:
            self._logger.info("transcript_edit_ignored", extra={"reason": "listening"})
            return
        self._transcript.finalized = text
        self._transcript.interim = ""

    def handle_start(self) -> None:
        self._listening = True

    def handle_result(self, update: RecognitionUpdate) -> None:
        self._transcript.apply(update)
        self._logger.debug(
            "recognition_result",
            extra={"finalized": self._transcript.finalized, "interim": self._transcript.interim},
        )

    def handle_end(self) -> None:
        self._logger.info("recognition_ended", extra={"finalized": self._transcript.finalized})
        self._finish_session()

    def handle_error(self, event: RecognitionErrorEvent) -> None:
        self._last_error = RecognitionSessionError(event.error, event.message)
        self._logger.warning("recognition_error", extra={"error": event.error, "detail": event.message})
        self._finish_session()

    def _finish_session(self) -> None:
        # Engines report an error and then end; only the first one closes the session.
        was_listening = self._listening
        self._listening = False
        self._transcript.interim = ""
        if not was_listening:
            return
        for callback in list(self._transcript_listeners):
            callback(self._transcript.finalized)
