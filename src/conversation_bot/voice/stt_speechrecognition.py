"""Speech-to-text backend powered by ``speech_recognition``."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .interfaces import RecognitionEngine, RecognitionListener
from .models import RecognitionAlternative, RecognitionErrorEvent, RecognitionResult, RecognitionUpdate


class SpeechRecognitionEngine(RecognitionEngine):
    """Single-phrase recognition sessions using the microphone and Google's recognizer.

    Capture and recognition block, so they run on a worker thread; every
    notification is handed back to the event loop that called ``start()``.
    This backend reports only final results.
    """

    def __init__(
        self,
        *,
        language: str = "en-US",
        phrase_time_limit: float | None = 8.0,
        timeout: float | None = 5.0,
        sample_rate: int = 16_000,
        chunk_size: int = 1024,
        adjust_noise_seconds: float = 0.2,
        logger: logging.Logger | None = None,
    ) -> None:
        try:
            import speech_recognition as sr
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice STT backend unavailable. Install extras with: pip install 'conversation-bot[voice]'"
            ) from exc
        self._sr = sr
        self._recognizer = sr.Recognizer()
        try:
            self._microphone = sr.Microphone(sample_rate=sample_rate, chunk_size=chunk_size)
        except (AttributeError, OSError) as exc:  # pragma: no cover - depends on PyAudio and hardware
            raise RuntimeError(
                "Microphone backend unavailable. Install extras with: pip install 'conversation-bot[voice]'"
            ) from exc
        self._language = language
        self._phrase_time_limit = phrase_time_limit
        self._timeout = timeout
        self._adjust_noise_seconds = max(0.0, adjust_noise_seconds)
        self._logger = logger or logging.getLogger("conversation_bot.stt")

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speech-recognition")
        self._listener: RecognitionListener | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._session = 0

    def bind(self, listener: RecognitionListener) -> None:
        self._listener = listener

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._session += 1
        session = self._session
        self._post(session, "handle_start")
        self._loop.run_in_executor(self._executor, self._capture, session)

    def stop(self) -> None:
        # A phrase in progress cannot be interrupted; phrase_time_limit bounds it and results still arrive.
        self._logger.debug("recognition_stop_requested", extra={"session": self._session})

    def abort(self) -> None:
        self._session += 1

    def shutdown(self) -> None:
        self.abort()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _capture(self, session: int) -> None:
        try:
            self._listen_and_recognize(session)
        except Exception as exc:  # noqa: BLE001 - any worker failure still closes the session.
            self._logger.exception("recognition_capture_failed", extra={"session": session})
            self._post(session, "handle_error", RecognitionErrorEvent("audio-capture", f"{type(exc).__name__}: {exc}"))
            self._post(session, "handle_end")

    def _listen_and_recognize(self, session: int) -> None:
        try:
            with self._microphone as source:
                if self._adjust_noise_seconds > 0:
                    self._recognizer.adjust_for_ambient_noise(source, duration=self._adjust_noise_seconds)
                audio = self._recognizer.listen(
                    source,
                    timeout=self._timeout,
                    phrase_time_limit=self._phrase_time_limit,
                )
        except self._sr.WaitTimeoutError:
            self._post(session, "handle_end")
            return
        except OSError as exc:
            self._post(session, "handle_error", RecognitionErrorEvent("audio-capture", str(exc)))
            self._post(session, "handle_end")
            return

        try:
            payload = self._recognizer.recognize_google(audio, language=self._language, show_all=True)
        except self._sr.UnknownValueError:
            payload = None
        except self._sr.RequestError as exc:
            self._post(session, "handle_error", RecognitionErrorEvent("network", str(exc)))
            self._post(session, "handle_end")
            return

        update = to_recognition_update(payload)
        if update is None:
            self._post(session, "handle_error", RecognitionErrorEvent("no-speech"))
        else:
            self._post(session, "handle_result", update)
        self._post(session, "handle_end")

    def _post(self, session: int, method: str, *args: Any) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._deliver, session, method, args)

    def _deliver(self, session: int, method: str, args: tuple[Any, ...]) -> None:
        if session != self._session or self._listener is None:
            self._logger.debug("recognition_event_dropped", extra={"event": method, "session": session})
            return
        getattr(self._listener, method)(*args)


def to_recognition_update(payload: Any) -> RecognitionUpdate | None:
    """Convert a ``recognize_google(show_all=True)`` payload into a final update."""
    if not isinstance(payload, dict):
        return None
    alternatives = tuple(
        RecognitionAlternative(transcript=item["transcript"], confidence=float(item.get("confidence", 0.0)))
        for item in payload.get("alternative", ())
        if item.get("transcript")
    )
    if not alternatives:
        return None
    return RecognitionUpdate(results=(RecognitionResult(alternatives=alternatives, is_final=True),))
