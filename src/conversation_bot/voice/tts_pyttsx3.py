"""Text-to-speech backend powered by ``pyttsx3``."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from .interfaces import SynthesisEngine
from .models import Utterance, Voice


class Pyttsx3SynthesisEngine(SynthesisEngine):
    """Local speaker playback through one pyttsx3 engine.

    The pyttsx3 engine lives on a single worker thread. Completion of each
    utterance is reported on the event loop that submitted it. The voice list
    loads in the background on first request, mirroring platforms where it
    populates asynchronously.
    """

    def __init__(self, *, volume: float | None = None, logger: logging.Logger | None = None) -> None:
        try:
            import pyttsx3
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice TTS backend unavailable. Install extras with: pip install 'conversation-bot[voice]'"
            ) from exc
        self._pyttsx3 = pyttsx3
        self._volume = None if volume is None else max(0.0, min(1.0, volume))
        self._logger = logger or logging.getLogger("conversation_bot.tts")

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyttsx3")
        self._engine = None
        self._base_rate = 200
        self._voices: list[Voice] = []
        self._voices_loading = False
        self._voices_ready = False
        self._voice_callbacks: list[Callable[[], None]] = []
        self._generation = 0
        self._pending = 0

    @property
    def speaking(self) -> bool:
        return self._pending > 0

    @property
    def voices_ready(self) -> bool:
        return self._voices_ready

    def get_voices(self) -> list[Voice]:
        if not self._voices_ready and not self._voices_loading:
            self._voices_loading = True
            loop = asyncio.get_running_loop()
            future = loop.run_in_executor(self._executor, self._load_voices)
            future.add_done_callback(self._voices_loaded)
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self._voice_callbacks.append(callback)

    def speak(self, utterance: Utterance) -> None:
        loop = asyncio.get_running_loop()
        generation = self._generation
        self._pending += 1
        future = loop.run_in_executor(
            self._executor,
            self._say,
            generation,
            utterance.text,
            utterance.voice.id if utterance.voice else None,
            utterance.rate,
        )
        future.add_done_callback(lambda done: self._utterance_done(done, generation, utterance))

    def cancel(self) -> None:
        self._generation += 1
        if self._engine is not None:
            self._engine.stop()

    def shutdown(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _ensure_engine(self):
        if self._engine is None:
            self._engine = self._pyttsx3.init()
            self._base_rate = self._engine.getProperty("rate") or self._base_rate
            if self._volume is not None:
                self._engine.setProperty("volume", self._volume)
        return self._engine

    def _load_voices(self) -> list[Voice]:
        engine = self._ensure_engine()
        return [
            Voice(
                id=voice.id,
                name=voice.name or voice.id,
                languages=tuple(str(lang) for lang in (voice.languages or ())),
            )
            for voice in engine.getProperty("voices") or ()
        ]

    def _voices_loaded(self, future: asyncio.Future) -> None:
        self._voices_loading = False
        if future.cancelled():
            return
        # A finished load is final even when it yields nothing; utterances then use the driver default.
        self._voices_ready = True
        if future.exception() is not None:
            self._logger.error("voices_load_failed", exc_info=future.exception())
        else:
            self._voices = future.result()
            self._logger.info("voices_loaded", extra={"count": len(self._voices)})
        for callback in list(self._voice_callbacks):
            callback()

    def _say(self, generation: int, text: str, voice_id: str | None, rate: float) -> None:
        if generation != self._generation:
            return
        engine = self._ensure_engine()
        if voice_id:
            engine.setProperty("voice", voice_id)
        engine.setProperty("rate", int(self._base_rate * rate))
        engine.say(text)
        engine.runAndWait()

    def _utterance_done(self, future: asyncio.Future, generation: int, utterance: Utterance) -> None:
        self._pending -= 1
        if future.cancelled():
            return
        if future.exception() is not None:
            self._logger.error("utterance_failed", exc_info=future.exception())
        if generation != self._generation:
            return
        utterance.finished()
