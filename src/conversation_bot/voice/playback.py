"""Chunked, strictly sequential playback of long replies."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable

from .interfaces import SynthesisEngine
from .models import Utterance, Voice

DEFAULT_CHUNK_SIZE = 25


def chunk_words(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split ``text`` into space-joined groups of at most ``chunk_size`` words."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    words = text.split()
    return [" ".join(words[i : i + chunk_size]) for i in range(0, len(words), chunk_size)]


class PlaybackSegmenter:
    """Plays text through a synthesis engine one word chunk at a time.

    Chunk ``i + 1`` is submitted only from the completion notification of chunk
    ``i``. Completions that arrive after ``stop()`` or after a newer ``speak()``
    belong to an old run and are ignored.
    """

    def __init__(
        self,
        engine: SynthesisEngine,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        rate: float = 1.1,
        voice_id: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._engine = engine
        self._chunk_size = chunk_size
        self._rate = rate
        self._voice_id = voice_id
        self._logger = logger or logging.getLogger("conversation_bot.playback")

        self._chunks: list[str] = []
        self._cursor = 0
        self._run = 0
        self._playing = False
        self._waiting_for_voices = False
        self._voices_hooked = False
        self._voice: Voice | None = None
        self._finished_listeners: list[Callable[[], None]] = []

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def waiting_for_voices(self) -> bool:
        return self._waiting_for_voices

    @property
    def chunks(self) -> list[str]:
        return list(self._chunks)

    @property
    def cursor(self) -> int:
        return self._cursor

    def on_finished(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after the last chunk completed."""
        self._finished_listeners.append(callback)

    def speak(self, text: str) -> None:
        """Play ``text`` from its first chunk, superseding any current playback."""
        self.stop()

        chunks = chunk_words(text, self._chunk_size)
        if not chunks:
            self._logger.debug("playback_skipped_empty")
            return

        self._chunks = chunks
        self._cursor = 0
        voices = self._engine.get_voices()
        if voices or self._engine.voices_ready:
            self._begin(voices)
            return

        self._waiting_for_voices = True
        if not self._voices_hooked:
            self._engine.on_voices_changed(self._handle_voices_changed)
            self._voices_hooked = True
        self._logger.info("playback_deferred", extra={"chunk_count": len(chunks)})

    def stop(self) -> None:
        """Cancel active and pending synthesis."""
        if not self._playing and not self._waiting_for_voices:
            return

        self._run += 1
        self._playing = False
        self._waiting_for_voices = False
        self._engine.cancel()
        self._logger.info("playback_stopped", extra={"cursor": self._cursor, "chunk_count": len(self._chunks)})

    def _handle_voices_changed(self) -> None:
        if not self._waiting_for_voices:
            return
        self._waiting_for_voices = False
        self._begin(self._engine.get_voices())

    def _begin(self, voices: list[Voice]) -> None:
        self._voice = self._select_voice(voices)
        self._run += 1
        self._cursor = 0
        self._playing = True
        self._logger.info(
            "playback_started",
            extra={"chunk_count": len(self._chunks), "voice": self._voice.id if self._voice else None},
        )
        self._speak_current(self._run)

    def _select_voice(self, voices: list[Voice]) -> Voice | None:
        if self._voice_id:
            for voice in voices:
                if voice.id == self._voice_id or voice.name == self._voice_id:
                    return voice
        return voices[0] if voices else None

    def _speak_current(self, run: int) -> None:
        if self._cursor >= len(self._chunks):
            self._playing = False
            self._logger.info("playback_finished", extra={"chunk_count": len(self._chunks)})
            for callback in list(self._finished_listeners):
                callback()
            return

        utterance = Utterance(
            text=self._chunks[self._cursor],
            voice=self._voice,
            rate=self._rate,
            on_end=partial(self._chunk_finished, run, self._cursor),
        )
        self._engine.speak(utterance)

    def _chunk_finished(self, run: int, index: int) -> None:
        if run != self._run or index != self._cursor or not self._playing:
            self._logger.debug("playback_stale_completion", extra={"run": run, "index": index})
            return
        self._cursor += 1
        self._speak_current(run)
