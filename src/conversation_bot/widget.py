"""Conversation loop wiring: listen, respond, read the reply aloud."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from conversation_bot.errors import GenerationError, RecognitionUnavailable
from conversation_bot.generation import ResponseGenerator
from conversation_bot.voice.recognition import RecognitionCoordinator
from conversation_bot.voice.playback import PlaybackSegmenter

GENERATION_FAILED_MESSAGE = "Failed to generate response. Please try again."
RECOGNITION_FAILED_MESSAGE = "Failed to start speech recognition. Please try again."

Notifier = Callable[[str, str], None]


@dataclass(slots=True, frozen=True)
class WidgetState:
    """Snapshot of everything the UI surface renders."""

    listening: bool
    finalized_text: str
    interim_text: str
    is_responding: bool
    response_text: str
    is_playing: bool

    @property
    def display_text(self) -> str:
        return self.finalized_text + self.interim_text


_NOTIFY_LEVELS = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def _log_notifier(level: str, message: str) -> None:
    logging.getLogger("conversation_bot.widget").log(_NOTIFY_LEVELS.get(level, logging.INFO), message)


class ConversationWidget:
    """Sequences one recognition, response and playback cycle at a time."""

    def __init__(
        self,
        *,
        recognition: RecognitionCoordinator,
        generator: ResponseGenerator,
        playback: PlaybackSegmenter,
        notify: Notifier | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._recognition = recognition
        self._generator = generator
        self._playback = playback
        self._notify = notify or _log_notifier
        self._logger = logger or logging.getLogger("conversation_bot.widget")

        self._responding = False
        self._response_text = ""
        self._response_task: asyncio.Task[str | None] | None = None
        self._playback_done: asyncio.Event | None = None
        self._session_done: asyncio.Event | None = None

        self._recognition.on_transcript_ready(self._handle_transcript_ready)
        self._playback.on_finished(self._handle_playback_finished)

    @property
    def responding(self) -> bool:
        pending = self._response_task is not None and not self._response_task.done()
        return self._responding or pending

    @property
    def state(self) -> WidgetState:
        return WidgetState(
            listening=self._recognition.listening,
            finalized_text=self._recognition.finalized_text,
            interim_text=self._recognition.interim_text,
            is_responding=self.responding,
            response_text=self._response_text,
            is_playing=self._playback.is_playing,
        )

    def start_listening(self) -> bool:
        """Begin a recognition session; returns whether one was started."""
        if self.responding:
            self._logger.info("listening_rejected", extra={"reason": "responding"})
            return False
        if self._recognition.listening:
            self._logger.info("listening_rejected", extra={"reason": "already_listening"})
            return False

        self._session_done = asyncio.Event()
        failure = self._recognition.start()
        if isinstance(failure, RecognitionUnavailable):
            self._session_done.set()
            self._notify("error", RECOGNITION_FAILED_MESSAGE)
            return False
        return True

    def stop_listening(self) -> None:
        self._recognition.stop()

    def edit_transcript(self, text: str) -> None:
        self._recognition.edit(text)

    async def respond(self, text: str) -> str | None:
        """Generate a reply for ``text`` and read it aloud."""
        if self._responding:
            self._logger.info("response_rejected", extra={"reason": "already_responding"})
            return None

        self._responding = True
        try:
            reply = await self._generator.generate(text)
        except GenerationError:
            self._notify("error", GENERATION_FAILED_MESSAGE)
            return None
        finally:
            self._responding = False

        self._response_text = reply
        self.speak(reply)
        return reply

    def replay(self) -> None:
        """Read the last reply aloud again."""
        if self._response_text:
            self.speak(self._response_text)

    def speak(self, text: str) -> None:
        if self._playback_done is not None:
            # Release anyone waiting on the playback being superseded.
            self._playback_done.set()
        self._playback_done = asyncio.Event()
        self._playback.speak(text)
        if not self._playback.is_playing and not self._playback.waiting_for_voices:
            self._playback_done.set()

    def stop_speaking(self) -> None:
        self._playback.stop()
        if self._playback_done is not None:
            self._playback_done.set()

    async def wait_until_idle(self) -> None:
        """Wait for the listening session, the reply and its playback to finish or stop."""
        if self._session_done is not None:
            await self._session_done.wait()
        if self._response_task is not None:
            await self._response_task
        if self._playback_done is not None:
            await self._playback_done.wait()

    def teardown(self) -> None:
        self._recognition.abort()
        if self._session_done is not None:
            self._session_done.set()
        self.stop_speaking()
        if self._response_task is not None and not self._response_task.done():
            self._response_task.cancel()

    def _handle_transcript_ready(self, text: str) -> None:
        if self._session_done is not None:
            self._session_done.set()
        if not text.strip():
            self._logger.info("response_skipped_blank_transcript")
            return
        if self.responding:
            self._logger.info("response_skipped", extra={"reason": "already_responding"})
            return

        loop = asyncio.get_running_loop()
        self._response_task = loop.create_task(self.respond(text), name="conversation-response")

    def _handle_playback_finished(self) -> None:
        if self._playback_done is not None:
            self._playback_done.set()
