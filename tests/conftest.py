from __future__ import annotations

import pytest

from conversation_bot.voice.models import RecognitionErrorEvent, RecognitionUpdate, Utterance, Voice


class FakeRecognitionEngine:
    """Recognition engine driven by the test through ``emit_*`` calls."""

    def __init__(self) -> None:
        self.listener = None
        self.starts = 0
        self.stops = 0
        self.aborts = 0

    def bind(self, listener) -> None:
        self.listener = listener

    def start(self) -> None:
        self.starts += 1

    def stop(self) -> None:
        self.stops += 1
        self.listener.handle_end()

    def abort(self) -> None:
        self.aborts += 1

    def emit_start(self) -> None:
        self.listener.handle_start()

    def emit_result(self, update: RecognitionUpdate) -> None:
        self.listener.handle_result(update)

    def emit_end(self) -> None:
        self.listener.handle_end()

    def emit_error(self, error: str, message: str = "") -> None:
        self.listener.handle_error(RecognitionErrorEvent(error, message))


class FakeSynthesisEngine:
    """Synthesis engine whose utterances complete only when the test says so."""

    def __init__(self, voices: list[Voice] | None = None, *, auto_finish: bool = False) -> None:
        self.voices = list(voices) if voices is not None else [Voice(id="default", name="Default")]
        self.voices_ready = bool(self.voices)
        self.auto_finish = auto_finish
        self.spoken: list[Utterance] = []
        self.queue: list[Utterance] = []
        self.cancels = 0
        self.shutdowns = 0
        self._voice_callbacks = []

    @property
    def speaking(self) -> bool:
        return bool(self.queue)

    def speak(self, utterance: Utterance) -> None:
        self.spoken.append(utterance)
        if self.auto_finish:
            utterance.finished()
        else:
            self.queue.append(utterance)

    def cancel(self) -> None:
        self.cancels += 1
        self.queue.clear()

    def shutdown(self) -> None:
        self.shutdowns += 1
        self.cancel()

    def get_voices(self) -> list[Voice]:
        return list(self.voices)

    def on_voices_changed(self, callback) -> None:
        self._voice_callbacks.append(callback)

    def load_voices(self, voices: list[Voice]) -> None:
        self.voices = list(voices)
        self.voices_ready = True
        for callback in list(self._voice_callbacks):
            callback()

    def finish_current(self) -> Utterance:
        utterance = self.queue.pop(0)
        utterance.finished()
        return utterance

    @property
    def spoken_texts(self) -> list[str]:
        return [utterance.text for utterance in self.spoken]


class StubTextModel:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def recognition_engine() -> FakeRecognitionEngine:
    return FakeRecognitionEngine()


@pytest.fixture
def synthesis_engine() -> FakeSynthesisEngine:
    return FakeSynthesisEngine()


@pytest.fixture
def make_synthesis_engine():
    return FakeSynthesisEngine


@pytest.fixture
def make_text_model():
    return StubTextModel
