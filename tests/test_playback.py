import math

import pytest

from conversation_bot.voice.models import Voice
from conversation_bot.voice.playback import PlaybackSegmenter, chunk_words


def _words(count: int) -> str:
    return " ".join(f"w{i}" for i in range(count))


def test_chunk_words_covers_every_word_in_order() -> None:
    text = "  " + _words(60).replace(" ", " \n ", 3) + "  "

    chunks = chunk_words(text, 25)

    assert len(chunks) == math.ceil(60 / 25)
    assert [len(chunk.split()) for chunk in chunks] == [25, 25, 10]
    assert " ".join(chunks).split() == text.split()
    assert all("  " not in chunk for chunk in chunks)


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_chunk_words_empty_input(text: str) -> None:
    assert chunk_words(text) == []


def test_chunk_words_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        chunk_words("a b", 0)


def test_speak_empty_text_is_noop(synthesis_engine) -> None:
    playback = PlaybackSegmenter(synthesis_engine)

    playback.speak("")

    assert playback.chunks == []
    assert playback.is_playing is False
    assert synthesis_engine.spoken == []


def test_chunks_play_strictly_one_after_another(synthesis_engine) -> None:
    playback = PlaybackSegmenter(synthesis_engine, chunk_size=2)
    finished: list[bool] = []
    playback.on_finished(lambda: finished.append(True))

    playback.speak("one two three four five")

    assert playback.is_playing is True
    assert synthesis_engine.spoken_texts == ["one two"]

    synthesis_engine.finish_current()
    assert synthesis_engine.spoken_texts == ["one two", "three four"]
    assert playback.cursor == 1

    synthesis_engine.finish_current()
    assert playback.is_playing is True
    synthesis_engine.finish_current()

    assert synthesis_engine.spoken_texts == ["one two", "three four", "five"]
    assert playback.cursor == 3
    assert playback.is_playing is False
    assert finished == [True]


def test_utterances_carry_rate_and_selected_voice(make_synthesis_engine) -> None:
    voices = [Voice(id="en-1", name="Alice"), Voice(id="en-2", name="Bob")]
    engine = make_synthesis_engine(voices, auto_finish=True)

    PlaybackSegmenter(engine, rate=1.1).speak("hello")
    PlaybackSegmenter(engine, rate=0.9, voice_id="Bob").speak("again")

    assert engine.spoken[0].voice == voices[0]
    assert engine.spoken[0].rate == pytest.approx(1.1)
    assert engine.spoken[1].voice == voices[1]


def test_stop_prevents_next_chunk(synthesis_engine) -> None:
    playback = PlaybackSegmenter(synthesis_engine, chunk_size=1)
    playback.speak("a b c")
    synthesis_engine.finish_current()
    in_flight = synthesis_engine.queue[0]

    playback.stop()
    in_flight.finished()

    assert playback.is_playing is False
    assert synthesis_engine.cancels == 1
    assert synthesis_engine.spoken_texts == ["a", "b"]


def test_stop_when_idle_does_nothing(synthesis_engine) -> None:
    playback = PlaybackSegmenter(synthesis_engine)

    playback.stop()

    assert synthesis_engine.cancels == 0


def test_speak_while_playing_restarts_with_new_text(synthesis_engine) -> None:
    playback = PlaybackSegmenter(synthesis_engine, chunk_size=1)
    playback.speak("old text")
    stale = synthesis_engine.queue[0]

    playback.speak("new text")
    stale.finished()

    assert synthesis_engine.cancels == 1
    assert synthesis_engine.spoken_texts == ["old", "new"]
    assert playback.cursor == 0

    synthesis_engine.finish_current()
    assert synthesis_engine.spoken_texts == ["old", "new", "text"]


def test_playback_waits_for_voices_and_starts_once(make_synthesis_engine) -> None:
    engine = make_synthesis_engine([])
    playback = PlaybackSegmenter(engine, chunk_size=25)

    playback.speak("first reply")
    playback.speak("second reply")

    assert playback.waiting_for_voices is True
    assert playback.is_playing is False
    assert engine.spoken == []

    engine.load_voices([Voice(id="late", name="Late")])
    engine.load_voices([Voice(id="late", name="Late")])

    assert engine.spoken_texts == ["second reply"]
    assert engine.spoken[0].voice == Voice(id="late", name="Late")
    assert playback.is_playing is True


def test_stop_cancels_deferred_playback(make_synthesis_engine) -> None:
    engine = make_synthesis_engine([])
    playback = PlaybackSegmenter(engine)
    playback.speak("never spoken")

    playback.stop()
    engine.load_voices([Voice(id="v", name="V")])

    assert engine.spoken == []
    assert playback.waiting_for_voices is False


def test_empty_voice_list_plays_with_default_voice(make_synthesis_engine) -> None:
    engine = make_synthesis_engine([], auto_finish=True)
    playback = PlaybackSegmenter(engine)
    finished: list[bool] = []
    playback.on_finished(lambda: finished.append(True))

    playback.speak("hello there")
    engine.load_voices([])

    assert engine.spoken_texts == ["hello there"]
    assert engine.spoken[0].voice is None
    assert finished == [True]

    playback.speak("and again")

    assert playback.waiting_for_voices is False
    assert engine.spoken_texts == ["hello there", "and again"]
    assert finished == [True, True]
