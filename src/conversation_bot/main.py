"""CLI startup entrypoint for Conversation Bot."""

from __future__ import annotations

import asyncio

import typer
from rich import print

from conversation_bot.config import settings
from conversation_bot.errors import GenerationError, MissingCredentialError
from conversation_bot.generation import ResponseGenerator
from conversation_bot.telemetry.logging import configure_logging
from conversation_bot.voice import PlaybackSegmenter, RecognitionCoordinator, chunk_words
from conversation_bot.widget import ConversationWidget

app = typer.Typer(help="Conversation Bot: talk to a language model and hear its reply")


@app.callback()
def _configure() -> None:
    configure_logging(settings.log_level)


def _notify(level: str, message: str) -> None:
    style = "bold red" if level == "error" else "yellow"
    print(f"[{style}]{message}[/{style}]")


def _build_generator() -> ResponseGenerator:
    try:
        return ResponseGenerator.from_settings(settings)
    except MissingCredentialError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


def _build_synthesis_engine():
    try:
        from conversation_bot.voice.tts_pyttsx3 import Pyttsx3SynthesisEngine

        return Pyttsx3SynthesisEngine()
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except ImportError:
        print({"error": "Voice extras are missing. Install with: pip install 'conversation-bot[voice]'"})
        raise typer.Exit(code=1)


def _build_recognition_engine(phrase_time_limit: float):
    """Return the microphone engine, or ``None`` when recognition is unavailable here."""
    try:
        from conversation_bot.voice.stt_speechrecognition import SpeechRecognitionEngine

        return SpeechRecognitionEngine(
            language=settings.recognition_language,
            phrase_time_limit=phrase_time_limit,
        )
    except (RuntimeError, ImportError) as exc:
        print({"warning": str(exc)})
        return None


def _build_playback(synthesis, chunk_size: int | None = None) -> PlaybackSegmenter:
    return PlaybackSegmenter(
        synthesis,
        chunk_size=chunk_size or settings.chunk_size,
        rate=settings.speech_rate,
        voice_id=settings.voice_id,
    )


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "gemini_model": settings.gemini_model,
            "gemini_api_key": "configured" if settings.gemini_api_key else "missing",
            "chunk_size": settings.chunk_size,
            "speech_rate": settings.speech_rate,
            "voice_id": settings.voice_id,
            "recognition_language": settings.recognition_language,
        }
    )


@app.command()
def chunks(
    text: str,
    chunk_size: int = typer.Option(None, min=1, help="Words per chunk (defaults to configured size)"),
) -> None:
    """Print the chunks a text would be spoken in."""
    print({"chunks": chunk_words(text, chunk_size or settings.chunk_size)})


@app.command()
def speak(
    text: str,
    chunk_size: int = typer.Option(None, min=1, help="Words per chunk (defaults to configured size)"),
) -> None:
    """Read text aloud chunk by chunk."""
    synthesis = _build_synthesis_engine()
    playback = _build_playback(synthesis, chunk_size)

    async def _run() -> None:
        finished = asyncio.Event()
        playback.on_finished(finished.set)
        playback.speak(text)
        try:
            if playback.is_playing or playback.waiting_for_voices:
                await finished.wait()
        finally:
            playback.stop()
            synthesis.shutdown()

    asyncio.run(_run())


@app.command()
def ask(
    prompt: str,
    speak_reply: bool = typer.Option(True, "--speak/--no-speak", help="Read the reply aloud"),
) -> None:
    """Send a typed prompt to the language model."""
    generator = _build_generator()

    if not speak_reply:
        try:
            reply = asyncio.run(generator.generate(prompt))
        except GenerationError as exc:
            print({"error": str(exc)})
            raise typer.Exit(code=1)
        print({"prompt": prompt, "response": reply})
        return

    synthesis = _build_synthesis_engine()
    widget = ConversationWidget(
        recognition=RecognitionCoordinator(None),
        generator=generator,
        playback=_build_playback(synthesis),
        notify=_notify,
    )

    async def _run() -> str | None:
        try:
            reply = await widget.respond(prompt)
            await widget.wait_until_idle()
            return reply
        finally:
            widget.teardown()
            synthesis.shutdown()

    reply = asyncio.run(_run())
    if reply is None:
        raise typer.Exit(code=1)
    print({"prompt": prompt, "response": reply})


@app.command()
def chat(
    phrase_time_limit: float = typer.Option(None, help="Per-utterance capture limit in seconds"),
) -> None:
    """Run an interactive loop: speak, get a reply, hear it."""
    synthesis = _build_synthesis_engine()
    recognition_engine = _build_recognition_engine(phrase_time_limit or settings.phrase_time_limit)
    generator = _build_generator()

    widget = ConversationWidget(
        recognition=RecognitionCoordinator(recognition_engine),
        generator=generator,
        playback=_build_playback(synthesis),
        notify=_notify,
    )

    print({"chat": "started", "hint": "Press Enter and speak; Ctrl+C to quit."})

    async def _turn() -> bool:
        if not widget.start_listening():
            return False
        print("[green]Listening...[/green]")
        await widget.wait_until_idle()
        return True

    code = 0
    try:
        while True:
            input("Press Enter to speak ...")
            if not asyncio.run(_turn()):
                code = 1
                break
            state = widget.state
            print({"heard": state.finalized_text.strip(), "response": state.response_text})
    except (KeyboardInterrupt, EOFError):
        pass
    finally:
        widget.teardown()
        synthesis.shutdown()
        if recognition_engine is not None:
            recognition_engine.shutdown()

    print({"chat": "stopped"})
    if code:
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
