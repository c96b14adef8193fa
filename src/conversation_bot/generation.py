"""Reply generation through a remote text-generation model."""

from __future__ import annotations

import logging

from conversation_bot.config import DEFAULT_BREVITY_INSTRUCTION, Settings
from conversation_bot.errors import GenerationError, MissingCredentialError
from conversation_bot.voice.interfaces import TextModel


class GeminiTextModel(TextModel):
    """Text model backed by ``google-generativeai``."""

    def __init__(self, api_key: str | None, model_name: str = "gemini-1.5-flash") -> None:
        if not api_key:
            raise MissingCredentialError("Missing Gemini API key. Set CONVERSATION_BOT_GEMINI_API_KEY.")

        import google.generativeai as genai

        genai.configure(api_key=api_key)
        self.model_name = model_name
        self._model = genai.GenerativeModel(model_name)

    async def generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        # ``text`` raises ValueError when the candidate was blocked or empty.
        return response.text


class ResponseGenerator:
    """Issues one generation request per prompt; no retry, no backoff."""

    def __init__(
        self,
        model: TextModel,
        *,
        brevity_instruction: str = DEFAULT_BREVITY_INSTRUCTION,
        logger: logging.Logger | None = None,
    ) -> None:
        self._model = model
        self._brevity_instruction = brevity_instruction
        self._logger = logger or logging.getLogger("conversation_bot.generation")
        self._loading = False
        self._last_response: str | None = None
        self._last_error: GenerationError | None = None

    @classmethod
    def from_settings(cls, config: Settings) -> ResponseGenerator:
        """Build a Gemini-backed generator; a missing credential fails here."""
        model = GeminiTextModel(api_key=config.gemini_api_key, model_name=config.gemini_model)
        return cls(model, brevity_instruction=config.brevity_instruction)

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def last_response(self) -> str | None:
        return self._last_response

    @property
    def last_error(self) -> GenerationError | None:
        return self._last_error

    def shape_prompt(self, prompt: str) -> str:
        return prompt + self._brevity_instruction

    async def generate(self, prompt: str) -> str:
        self._loading = True
        self._last_error = None
        self._last_response = None
        shaped = self.shape_prompt(prompt)
        self._logger.info("generation_started", extra={"prompt_chars": len(shaped)})
        try:
            text = await self._model.generate(shaped)
        except GenerationError as exc:
            self._last_error = exc
            self._logger.exception("generation_failed")
            raise
        except Exception as exc:  # noqa: BLE001 - any capability failure becomes a GenerationError.
            self._last_error = GenerationError(f"{type(exc).__name__}: {exc}")
            self._logger.exception("generation_failed")
            raise self._last_error from exc
        finally:
            self._loading = False

        self._last_response = text
        self._logger.info("generation_succeeded", extra={"response_chars": len(text)})
        return text
