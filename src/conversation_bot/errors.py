"""Error taxonomy for the conversation loop."""

from __future__ import annotations


class ConversationBotError(Exception):
    """Base class for conversation bot failures."""


class RecognitionUnavailable(ConversationBotError):
    """The platform offers no speech recognition capability."""


class RecognitionSessionError(ConversationBotError):
    """The recognition capability reported an error; the session simply ends."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message


class GenerationError(ConversationBotError):
    """The text-generation call failed."""


class MissingCredentialError(GenerationError):
    """No API credential was configured for the text-generation capability."""
