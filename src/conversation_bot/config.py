"""Runtime configuration for Conversation Bot."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BREVITY_INSTRUCTION = " Answer in 2 to 3 sentences only, you don't have to generate a long response for this."


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="CONVERSATION_BOT_", env_file=".env", extra="ignore")

    app_name: str = "conversation-bot"
    log_level: str = "INFO"
    gemini_api_key: str | None = Field(
        default=None,
        description="Credential for the Gemini text-generation API.",
    )
    gemini_model: str = "gemini-1.5-flash"
    brevity_instruction: str = Field(
        default=DEFAULT_BREVITY_INSTRUCTION,
        description="Suffix appended to every prompt to bound the reply length.",
    )
    chunk_size: int = Field(default=25, ge=1, description="Words per synthesized utterance.")
    speech_rate: float = Field(default=1.1, gt=0.0)
    voice_id: str | None = None
    recognition_language: str = "en-US"
    phrase_time_limit: float = 8.0


settings = Settings()
