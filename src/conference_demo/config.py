"""Application configuration via Pydantic BaseSettings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for environment-driven configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    telnyx_api_key: str = ""
    # Base64 Ed25519 key from the Telnyx portal, used to verify webhooks
    telnyx_public_key: str = ""
    telnyx_base_url: str = "https://api.telnyx.com/v2"
    telnyx_timeout: float = 10.0

    # Number callers dial to reach the conference, and its connection
    phone_number: str = ""
    connection_id: str = ""

    voice: str = "female"
    language: str = "en-GB"
    waiting_audio_url: str = "https://upload.wikimedia.org/wikipedia/commons/4/40/Toreador_song_cleaned.ogg"
    conference_name_prefix: str = "demo-conference"

    webhook_tolerance_seconds: int = 300
    event_retention_seconds: float = 24 * 60 * 60
    event_retention_max: int = 10_000

    log_level: str = "INFO"
    port: int = 9090


settings = Settings()
