from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 3030
    debug: bool = False
    cors_origins: list[str] = []
    openai_api_key: str = ""  # Server-side key used to mint ephemeral realtime sessions
    realtime_model: str = "gpt-4o-realtime-preview-2024-12-17"
    realtime_voice: str = "alloy"
    realtime_transcribe_model: str = "gpt-4o-mini-transcribe"
    realtime_sessions_url: str = "https://api.openai.com/v1/realtime/sessions"
    identity_url: str = ""  # Base URL of the identity provider (Supabase project URL)
    identity_anon_key: str = ""  # Public anonymous key, also handed to clients
    identity_cache_seconds: int = 60
    daily_limit_seconds: int = 600
    situations_path: str = "data/situations.json"
    conversation_logs_path: str = ".tmp/conversations"  # One JSONL file per UTC day
    upstream_timeout: float = 15.0

    model_config = {
        "env_file": [".env"],
        "env_prefix": "PARLOTE_",
        "extra": "ignore",
    }
