from pydantic_settings import BaseSettings


class ClientConfig(BaseSettings):
    """Client-side settings loaded from environment variables."""

    backend_url: str = "http://127.0.0.1:3030"
    realtime_url: str = "https://api.openai.com/v1/realtime"  # Offer/answer endpoint of the provider
    request_timeout: float = 15.0
    ping_interval_seconds: float = 10.0
    ping_increment_seconds: int = 10

    model_config = {
        "env_file": [".env"],
        "env_prefix": "PARLOTE_CLIENT_",
        "extra": "ignore",
    }
