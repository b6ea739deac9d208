from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"
    port: int = 7652
    debug: bool = False

    request_timeout: int = 30
    max_retries: int = 3
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    # Comma-separated origins for CORS (e.g. "https://app.example.com"). Empty = allow "*" with no credentials.
    cors_origins: str = ""

    # Seconds a single decipher / n-transform call may run in the JS runtime
    script_timeout: float = 5.0
    # Threads used to resolve formats of one response; 1 = sequential
    decipher_workers: int = 4

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
