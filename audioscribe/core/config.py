"""
Application configuration via pydantic-settings.

Loads values from environment variables (``AUDIOSCRIBE_`` prefix) or a
``.env`` file. Use ``get_settings()`` to obtain the cached singleton instance.

The service credential is intentionally absent: callers pass it explicitly
to ``create_controller()`` / ``AssemblyAIClient``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """audioscribe settings loaded from environment / `.env` file.

    Attributes:
        assemblyai_base_url: Root URL of the AssemblyAI v2 REST API.
        http_timeout: Network timeout (seconds) applied to every HTTP call.
        upload_chunk_size: Bytes per streamed upload chunk (progress granularity).
        poll_interval: Seconds between two status checks.
        poll_timeout: Maximum seconds to wait for a job to reach a terminal state.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIOSCRIBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Remote service ---
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    http_timeout: float = 60.0
    upload_chunk_size: int = 256 * 1024

    # --- Polling ---
    poll_interval: float = 3.0
    poll_timeout: float = 300.0  # 5 minutes

    # --- Application ---
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    """
    return Settings()
