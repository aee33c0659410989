from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, DATA_DIR,
    STORAGE_BACKEND, RATE_LIMIT_REQUESTS). List fields take JSON (ADMIN_TOKENS='["t1"]').
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Exchange Rate Service"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "rates.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided
    # Allowed: 'memory' (process-local dict), 'sqlite' (durable file under data_dir)
    storage_backend: str = "sqlite"
    seed_default_rates: bool = False

    # Credentials accepted by the static validator
    admin_tokens: List[str] = []
    user_tokens: List[str] = []

    # Request throttling
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: float = 60.0

    # Conversion / listing
    max_conversion_hops: int = 2
    default_page_limit: int = 20
    max_page_limit: int = 100

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        allowed = {"memory", "sqlite"}
        if self.storage_backend not in allowed:
            raise ValueError(
                f"Unsupported storage_backend '{self.storage_backend}'. Allowed: {allowed}"
            )
        if self.rate_limit_requests < 1 or self.rate_limit_window_seconds <= 0:
            raise ValueError("rate limit threshold and window must be positive")
        if self.max_conversion_hops < 1:
            raise ValueError("max_conversion_hops must be at least 1")
        if self.storage_backend == "sqlite":
            if self.db_path is None:
                self.db_path = self.data_dir / self.db_filename
            # Ensure persistence directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
