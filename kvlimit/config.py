from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "KVLimit"
    db_path: str = Field(default="/data/kvlimit.sqlite", min_length=1)
    key_prefix: str = Field(default="ratelimit", min_length=1)
    # Window seconds -> max events, e.g. LIMIT_RULES='{"60": 30, "86400": 1000}'
    limit_rules: dict[int, int] = Field(default_factory=lambda: {60: 30, 86400: 1000})
    # Header carrying the real client IP when deployed behind a proxy
    client_ip_header: str | None = None
    fail_open: bool = True
    exempt_paths: list[str] = Field(default_factory=lambda: ["/health"])
    purge_interval_seconds: int = Field(default=300, ge=1)


settings = Settings()
