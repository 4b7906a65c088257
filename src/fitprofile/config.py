from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FITPROFILE_",
        case_sensitive=False,
    )

    # App
    env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Table backend: "sql" (local database) or "rest" (hosted table API)
    backend: str = "sql"

    # Database
    db_url: str = "sqlite+aiosqlite:///./fitprofile.db"

    # Hosted table API
    rest_url: str = ""
    rest_api_key: str = ""


def get_settings() -> Settings:
    return Settings()
