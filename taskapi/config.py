from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Task Query API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./tasks.db"

    # Logging settings
    log_level: str = "INFO"
    json_logs: bool = True
    log_file: str | None = None

    # Query engine settings
    field_names_case_sensitive: bool = True
    # Prefix formula-like CSV cells with a quote; disable to export plain values
    csv_sanitize_fields: bool = True
    csv_filename: str = "items.csv"

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
