from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    environment: str = "development"
    log_level: str = "INFO"
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database (persisted drafts)
    database_url: str = "sqlite+aiosqlite:///./shipment_drafts.db"
    draft_namespace: str = "shipment-draft-storage"

    # Extraction service
    extraction_api_url: str = "http://localhost:5000"
    extraction_endpoint_path: str = "/api/ai/extract-shipment-data"
    extraction_timeout_seconds: float = 120.0

    # Uploads
    max_upload_size_mb: int = 50
    allowed_file_types: set[str] = {"pdf", "png", "jpg", "jpeg", "tiff", "tif", "csv", "xlsx"}

    # Sentry (optional)
    sentry_dsn: str = ""


settings = Settings()
