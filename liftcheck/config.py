"""
Configuration de l'application / Application configuration.
Utilise pydantic-settings pour charger depuis .env ou variables d'environnement.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "LiftCheck Inspections"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database - SQLite par défaut pour le développement
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./liftcheck.db"

    # CORS - origines autorisées / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:8080"]

    # Rate Limiting
    RATE_LIMIT_PHOTOS: str = "30/minute"

    # Photos inspection / Inspection photos
    MAX_PHOTOS_PER_ITEM: int = 5
    MAX_PHOTO_SIZE_BYTES: int = 10 * 1024 * 1024  # 10 MB
    ALLOWED_PHOTO_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp", "image/heic"]
    PHOTO_STORAGE_DIR: str = "data/photos/inspections"

    # Template grue par défaut au démarrage / Default crane template on startup
    SEED_DEFAULT_TEMPLATE: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
