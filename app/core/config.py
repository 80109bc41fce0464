from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """إعدادات التطبيق العامة مع تحميل القيم من ملف .env عند توفره."""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Image Compress API"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # الحد الأقصى لحجم الصورة المرفوعة (5 ميغابايت)
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    default_quality: int = Field(default=80, ge=1, le=100)
    png_compression_level: int = Field(default=8, ge=0, le=9)

    # عند التعطيل يُستخدم النوع الذي يكتشفه Pillow من محتوى الصورة بدل ترويسة الجزء
    trust_declared_type: bool = True

    allow_origins: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache()
def get_settings() -> Settings:
    return Settings()
