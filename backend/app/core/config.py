# app/core/config.py
"""
Application settings read from environment variables.
Values are read once at import time, so set the environment before importing.
"""
import os
from dataclasses import dataclass, field


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    storage_backend: str = os.getenv("STORAGE_BACKEND", "local")  # 'local', 's3' or 'memory'
    data_dir: str = os.getenv("DATA_DIR", "data")
    surveys_key: str = os.getenv("SURVEYS_KEY", "surveys.json")
    s3_bucket: str = os.getenv("S3_BUCKET", "exhibition-survey-data")
    aws_region: str = os.getenv("AWS_REGION", "ap-southeast-1")

    cors_origins: list[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
    )
    # e.g. "/api" to serve the collection at /api/surveys
    api_prefix: str = os.getenv("API_PREFIX", "").rstrip("/")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")


settings = Settings()
