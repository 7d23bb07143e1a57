import os
import secrets
from pathlib import Path
from typing import List

import humanfriendly
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Config(BaseModel):
    # Database
    DATABASE_URL: str

    # JWT & Security
    JWT_SECRET: str
    JWT_ALG: str
    ACCESS_TTL_MIN: int

    # Uploads
    ALLOWED_MIME_TYPES: List[str]
    MAX_FILE_SIZE: int
    STORAGE_PATH: Path

    # FastAPI
    FASTAPI_HOST: str
    FASTAPI_PORT: int
    LOG_LEVEL: str

    # Async I/O
    MAX_CONCURRENT_IO: int


config = Config(
    DATABASE_URL=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./photoshare.db"),

    JWT_SECRET=os.getenv("JWT_SECRET", secrets.token_urlsafe(32)),
    JWT_ALG=os.getenv("JWT_ALG", "HS256"),
    ACCESS_TTL_MIN=int(os.getenv("ACCESS_TTL_MIN", "60")),

    ALLOWED_MIME_TYPES=os.getenv("ALLOWED_MIME_TYPES", "image/jpeg,image/png").split(","),
    MAX_FILE_SIZE=humanfriendly.parse_size(os.getenv("MAX_FILE_SIZE", "10MB")),
    STORAGE_PATH=Path(os.getenv("STORAGE_PATH", "./uploads")),

    FASTAPI_HOST=os.getenv("FASTAPI_HOST", "0.0.0.0"),
    FASTAPI_PORT=int(os.getenv("FASTAPI_PORT", "8000")),
    LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),

    MAX_CONCURRENT_IO=int(os.getenv("MAX_CONCURRENT_IO", "8")),
)

__all__ = ["config"]
