from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Load env from .env file
    model_config = {"env_file": ".env"}

    # Origin CDN
    ORIGIN_CDN_HOSTS: List[str] = ["cdn.shopify.com"]
    PLACEHOLDER_PATH: str = "/placeholder-product.svg"

    # Inline payload constraints
    MAX_DIMENSION: int = 1200
    BYTE_BUDGET: int = 2 * 1024 * 1024  # 2 MiB
    START_QUALITY: int = 85
    QUALITY_STEP: int = 10
    QUALITY_FLOOR: int = 30
    PNG_COMPRESSION_LEVEL: int = 6

    # Covers origin fetch + transcode
    DELIVERY_TIMEOUT_SECONDS: float = 20.0

    # CORS for the storefront frontend
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Instantiate settings
settings = Settings()
