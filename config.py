"""
Runtime configuration for the storefront API.

Settings are read once from the environment and handed to the rest of the
app through the `get_settings` dependency.
"""
import os
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: str = "ecommerce"
    jwt_secret: str = "devsecret"
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 7
    auth_salt: str = "storefront"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"
    order_code_attempts: int = 3
    log_level: str = "INFO"
    port: int = 8000

    @property
    def images_enabled(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME", "ecommerce"),
            jwt_secret=os.getenv("JWT_SECRET", "devsecret"),
            jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", 7)),
            auth_salt=os.getenv("AUTH_SALT", "storefront"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            admin_email=os.getenv("ADMIN_EMAIL", "admin@example.com"),
            admin_password=os.getenv("ADMIN_PASSWORD", "admin123"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", 8000)),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
