from pathlib import Path
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import logging
from functools import lru_cache


class ApiConfig(BaseModel):
    """
    Credentials and upload policy handed to the Cloudinary client at construction.
    Passed along with every SDK call instead of being set process-wide.
    """

    model_config = ConfigDict(frozen=True)

    cloud_name: str
    api_key: str
    api_secret: str
    overwrite: bool = True
    upload_preset: Optional[str] = None
    secure: bool = True


class Settings(BaseSettings):
    """
    Centralized application configuration with type validation.
    Automatically reads variables from the environment and the .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Cloudinary credentials ---
    CLOUDINARY_CLOUD_NAME: str
    CLOUDINARY_API_KEY: str
    CLOUDINARY_API_SECRET: str
    CLOUDINARY_URL: Optional[str] = None

    # --- Upload policy ---
    CLOUDINARY_OVERWRITE: bool = True
    CLOUDINARY_UPLOAD_PRESET: Optional[str] = None
    CLOUDINARY_SECURE: bool = True

    # --- Filesystem Settings ---
    CLOUDINARY_PATH_PREFIX: Optional[str] = None
    LIST_PAGE_SIZE: int = Field(
        500, ge=1, le=500, validation_alias="LIST_PAGE_SIZE"
    )  # Admin API maximum per page

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = None

    @model_validator(mode="before")
    def expand_cloudinary_url_and_validate_credentials(cls, values):
        if not isinstance(values, dict):
            return values

        url = values.get("CLOUDINARY_URL")
        if url:
            # cloudinary://<api_key>:<api_secret>@<cloud_name>
            parsed = urlparse(str(url))
            if parsed.scheme != "cloudinary":
                raise ValueError("CLOUDINARY_URL must start with 'cloudinary://'")
            from_url = {
                "CLOUDINARY_CLOUD_NAME": parsed.hostname,
                "CLOUDINARY_API_KEY": parsed.username,
                "CLOUDINARY_API_SECRET": parsed.password,
            }
            for key, value in from_url.items():
                if not values.get(key) and value:
                    values[key] = value
            logging.debug("Cloudinary credentials taken from CLOUDINARY_URL.")

        for key in ["CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"]:
            if key in values and not str(values.get(key) or "").strip():
                raise ValueError(f"{key} cannot be empty")

        return values

    @property
    def api_config(self) -> ApiConfig:
        return ApiConfig(
            cloud_name=self.CLOUDINARY_CLOUD_NAME,
            api_key=self.CLOUDINARY_API_KEY,
            api_secret=self.CLOUDINARY_API_SECRET,
            overwrite=self.CLOUDINARY_OVERWRITE,
            upload_preset=self.CLOUDINARY_UPLOAD_PRESET,
            secure=self.CLOUDINARY_SECURE,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the application settings.
    The first call to this function will initialize the settings.
    """
    return Settings()
