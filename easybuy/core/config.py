"""
core/config.py
----------------

Application configuration module.

Defines strongly‑typed settings loaded from the environment using
``pydantic-settings``. These settings control the backend origin, the
identity provider endpoints, HTTP timeouts and the review upload
encoding. Having a central place for configuration makes it easier to
point the client at a staging backend without touching the business
logic. The values provided here are sensible defaults but can be
overridden via environment variables at deployment time.
"""

from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The settings structure is flat and uses environment variables
    prefixed with ``EASYBUY_``.  For example, to point the client at a
    local backend you can set ``EASYBUY_BASE_URL=http://localhost:3000``.

    See :class:`pydantic_settings.BaseSettings` for details on how
    environment variables are mapped onto fields.
    """

    # Commerce backend
    base_url: str = Field("https://easybuy-v2.onrender.com", description="Origin of the commerce backend (no trailing slash).")
    http_timeout: float = Field(10.0, gt=0, description="Hard timeout for HTTP requests in seconds.")
    send_idempotency_key: bool = Field(True, description="Attach an Idempotency-Key header to POST requests.")

    # Identity provider (Firebase REST)
    firebase_api_key: str = Field("", description="Web API key of the Firebase project.")
    identity_toolkit_url: str = Field("https://identitytoolkit.googleapis.com/v1", description="Identity Toolkit base URL.")
    secure_token_url: str = Field("https://securetoken.googleapis.com/v1", description="Secure Token base URL used for refresh.")
    idp_request_uri: str = Field("http://localhost", description="requestUri sent with federated sign-in.")
    token_refresh_skew: float = Field(300.0, ge=0, description="Seconds before expiry at which a cached ID token is refreshed.")

    # Review uploads
    jpeg_quality: int = Field(80, ge=1, le=95, description="JPEG quality used when encoding review images.")
    max_review_images: int = Field(5, ge=0, description="Maximum number of images sent with a review.")

    log_level: str = Field("INFO", description="Log level of the easybuy logger.")

    model_config = SettingsConfigDict(env_prefix="EASYBUY_", env_file=None, case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of the application settings.

    Using a cache prevents expensive environment parsing on every call.
    The returned object is shared; tests should build their own
    :class:`Settings` instead of mutating it.
    """
    return Settings()
