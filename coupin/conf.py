"""
Coupin configuration.

Usage in settings.py:
    COUPIN = {
        "DEFAULT_REGION": "ZA",
        "QR_REFRESH_SECONDS": 30,
        "FIREBASE_CREDENTIALS": "/etc/secrets/service.json",
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


@dataclass
class CoupinSettings:
    """Coupin configuration settings."""

    # Phone normalization default region
    DEFAULT_REGION: str = "ZA"

    # Fallback when neither the user nor the region decides
    DEFAULT_CURRENCY: str = "USD"

    # QR codes
    QR_REFRESH_SECONDS: int = 30
    QR_MAX_AGE_SECONDS: int = 120

    # ProcessedEvent cleanup
    EVENT_CLEANUP_DAYS: int = 90

    # Coupons
    COUPON_CODE_LENGTH: int = 8

    # Firebase Admin SDK
    FIREBASE_CREDENTIALS: str = ""
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""
    FIRESTORE_BATCH_SIZE: int = 400
    STORAGE_CORS_ORIGINS: list[str] = field(default_factory=lambda: ["*"])


def get_coupin_settings() -> CoupinSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "COUPIN", {})
    return CoupinSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_coupin_settings(), name)


coupin_settings = _LazySettings()
