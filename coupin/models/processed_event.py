"""
ProcessedEvent model for replay protection (G5).

Stores the nonces of scanned QR payloads so a loyalty visit code cannot be
scanned twice, across every server handling scans.
"""

from datetime import timedelta

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ProcessedEvent(models.Model):
    """Tracks processed QR scans for replay protection (G5)."""

    nonce = models.CharField(verbose_name=_("nonce"), max_length=255, unique=True, db_index=True)
    provider = models.CharField(verbose_name=_("provider"), max_length=50, db_index=True)
    processed_at = models.DateTimeField(verbose_name=_("processed at"), auto_now_add=True)

    class Meta:
        db_table = "coupin_processed_event"
        verbose_name = _("processed event")
        verbose_name_plural = _("processed events")
        indexes = [
            models.Index(fields=["provider", "processed_at"]),
        ]

    def __str__(self):
        return f"{self.provider}:{self.nonce[:20]}"

    @classmethod
    def cleanup_old_events(cls, days: int | None = None):
        """Remove events older than N days."""
        if days is None:
            from coupin.conf import coupin_settings
            days = coupin_settings.EVENT_CLEANUP_DAYS
        cutoff = timezone.now() - timedelta(days=days)
        return cls.objects.filter(processed_at__lt=cutoff).delete()
