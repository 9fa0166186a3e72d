"""TimelineEntry model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class TimelineEntry(models.Model):
    """One milestone in the company history."""

    year = models.CharField(_("year"), max_length=10, db_index=True)
    title = models.CharField(_("title"), max_length=200)
    description = models.TextField(_("description"), blank=True)
    sort_order = models.PositiveIntegerField(
        _("order"),
        default=0,
        help_text=_("Order among entries of the same year"),
    )
    is_published = models.BooleanField(_("published"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("timeline entry")
        verbose_name_plural = _("timeline entries")
        ordering = ["-year", "sort_order"]

    def __str__(self):
        return f"{self.year}: {self.title}"
