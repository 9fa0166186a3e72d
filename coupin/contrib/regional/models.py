"""Currency, Region, and RegionalPreference models."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Currency(models.Model):
    """Currency offered in price displays and the currency selector."""

    code = models.CharField(_("code"), max_length=3, unique=True)
    name = models.CharField(_("name"), max_length=100)
    symbol = models.CharField(_("symbol"), max_length=10)
    region = models.CharField(
        _("region"),
        max_length=100,
        blank=True,
        help_text=_("Grouping label (ex: 'Europe', 'Asia-Pacific')"),
    )
    is_active = models.BooleanField(_("active"), default=True)

    updated_at = models.DateTimeField(_("updated at"), auto_now=True)
    updated_by = models.CharField(_("updated by"), max_length=128, blank=True)

    class Meta:
        verbose_name = _("currency")
        verbose_name_plural = _("currencies")
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} ({self.symbol})"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class Region(models.Model):
    """Country or area a user can select."""

    code = models.CharField(_("code"), max_length=5, unique=True)
    name = models.CharField(_("name"), max_length=100)
    flag = models.CharField(_("flag"), max_length=10, blank=True)
    currencies = models.JSONField(
        _("currencies"),
        default=list,
        blank=True,
        help_text=_("Currency codes used in the region, default first"),
    )
    is_active = models.BooleanField(_("active"), default=True)

    class Meta:
        verbose_name = _("region")
        verbose_name_plural = _("regions")
        ordering = ["name"]

    def __str__(self):
        return f"{self.flag} {self.name}".strip()


class RegionalPreference(models.Model):
    """
    A user's region and currency.

    ``user_key`` is the auth uid for signed-in users, or a browser/session
    key for anonymous visitors.
    """

    user_key = models.CharField(_("user key"), max_length=128, unique=True)
    region = models.CharField(_("region"), max_length=5, blank=True)
    currency = models.CharField(_("currency"), max_length=3, blank=True)
    explicit_currency_choice = models.BooleanField(
        _("explicit currency choice"),
        default=False,
        help_text=_("User picked the currency themselves, region changes keep it"),
    )
    date_format = models.CharField(_("date format"), max_length=20, default="DD/MM/YYYY")
    time_format = models.CharField(
        _("time format"),
        max_length=3,
        choices=[("12h", _("12 hour")), ("24h", _("24 hour"))],
        default="24h",
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("regional preference")
        verbose_name_plural = _("regional preferences")

    def __str__(self):
        return f"{self.user_key}: {self.region or '-'} / {self.currency or '-'}"
