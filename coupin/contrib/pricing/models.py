"""PricingPlan model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class BillingCycle(models.TextChoices):
    MONTH = "month", _("Monthly")
    YEAR = "year", _("Yearly")


class PricingPlan(models.Model):
    """
    Subscription plan.

    ``price`` is in ``currency``; ``currency_prices`` overrides it per
    currency: [{"currencyCode": "ZAR", "price": 199.99}, ...].
    ``features`` is [{"id", "name", "included", "highlight"}, ...].
    """

    name = models.CharField(_("name"), max_length=100)
    description = models.TextField(_("description"), blank=True)
    price = models.DecimalField(_("price"), max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(_("currency"), max_length=3, default="USD")
    billing_cycle = models.CharField(
        _("billing cycle"),
        max_length=10,
        choices=BillingCycle.choices,
        default=BillingCycle.MONTH,
    )
    currency_prices = models.JSONField(_("currency prices"), default=list, blank=True)
    features = models.JSONField(_("features"), default=list, blank=True)
    is_popular = models.BooleanField(_("popular"), default=False)
    cta_text = models.CharField(_("call to action"), max_length=50, blank=True)
    sort_order = models.PositiveIntegerField(_("order"), default=0)
    is_active = models.BooleanField(_("active"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("pricing plan")
        verbose_name_plural = _("pricing plans")
        ordering = ["sort_order", "price"]

    def __str__(self):
        return f"{self.name} ({self.currency} {self.price}/{self.billing_cycle})"
