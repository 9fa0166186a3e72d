"""Business model - the owner of coupons and loyalty programs."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class SubscriptionTier(models.TextChoices):
    FREE = "free", _("Free")
    BASIC = "basic", _("Basic")
    PREMIUM = "premium", _("Premium")
    ENTERPRISE = "enterprise", _("Enterprise")


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    CANCELED = "canceled", _("Canceled")
    PAST_DUE = "past_due", _("Past due")


class Business(models.Model):
    """
    Business running coupon and loyalty programs.

    ``code`` is the public identifier (the Firestore document id for
    imported businesses). ``owner_uid`` is the Firebase Auth uid of the
    account that manages it.
    """

    code = models.CharField(
        _("code"),
        max_length=64,
        unique=True,
        help_text=_("Public business identifier"),
    )
    name = models.CharField(_("name"), max_length=200)
    owner_uid = models.CharField(
        _("owner uid"),
        max_length=128,
        blank=True,
        db_index=True,
        help_text=_("Firebase Auth uid of the owner"),
    )
    industry = models.CharField(_("industry"), max_length=100, blank=True)
    description = models.TextField(_("description"), blank=True)

    # Contact
    email = models.EmailField(_("email"), blank=True)
    phone = models.CharField(_("phone"), max_length=20, blank=True)
    website = models.URLField(_("website"), blank=True)
    address = models.CharField(_("address"), max_length=255, blank=True)

    # Regional settings
    currency = models.CharField(_("currency"), max_length=3, default="USD")
    timezone = models.CharField(_("timezone"), max_length=64, default="UTC")

    # Subscription
    subscription_tier = models.CharField(
        _("subscription tier"),
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.FREE,
    )
    subscription_status = models.CharField(
        _("subscription status"),
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
    )

    is_active = models.BooleanField(_("active"), default=True, db_index=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("business")
        verbose_name_plural = _("businesses")
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        if self.phone:
            from coupin.utils import normalize_phone

            self.phone = normalize_phone(self.phone)
        if self.email:
            self.email = self.email.lower().strip()
        self.currency = (self.currency or "USD").upper()
        super().save(*args, **kwargs)
