"""Customer model.

A customer belongs to one business. The same person visiting two
businesses has two Customer rows; ``user_uid`` links them to a single
Coupin account once the person signs up (see services.customer.link_user).
"""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


class Customer(models.Model):
    """Customer of a business."""

    business = models.ForeignKey(
        "coupin.Business",
        on_delete=models.CASCADE,
        related_name="customers",
        verbose_name=_("business"),
    )
    code = models.CharField(
        _("code"),
        max_length=64,
        help_text=_("Customer identifier, unique per business"),
    )
    uuid = models.UUIDField(default=uuid_lib.uuid4, editable=False, unique=True)

    first_name = models.CharField(_("first name"), max_length=100)
    last_name = models.CharField(_("last name"), max_length=100, blank=True)

    # Contact
    email = models.EmailField(_("email"), blank=True, db_index=True)
    phone = models.CharField(
        _("phone"),
        max_length=20,
        blank=True,
        db_index=True,
        help_text=_("E.164, normalized on save"),
    )

    # Linked Coupin account
    user_uid = models.CharField(
        _("user uid"),
        max_length=128,
        blank=True,
        db_index=True,
        help_text=_("Firebase Auth uid once the customer has an account"),
    )

    birthdate = models.DateField(_("birthdate"), null=True, blank=True)
    joined_at = models.DateTimeField(_("joined at"), auto_now_add=True)
    last_visit_at = models.DateTimeField(_("last visit"), null=True, blank=True)
    total_spent = models.DecimalField(
        _("total spent"), max_digits=12, decimal_places=2, default=0
    )
    total_visits = models.PositiveIntegerField(_("total visits"), default=0)

    tags = models.JSONField(_("tags"), default=list, blank=True)
    notes = models.TextField(_("notes"), blank=True)
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)

    is_active = models.BooleanField(_("active"), default=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        ordering = ["first_name", "last_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "code"],
                name="coupin_unique_customer_code",
            ),
        ]
        indexes = [
            models.Index(fields=["business", "phone"]),
            models.Index(fields=["business", "email"]),
            models.Index(fields=["business", "last_name"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def name(self) -> str:
        """Full name (first + last)."""
        return f"{self.first_name} {self.last_name}".strip()

    def is_birthday(self, day) -> bool:
        """True if ``day`` (a date) is this customer's birthday."""
        if not self.birthdate:
            return False
        return (self.birthdate.month, self.birthdate.day) == (day.month, day.day)

    def save(self, *args, **kwargs):
        if self.phone:
            from coupin.utils import normalize_phone

            self.phone = normalize_phone(self.phone)

        if self.email:
            self.email = self.email.lower().strip()

        super().save(*args, **kwargs)
