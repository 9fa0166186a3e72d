"""Coupon models - offers, allocations to customers, and redemptions."""

from decimal import ROUND_HALF_UP, Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

_CENT = Decimal("0.01")


class CouponType(models.TextChoices):
    PERCENTAGE = "percentage", _("Percentage")
    FIXED = "fixed", _("Fixed amount")
    BUY_X_GET_Y = "buy_x_get_y", _("Buy X get Y")
    FREE_ITEM = "free_item", _("Free item")


class Coupon(models.Model):
    """
    Redeemable offer created by a business.

    ``usage_count`` counts redemptions, ``distribution_count`` counts
    allocations to customers. Both only ever increase.
    """

    business = models.ForeignKey(
        "coupin.Business",
        on_delete=models.CASCADE,
        related_name="coupons",
        verbose_name=_("business"),
    )
    code = models.CharField(_("code"), max_length=32)
    title = models.CharField(_("title"), max_length=200)
    description = models.TextField(_("description"), blank=True)

    coupon_type = models.CharField(
        _("type"),
        max_length=20,
        choices=CouponType.choices,
        default=CouponType.PERCENTAGE,
    )
    value = models.DecimalField(
        _("value"),
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("Percentage or fixed amount"),
    )
    buy_quantity = models.PositiveIntegerField(_("buy quantity"), null=True, blank=True)
    get_quantity = models.PositiveIntegerField(_("get quantity"), null=True, blank=True)
    free_item = models.CharField(_("free item"), max_length=200, blank=True)

    min_purchase = models.DecimalField(
        _("minimum purchase"), max_digits=10, decimal_places=2, null=True, blank=True
    )
    max_discount = models.DecimalField(
        _("maximum discount"), max_digits=10, decimal_places=2, null=True, blank=True
    )

    starts_at = models.DateTimeField(_("starts at"), default=timezone.now)
    ends_at = models.DateTimeField(_("ends at"), null=True, blank=True)

    usage_limit = models.PositiveIntegerField(_("usage limit"), null=True, blank=True)
    usage_count = models.PositiveIntegerField(_("usage count"), default=0)
    distribution_count = models.PositiveIntegerField(_("distribution count"), default=0)
    customer_limit = models.PositiveIntegerField(
        _("uses per customer"), null=True, blank=True
    )

    first_time_only = models.BooleanField(_("first-time customers only"), default=False)
    birthday_only = models.BooleanField(_("birthday only"), default=False)
    is_active = models.BooleanField(_("active"), default=True, db_index=True)
    terms = models.TextField(_("terms and conditions"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("coupon")
        verbose_name_plural = _("coupons")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "code"],
                name="coupin_unique_coupon_code",
            ),
        ]
        indexes = [
            models.Index(fields=["business", "is_active", "-created_at"]),
            models.Index(fields=["business", "ends_at"]),
        ]

    def __str__(self):
        return f"{self.code}: {self.title}"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def is_running(self, at=None) -> bool:
        """Active and inside the start/end window."""
        at = at or timezone.now()
        if not self.is_active:
            return False
        if self.starts_at and at < self.starts_at:
            return False
        if self.ends_at and at > self.ends_at:
            return False
        return True

    @property
    def remaining_uses(self) -> int | None:
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.usage_count)

    def discount_for(self, amount: Decimal) -> Decimal:
        """
        Monetary discount this coupon gives on a purchase of ``amount``.

        Percentage discounts are capped by max_discount, fixed discounts by
        the purchase amount. Item-based coupons have no monetary value.
        """
        amount = Decimal(amount)
        if amount <= 0:
            return Decimal("0.00")
        if self.min_purchase is not None and amount < self.min_purchase:
            return Decimal("0.00")

        if self.coupon_type == CouponType.PERCENTAGE:
            discount = amount * Decimal(self.value) / Decimal(100)
            if self.max_discount is not None:
                discount = min(discount, Decimal(self.max_discount))
        elif self.coupon_type == CouponType.FIXED:
            discount = min(Decimal(self.value), amount)
        else:
            discount = Decimal("0")

        return discount.quantize(_CENT, rounding=ROUND_HALF_UP)


class CustomerCoupon(models.Model):
    """A coupon handed to a specific customer."""

    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.CASCADE,
        related_name="allocations",
        verbose_name=_("coupon"),
    )
    customer = models.ForeignKey(
        "coupin.Customer",
        on_delete=models.CASCADE,
        related_name="coupons",
        verbose_name=_("customer"),
    )
    allocated_at = models.DateTimeField(_("allocated at"), auto_now_add=True)
    expires_at = models.DateTimeField(_("expires at"), null=True, blank=True)
    used = models.BooleanField(_("used"), default=False)
    used_at = models.DateTimeField(_("used at"), null=True, blank=True)

    class Meta:
        verbose_name = _("customer coupon")
        verbose_name_plural = _("customer coupons")
        ordering = ["-allocated_at"]
        indexes = [
            models.Index(fields=["customer", "used"]),
        ]

    def __str__(self):
        state = "used" if self.used else "open"
        return f"{self.coupon.code} -> {self.customer.code} ({state})"

    @property
    def code(self) -> str:
        return self.coupon.code

    @property
    def is_expired(self) -> bool:
        return bool(self.expires_at and self.expires_at < timezone.now())


class Redemption(models.Model):
    """
    Immutable record of a coupon redemption.

    Each row is one savings event for the customer: ``discount`` is what
    they saved on a purchase of ``amount``.
    """

    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("coupon"),
    )
    customer = models.ForeignKey(
        "coupin.Customer",
        on_delete=models.CASCADE,
        related_name="redemptions",
        verbose_name=_("customer"),
    )
    business = models.ForeignKey(
        "coupin.Business",
        on_delete=models.CASCADE,
        related_name="redemptions",
        verbose_name=_("business"),
    )
    amount = models.DecimalField(_("purchase amount"), max_digits=12, decimal_places=2)
    discount = models.DecimalField(_("discount"), max_digits=12, decimal_places=2)
    reference = models.CharField(_("reference"), max_length=100, blank=True)
    redeemed_at = models.DateTimeField(_("redeemed at"), default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _("redemption")
        verbose_name_plural = _("redemptions")
        ordering = ["-redeemed_at"]
        indexes = [
            models.Index(fields=["business", "customer", "-redeemed_at"]),
            models.Index(fields=["business", "coupon", "-redeemed_at"]),
        ]

    def __str__(self):
        return f"{self.coupon.code} by {self.customer.code}: -{self.discount}"
