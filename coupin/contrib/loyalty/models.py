"""Loyalty models - programs, tiers, rewards, memberships, and the ledger."""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class ProgramType(models.TextChoices):
    """How members progress."""

    POINTS = "points", _("Points")
    VISITS = "visits", _("Visits")
    TIERED = "tiered", _("Tiered")


class RewardType(models.TextChoices):
    DISCOUNT = "discount", _("Discount")
    FREE_ITEM = "free_item", _("Free item")
    CUSTOM = "custom", _("Custom")


class TransactionType(models.TextChoices):
    """Loyalty transaction types."""

    EARN = "earn", _("Earn")
    REDEEM = "redeem", _("Redeem")
    ADJUST = "adjust", _("Adjust")
    VISIT = "visit", _("Visit")


class LoyaltyProgram(models.Model):
    """
    Business-defined reward scheme.

    - points: members earn ``points_per_amount`` points per unit spent
    - visits: every ``visits_required`` visits unlock a reward
    - tiered: points, multiplied by the member's tier multiplier

    One active program per business.
    """

    business = models.ForeignKey(
        "coupin.Business",
        on_delete=models.CASCADE,
        related_name="loyalty_programs",
        verbose_name=_("business"),
    )
    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"), blank=True)
    program_type = models.CharField(
        _("type"),
        max_length=20,
        choices=ProgramType.choices,
        default=ProgramType.POINTS,
    )
    points_per_amount = models.DecimalField(
        _("points per amount"),
        max_digits=8,
        decimal_places=4,
        default=Decimal("1"),
        help_text=_("Points earned per currency unit spent (e.g. 0.1 = 1 point per 10)"),
    )
    amount_per_point = models.DecimalField(
        _("amount per point"),
        max_digits=8,
        decimal_places=4,
        null=True,
        blank=True,
        help_text=_("Currency value of one point when redeeming"),
    )
    visits_required = models.PositiveIntegerField(
        _("visits required"),
        null=True,
        blank=True,
    )

    is_active = models.BooleanField(_("active"), default=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("loyalty program")
        verbose_name_plural = _("loyalty programs")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["business"],
                condition=models.Q(is_active=True),
                name="coupin_one_active_program_per_business",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_program_type_display()})"


class LoyaltyTier(models.Model):
    """Level within a program, reached at ``threshold`` points or visits."""

    program = models.ForeignKey(
        LoyaltyProgram,
        on_delete=models.CASCADE,
        related_name="tiers",
        verbose_name=_("program"),
    )
    name = models.CharField(_("name"), max_length=50)
    threshold = models.PositiveIntegerField(
        _("threshold"),
        help_text=_("Lifetime points (or visits) required"),
    )
    multiplier = models.DecimalField(
        _("multiplier"),
        max_digits=4,
        decimal_places=2,
        default=Decimal("1.00"),
    )
    benefits = models.JSONField(_("benefits"), default=list, blank=True)

    class Meta:
        verbose_name = _("tier")
        verbose_name_plural = _("tiers")
        ordering = ["threshold"]
        constraints = [
            models.UniqueConstraint(
                fields=["program", "name"],
                name="coupin_unique_tier_name",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.threshold}+)"


class LoyaltyReward(models.Model):
    """Reward members can claim with points or visits."""

    program = models.ForeignKey(
        LoyaltyProgram,
        on_delete=models.CASCADE,
        related_name="rewards",
        verbose_name=_("program"),
    )
    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"), blank=True)
    points_cost = models.PositiveIntegerField(_("points cost"), null=True, blank=True)
    visits_cost = models.PositiveIntegerField(_("visits cost"), null=True, blank=True)
    tier_required = models.ForeignKey(
        LoyaltyTier,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("tier required"),
    )
    reward_type = models.CharField(
        _("type"),
        max_length=20,
        choices=RewardType.choices,
        default=RewardType.DISCOUNT,
    )
    discount_type = models.CharField(
        _("discount type"),
        max_length=20,
        choices=[("percentage", _("Percentage")), ("fixed", _("Fixed amount"))],
        blank=True,
    )
    discount_value = models.DecimalField(
        _("discount value"), max_digits=10, decimal_places=2, null=True, blank=True
    )
    free_item = models.CharField(_("free item"), max_length=200, blank=True)
    is_active = models.BooleanField(_("active"), default=True)

    class Meta:
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["points_cost", "visits_cost"]
        indexes = [
            models.Index(fields=["program", "points_cost"]),
        ]

    def __str__(self):
        return self.name


class LoyaltyMembership(models.Model):
    """
    A customer's progress in a program.

    Tracks the spendable points balance, lifetime points (never decreases),
    visits, spend, and the current tier.
    """

    customer = models.ForeignKey(
        "coupin.Customer",
        on_delete=models.CASCADE,
        related_name="loyalty_memberships",
        verbose_name=_("customer"),
    )
    program = models.ForeignKey(
        LoyaltyProgram,
        on_delete=models.CASCADE,
        related_name="memberships",
        verbose_name=_("program"),
    )

    points_balance = models.IntegerField(_("points balance"), default=0)
    lifetime_points = models.IntegerField(_("lifetime points"), default=0)
    visits = models.PositiveIntegerField(_("visits"), default=0)
    total_spent = models.DecimalField(
        _("total spent"), max_digits=12, decimal_places=2, default=0
    )
    last_visit_at = models.DateTimeField(_("last visit"), null=True, blank=True)
    tier = models.ForeignKey(
        LoyaltyTier,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
        verbose_name=_("tier"),
    )

    is_active = models.BooleanField(_("active"), default=True)
    enrolled_at = models.DateTimeField(_("enrolled at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("membership")
        verbose_name_plural = _("memberships")
        constraints = [
            models.UniqueConstraint(
                fields=["customer", "program"],
                name="coupin_unique_membership",
            ),
        ]

    def __str__(self):
        return f"{self.customer.code}: {self.points_balance}pts | {self.visits} visits"

    @property
    def visits_remaining(self) -> int | None:
        """Visits left until the next visit-based reward."""
        required = self.program.visits_required
        if not required:
            return None
        return required - (self.visits % required)

    @property
    def multiplier(self) -> Decimal:
        return self.tier.multiplier if self.tier else Decimal("1.00")


class LoyaltyTransaction(models.Model):
    """
    Immutable record of a loyalty transaction.

    Every earn, redeem, adjustment, or visit is logged here.
    Transactions are append-only - never modified or deleted.
    """

    membership = models.ForeignKey(
        LoyaltyMembership,
        on_delete=models.CASCADE,
        related_name="transactions",
        verbose_name=_("membership"),
    )
    transaction_type = models.CharField(
        _("type"),
        max_length=20,
        choices=TransactionType.choices,
    )
    points = models.IntegerField(
        _("points"),
        help_text=_("Positive for earn, negative for redeem"),
    )
    balance_after = models.IntegerField(_("balance after"))
    description = models.CharField(_("description"), max_length=200)
    reference = models.CharField(_("reference"), max_length=100, blank=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    created_by = models.CharField(_("created by"), max_length=128, blank=True)

    class Meta:
        verbose_name = _("loyalty transaction")
        verbose_name_plural = _("loyalty transactions")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["membership", "-created_at"]),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{sign}{self.points}pts - {self.description}"


class VisitRecord(models.Model):
    """One customer visit, from a QR scan or entered by phone."""

    membership = models.ForeignKey(
        LoyaltyMembership,
        on_delete=models.CASCADE,
        related_name="visit_records",
        verbose_name=_("membership"),
    )
    business = models.ForeignKey(
        "coupin.Business",
        on_delete=models.CASCADE,
        related_name="visit_records",
        verbose_name=_("business"),
    )
    visited_at = models.DateTimeField(_("visited at"), auto_now_add=True, db_index=True)
    amount_spent = models.DecimalField(
        _("amount spent"), max_digits=12, decimal_places=2, default=0
    )
    points_earned = models.IntegerField(_("points earned"), default=0)
    notes = models.TextField(_("notes"), blank=True)
    recorded_by = models.CharField(_("recorded by"), max_length=128, blank=True)
    source = models.CharField(
        _("source"),
        max_length=20,
        choices=[("qr", _("QR scan")), ("phone", _("Phone lookup"))],
        default="qr",
    )

    class Meta:
        verbose_name = _("visit")
        verbose_name_plural = _("visits")
        ordering = ["-visited_at"]

    def __str__(self):
        return f"{self.membership.customer.code} @ {self.visited_at:%Y-%m-%d %H:%M}"
