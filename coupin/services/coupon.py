"""Coupon service - creation, distribution, and redemption.

Redemption runs the coupon gates (G1-G4) under a row lock on the coupon so
concurrent redemptions cannot exceed usage_limit.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from coupin.exceptions import CoupinError
from coupin.gates import Gates
from coupin.models import Coupon, Customer, CustomerCoupon, Redemption
from coupin.services.customer import get_business
from coupin.signals import coupon_redeemed

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class CouponStats:
    """Aggregated coupon numbers for a business dashboard."""

    total: int
    active: int
    distributed: int
    redeemed: int
    total_discount: Decimal

    @property
    def redemption_rate(self) -> float:
        if not self.distributed:
            return 0.0
        return round(self.redeemed / self.distributed * 100, 1)


def _random_code(length: int) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_code(business_code: str, length: int | None = None) -> str:
    """
    Generate a random coupon code unique within the business.

    Args:
        business_code: Business code
        length: Code length (default: COUPON_CODE_LENGTH)

    Returns:
        Uppercase alphanumeric code
    """
    if length is None:
        from coupin.conf import coupin_settings

        length = coupin_settings.COUPON_CODE_LENGTH

    code = _random_code(length)
    while Coupon.objects.filter(business__code=business_code, code=code).exists():
        code = _random_code(length)
    return code


def get(business_code: str, code: str) -> Coupon | None:
    """Get coupon by code within a business."""
    try:
        return Coupon.objects.select_related("business").get(
            business__code=business_code, code=code.strip().upper()
        )
    except Coupon.DoesNotExist:
        return None


def create(business_code: str, title: str, code: str = "", **fields) -> Coupon:
    """
    Create a coupon.

    Args:
        business_code: Business code
        title: Coupon title
        code: Coupon code (generated when empty)
        **fields: Other Coupon fields (coupon_type, value, ends_at, ...)

    Returns:
        Created Coupon

    Raises:
        CoupinError: BUSINESS_NOT_FOUND, COUPON_CODE_TAKEN
    """
    business = get_business(business_code)

    if code:
        code = code.strip().upper()
        if Coupon.objects.filter(business=business, code=code).exists():
            raise CoupinError("COUPON_CODE_TAKEN", coupon_code=code)
    else:
        code = generate_code(business_code)

    coupon = Coupon.objects.create(business=business, code=code, title=title, **fields)
    logger.info("Coupon %s created for business %s", coupon.code, business.code)
    return coupon


def update(business_code: str, code: str, **fields) -> Coupon:
    """
    Update coupon fields.

    Raises:
        CoupinError: COUPON_NOT_FOUND
    """
    coupon = get(business_code, code)
    if not coupon:
        raise CoupinError("COUPON_NOT_FOUND", coupon_code=code)

    for key, value in fields.items():
        if hasattr(coupon, key):
            setattr(coupon, key, value)
    coupon.save()
    return coupon


def deactivate(business_code: str, code: str) -> bool:
    """Deactivate a coupon. Returns False if not found."""
    updated = Coupon.objects.filter(
        business__code=business_code, code=code.strip().upper()
    ).update(is_active=False, updated_at=timezone.now())
    return updated > 0


def active_coupons(business_code: str, at: datetime | None = None) -> list[Coupon]:
    """Running coupons for a business, newest first."""
    at = at or timezone.now()
    return list(
        Coupon.objects.filter(
            business__code=business_code,
            is_active=True,
            starts_at__lte=at,
        )
        .filter(Q(ends_at__isnull=True) | Q(ends_at__gte=at))
        .order_by("-created_at")
    )


def recent_coupons(business_code: str, count: int = 5) -> list[Coupon]:
    """Most recently created coupons, active or not."""
    return list(
        Coupon.objects.filter(business__code=business_code).order_by("-created_at")[:count]
    )


def allocate(
    coupon: Coupon,
    customer: Customer,
    expires_at: datetime | None = None,
) -> CustomerCoupon:
    """
    Hand a coupon to a customer.

    Increments coupon.distribution_count.
    """
    with transaction.atomic():
        allocation = CustomerCoupon.objects.create(
            coupon=coupon,
            customer=customer,
            expires_at=expires_at or coupon.ends_at,
        )
        Coupon.objects.filter(pk=coupon.pk).update(
            distribution_count=F("distribution_count") + 1,
            updated_at=timezone.now(),
        )
    coupon.refresh_from_db(fields=["distribution_count", "updated_at"])
    return allocation


def distribute(
    coupon: Coupon,
    customers: list[Customer],
    expires_at: datetime | None = None,
) -> list[CustomerCoupon]:
    """Allocate a coupon to several customers at once."""
    with transaction.atomic():
        allocations = [allocate(coupon, customer, expires_at) for customer in customers]
    logger.info("Coupon %s distributed to %d customers", coupon.code, len(allocations))
    return allocations


def redeem(
    business_code: str,
    code: str,
    customer: Customer,
    amount: Decimal,
    reference: str = "",
    at: datetime | None = None,
) -> Redemption:
    """
    Redeem a coupon for a customer's purchase.

    Runs G1 (active), G2 (usage limit), G3 (per-customer limit) and
    G4 (eligibility), then records the redemption, bumps usage_count and
    marks the oldest open allocation as used.

    Args:
        business_code: Business code
        code: Coupon code
        customer: Customer redeeming
        amount: Purchase amount
        reference: External reference (receipt, order)
        at: Redemption moment (default: now)

    Returns:
        Created Redemption

    Raises:
        CoupinError: COUPON_NOT_FOUND, COUPON_MIN_PURCHASE
        GateError: If any gate fails
    """
    at = at or timezone.now()
    amount = Decimal(amount)

    with transaction.atomic():
        try:
            coupon = Coupon.objects.select_for_update().get(
                business__code=business_code, code=code.strip().upper()
            )
        except Coupon.DoesNotExist:
            raise CoupinError("COUPON_NOT_FOUND", coupon_code=code)

        Gates.coupon_active(coupon, at=at)
        Gates.usage_limit(coupon)
        Gates.customer_limit(coupon, customer)
        Gates.eligibility(coupon, customer, at=at)

        if coupon.min_purchase is not None and amount < coupon.min_purchase:
            raise CoupinError(
                "COUPON_MIN_PURCHASE",
                min_purchase=str(coupon.min_purchase),
                amount=str(amount),
            )

        redemption = Redemption.objects.create(
            coupon=coupon,
            customer=customer,
            business_id=coupon.business_id,
            amount=amount,
            discount=coupon.discount_for(amount),
            reference=reference,
            redeemed_at=at,
        )

        coupon.usage_count += 1
        coupon.save(update_fields=["usage_count", "updated_at"])

        allocation = (
            CustomerCoupon.objects.filter(coupon=coupon, customer=customer, used=False)
            .order_by("allocated_at")
            .first()
        )
        if allocation:
            allocation.used = True
            allocation.used_at = at
            allocation.save(update_fields=["used", "used_at"])

    logger.info(
        "Coupon %s redeemed by %s (discount %s)",
        coupon.code,
        customer.code,
        redemption.discount,
    )
    coupon_redeemed.send(
        sender=Redemption,
        redemption=redemption,
        coupon=coupon,
        customer=customer,
    )
    return redemption


def mark_used(allocation_id: int) -> bool:
    """Mark a customer's coupon allocation as used. Returns False if not found."""
    updated = CustomerCoupon.objects.filter(pk=allocation_id, used=False).update(
        used=True, used_at=timezone.now()
    )
    return updated > 0


def customer_coupons(customer: Customer, include_used: bool = False) -> list[CustomerCoupon]:
    """Coupons allocated to a customer, newest first."""
    qs = CustomerCoupon.objects.select_related("coupon").filter(customer=customer)
    if not include_used:
        qs = qs.filter(used=False)
    return list(qs)


def customer_coupon_stats(customer: Customer) -> dict[str, int]:
    """Allocation counts for a customer."""
    agg = CustomerCoupon.objects.filter(customer=customer).aggregate(
        total=Count("id"),
        used=Count("id", filter=Q(used=True)),
    )
    return {
        "total_allocated": agg["total"],
        "total_used": agg["used"],
        "unused": agg["total"] - agg["used"],
    }


def coupon_recipients(coupon: Coupon) -> list[Customer]:
    """Customers a coupon was allocated to."""
    return list(
        Customer.objects.filter(coupons__coupon=coupon).distinct().order_by("first_name")
    )


def business_coupon_stats(business_code: str) -> CouponStats:
    """Coupon totals for a business."""
    coupons = Coupon.objects.filter(business__code=business_code)
    agg = coupons.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(is_active=True)),
        distributed=Sum("distribution_count"),
        redeemed=Sum("usage_count"),
    )
    discount = Redemption.objects.filter(business__code=business_code).aggregate(
        total=Sum("discount")
    )["total"]

    return CouponStats(
        total=agg["total"] or 0,
        active=agg["active"] or 0,
        distributed=agg["distributed"] or 0,
        redeemed=agg["redeemed"] or 0,
        total_discount=(discount or Decimal("0")).quantize(Decimal("0.01")),
    )
