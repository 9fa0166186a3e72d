"""Savings service - what customers saved through coupons.

Every Redemption is a savings event. Totals can span all of a person's
customer records when looked up by account (user_uid).
"""

from datetime import date, timedelta
from decimal import Decimal

from django.db.models import Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from coupin.models import Customer, Redemption

CENTS = Decimal("0.01")


def _redemptions(customer: Customer | None = None, user_uid: str = ""):
    cond = Q()
    if customer is not None:
        cond |= Q(customer=customer)
    if user_uid:
        cond |= Q(customer__user_uid=user_uid)
    if not cond:
        return Redemption.objects.none()
    return Redemption.objects.filter(cond)


def total_saved(customer: Customer | None = None, user_uid: str = "") -> Decimal:
    """Total discount received, across all time."""
    total = _redemptions(customer, user_uid).aggregate(total=Sum("discount"))["total"]
    return (total or Decimal("0")).quantize(CENTS)


def monthly_savings(
    year: int,
    month: int,
    customer: Customer | None = None,
    user_uid: str = "",
) -> Decimal:
    """Total discount received in a calendar month."""
    total = (
        _redemptions(customer, user_uid)
        .filter(redeemed_at__year=year, redeemed_at__month=month)
        .aggregate(total=Sum("discount"))["total"]
    )
    return (total or Decimal("0")).quantize(CENTS)


def savings_days(customer: Customer | None = None, user_uid: str = "") -> list[date]:
    """Distinct local dates with at least one redemption, newest first."""
    days = (
        _redemptions(customer, user_uid)
        .annotate(day=TruncDate("redeemed_at", tzinfo=timezone.get_current_timezone()))
        .values_list("day", flat=True)
        .distinct()
    )
    return sorted(set(days), reverse=True)


def calculate_streaks(days: list[date], today: date) -> tuple[int, int]:
    """
    Current and longest run of consecutive savings days.

    The current streak survives one day without savings (yesterday counts),
    and is 0 when the latest savings day is older than that.

    Returns:
        (current_streak, longest_streak)
    """
    unique = sorted(set(days), reverse=True)
    if not unique:
        return 0, 0

    longest = run = 1
    for newer, older in zip(unique, unique[1:]):
        if newer - older == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    if (today - unique[0]).days > 1:
        return 0, longest

    current = 1
    for newer, older in zip(unique, unique[1:]):
        if newer - older != timedelta(days=1):
            break
        current += 1

    return current, longest


def savings_streak(
    customer: Customer | None = None,
    user_uid: str = "",
    today: date | None = None,
) -> tuple[int, int]:
    """(current, longest) savings streak for a customer or account."""
    today = today or timezone.localdate()
    return calculate_streaks(savings_days(customer, user_uid), today)
