"""Pricing service - plan lookup, currency prices, and default plans."""

import copy
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from coupin.contrib.pricing.models import PricingPlan
from coupin.exceptions import CoupinError

logger = logging.getLogger(__name__)


DEFAULT_PLANS = [
    {
        "name": "Starter",
        "description": "For small businesses just getting started",
        "price": Decimal("0"),
        "is_popular": False,
        "cta_text": "Start Free",
        "currency_prices": [
            {"currencyCode": "USD", "price": 0},
            {"currencyCode": "ZAR", "price": 0},
            {"currencyCode": "EUR", "price": 0},
            {"currencyCode": "GBP", "price": 0},
        ],
        "features": [
            {"id": "free-1", "name": "100 customers", "included": True},
            {"id": "free-2", "name": "5 coupons", "included": True},
            {"id": "free-3", "name": "Basic analytics", "included": True},
            {"id": "free-4", "name": "Email support", "included": True},
            {"id": "free-5", "name": "Custom branding", "included": False},
            {"id": "free-6", "name": "Advanced analytics", "included": False},
            {"id": "free-7", "name": "Priority support", "included": False},
        ],
    },
    {
        "name": "Growth",
        "description": "For growing businesses with more customers",
        "price": Decimal("29"),
        "is_popular": True,
        "cta_text": "Go Pro",
        "currency_prices": [
            {"currencyCode": "USD", "price": 29},
            {"currencyCode": "ZAR", "price": 199.99},
            {"currencyCode": "EUR", "price": 27},
            {"currencyCode": "GBP", "price": 23},
        ],
        "features": [
            {"id": "pro-1", "name": "Up to 500 customers", "included": True, "highlight": True},
            {"id": "pro-2", "name": "Up to 50 coupons", "included": True, "highlight": True},
            {"id": "pro-3", "name": "Advanced analytics", "included": True},
            {"id": "pro-4", "name": "Custom branding", "included": True},
            {"id": "pro-5", "name": "Email & phone support", "included": True},
            {"id": "pro-6", "name": "API access", "included": False},
            {"id": "pro-7", "name": "White-label option", "included": False},
        ],
    },
    {
        "name": "Professional",
        "description": "For established businesses with custom needs",
        "price": Decimal("99"),
        "is_popular": False,
        "cta_text": "Contact Sales",
        "currency_prices": [
            {"currencyCode": "USD", "price": 99},
            {"currencyCode": "ZAR", "price": 399.99},
            {"currencyCode": "EUR", "price": 89},
            {"currencyCode": "GBP", "price": 79},
        ],
        "features": [
            {"id": "ent-1", "name": "Unlimited customers", "included": True, "highlight": True},
            {"id": "ent-2", "name": "Unlimited coupons", "included": True, "highlight": True},
            {"id": "ent-3", "name": "Advanced analytics", "included": True},
            {"id": "ent-4", "name": "Custom branding", "included": True},
            {"id": "ent-5", "name": "Priority support 24/7", "included": True},
            {"id": "ent-6", "name": "API access", "included": True},
            {"id": "ent-7", "name": "White-label option", "included": True},
            {"id": "ent-8", "name": "Dedicated account manager", "included": True},
        ],
    },
]


class PricingService:
    """
    Service for pricing plans.

    Uses @classmethod for extensibility (consistent with other contrib services).
    """

    @classmethod
    def active_plans(cls) -> list[PricingPlan]:
        """Active plans, by sort_order then price."""
        return list(PricingPlan.objects.filter(is_active=True).order_by("sort_order", "price"))

    @classmethod
    def get_plan(cls, plan_id: int) -> PricingPlan:
        """
        Raises:
            CoupinError: PLAN_NOT_FOUND
        """
        try:
            return PricingPlan.objects.get(pk=plan_id)
        except PricingPlan.DoesNotExist:
            raise CoupinError("PLAN_NOT_FOUND", plan_id=plan_id)

    @classmethod
    def price_for(cls, plan: PricingPlan, currency: str) -> Decimal:
        """Plan price in ``currency``, falling back to the base price."""
        currency = (currency or "").upper()
        for entry in plan.currency_prices or []:
            if str(entry.get("currencyCode", "")).upper() == currency and entry.get("price") is not None:
                return Decimal(str(entry["price"]))
        return Decimal(plan.price)

    @classmethod
    def has_price_in(cls, plan: PricingPlan, currency: str) -> bool:
        currency = (currency or "").upper()
        return currency == plan.currency or any(
            str(entry.get("currencyCode", "")).upper() == currency
            for entry in plan.currency_prices or []
        )

    @classmethod
    def format_price(cls, amount, currency: str) -> str:
        """
        Format an amount with its currency symbol.

        At most two decimals, trailing zeros dropped: 29 -> "$29",
        199.99 -> "R199.99", 1500 -> "$1,500".
        """
        from coupin.contrib.regional.service import RegionalService

        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        sign = "-" if value < 0 else ""
        digits = f"{abs(value):,.2f}".rstrip("0").rstrip(".")
        return f"{sign}{RegionalService.currency_symbol(currency)}{digits}"

    @classmethod
    def initialize_defaults(cls) -> int:
        """Create the default plans when there are none. Returns count created."""
        if PricingPlan.objects.exists():
            return 0
        plans = PricingPlan.objects.bulk_create(
            [
                PricingPlan(currency="USD", billing_cycle="month", sort_order=position, **copy.deepcopy(plan))
                for position, plan in enumerate(DEFAULT_PLANS)
            ]
        )
        logger.info("Created %d default pricing plans", len(plans))
        return len(plans)

    @classmethod
    def force_refresh(cls) -> int:
        """Delete every plan and recreate the defaults."""
        with transaction.atomic():
            deleted, _ = PricingPlan.objects.all().delete()
            created = cls.initialize_defaults()
        logger.info("Pricing plans refreshed (%d deleted, %d created)", deleted, created)
        return created

    @classmethod
    def reorder(cls, plan_ids: list[int]) -> None:
        """Set sort_order from the position of each id in ``plan_ids``."""
        with transaction.atomic():
            for position, plan_id in enumerate(plan_ids):
                PricingPlan.objects.filter(pk=plan_id).update(sort_order=position)

    @classmethod
    def usage_percentage(cls, used: int, limit: int | None) -> float:
        """Share of a plan limit in use, capped at 100. 0 when unlimited."""
        if not limit:
            return 0.0
        return min(used / limit * 100, 100.0)

    @classmethod
    def usage_color(cls, percentage: float) -> str:
        if percentage >= 90:
            return "#ef4444"
        if percentage >= 75:
            return "#eab308"
        return "#22c55e"

    @classmethod
    def plan_dict(cls, plan: PricingPlan, currency: str | None = None) -> dict:
        """Plan as displayed on the pricing page, priced in ``currency``."""
        currency = (currency or plan.currency).upper()
        if not cls.has_price_in(plan, currency):
            currency = plan.currency
        price = cls.price_for(plan, currency)
        return {
            "id": plan.pk,
            "name": plan.name,
            "description": plan.description,
            "price": str(price),
            "currency": currency,
            "formatted_price": cls.format_price(price, currency),
            "billing_cycle": plan.billing_cycle,
            "features": plan.features,
            "is_popular": plan.is_popular,
            "cta_text": plan.cta_text,
        }
