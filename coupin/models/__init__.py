"""Coupin models (CORE only).

CORE models are exported here. Contrib models are in their respective modules:
- coupin.contrib.loyalty: LoyaltyProgram, LoyaltyMembership, VisitRecord
- coupin.contrib.regional: Currency, Region, RegionalPreference
- coupin.contrib.pricing: PricingPlan
- coupin.contrib.timeline: TimelineEntry
"""

from coupin.models.business import Business, SubscriptionStatus, SubscriptionTier
from coupin.models.customer import Customer
from coupin.models.coupon import Coupon, CouponType, CustomerCoupon, Redemption
from coupin.models.processed_event import ProcessedEvent

__all__ = [
    # Core models
    "Business",
    "SubscriptionTier",
    "SubscriptionStatus",
    "Customer",
    # Coupons
    "Coupon",
    "CouponType",
    "CustomerCoupon",
    "Redemption",
    # Replay protection (G5)
    "ProcessedEvent",
]
