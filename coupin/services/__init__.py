"""Coupin services (CORE only).

CORE services are exported here. Contrib services are in their respective modules:
- coupin.contrib.loyalty: LoyaltyService
- coupin.contrib.regional: RegionalService
- coupin.contrib.pricing: PricingService
- coupin.contrib.timeline: TimelineService
"""

from coupin.services import customer
from coupin.services import coupon
from coupin.services import savings

__all__ = ["customer", "coupon", "savings"]
