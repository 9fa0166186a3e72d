"""
Coupin Pricing - Subscription plans shown on the pricing page.

Usage:
    from coupin.contrib.pricing import PricingService

    for plan in PricingService.active_plans():
        price = PricingService.price_for(plan, "ZAR")
        PricingService.format_price(price, "ZAR")  # "R199.99"
"""


def __getattr__(name):
    if name == "PricingService":
        from coupin.contrib.pricing.service import PricingService

        return PricingService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["PricingService"]
