"""
Coupin Loyalty - Points, visits, and tiered loyalty programs.

One active program per business. Customers earn points on spend (points
and tiered programs) and progress on every visit. Visits come from a
scanned loyalty QR code or a phone number lookup at the till.

Usage:
    INSTALLED_APPS = [
        ...
        "coupin",
        "coupin.contrib.loyalty",
    ]

    from coupin.contrib.loyalty import LoyaltyService

    program = LoyaltyService.get_program("CAFE-01")
    membership = LoyaltyService.enroll(customer, program)
    LoyaltyService.add_visit(membership, amount=Decimal("120.00"))
"""


def __getattr__(name):
    if name == "LoyaltyService":
        from coupin.contrib.loyalty.service import LoyaltyService

        return LoyaltyService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LoyaltyService"]
