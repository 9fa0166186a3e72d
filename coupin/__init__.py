"""
Coupin - coupons and loyalty programs for businesses.

Usage:
    from coupin.services import coupon as coupon_service
    from coupin.gates import Gates, GateError, GateResult

    coupon = coupon_service.create("biz-001", title="10% off", value=10)
    redemption = coupon_service.redeem("biz-001", coupon.code, customer, Decimal("200"))

    # Gates validation
    Gates.coupon_active(coupon)
    Gates.qr_freshness(payload["timestamp"])
"""


def __getattr__(name):
    if name == "Gates":
        from coupin.gates import Gates

        return Gates
    if name == "GateError":
        from coupin.gates import GateError

        return GateError
    if name == "GateResult":
        from coupin.gates import GateResult

        return GateResult
    if name == "CoupinError":
        from coupin.exceptions import CoupinError

        return CoupinError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["Gates", "GateError", "GateResult", "CoupinError"]
__version__ = "0.3.0"
