"""Coupin exceptions."""


class BaseError(Exception):
    """
    Structured exception with a machine-readable code.

    Subclasses declare ``_default_messages`` mapping codes to messages.
    Extra keyword arguments are kept in ``data``.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class CoupinError(BaseError):
    """
    Structured exception for coupon and loyalty operations.

    Usage:
        try:
            coupon_service.redeem("biz-001", "SAVE10", customer, amount)
        except CoupinError as e:
            if e.code == "COUPON_MIN_PURCHASE":
                ask_for_larger_order()
    """

    _default_messages = {
        "BUSINESS_NOT_FOUND": "Business not found",
        "CUSTOMER_NOT_FOUND": "Customer not found",
        "INVALID_PHONE": "Invalid phone number",
        "COUPON_NOT_FOUND": "Coupon not found",
        "COUPON_CODE_TAKEN": "Coupon code already exists for this business",
        "COUPON_INACTIVE": "Coupon is not active",
        "COUPON_EXPIRED": "Coupon has expired",
        "COUPON_USAGE_LIMIT": "Coupon usage limit reached",
        "COUPON_CUSTOMER_LIMIT": "Customer already used this coupon",
        "COUPON_NOT_ELIGIBLE": "Customer is not eligible for this coupon",
        "COUPON_MIN_PURCHASE": "Purchase amount below coupon minimum",
        "LOYALTY_PROGRAM_NOT_FOUND": "Loyalty program not found",
        "LOYALTY_NOT_ENROLLED": "Customer not enrolled in loyalty program",
        "LOYALTY_INSUFFICIENT_POINTS": "Insufficient points for redemption",
        "LOYALTY_INSUFFICIENT_VISITS": "Insufficient visits for redemption",
        "LOYALTY_TIER_REQUIRED": "Reward requires a higher tier",
        "LOYALTY_REWARD_UNAVAILABLE": "Reward is not available for this membership",
        "LOYALTY_INVALID_POINTS": "Points must be positive",
        "QR_INVALID": "Invalid QR code",
        "QR_WRONG_BUSINESS": "This QR code is not for your business",
        "QR_EXPIRED": "QR code expired, ask the customer to refresh it",
        "QR_ALREADY_USED": "QR code already scanned",
        "CURRENCY_NOT_FOUND": "Currency not found",
        "REGION_NOT_FOUND": "Region not found",
        "PLAN_NOT_FOUND": "Pricing plan not found",
        "TIMELINE_INVALID": "Year and title are required",
        "TIMELINE_NOT_FOUND": "Timeline entry not found",
    }


# Gate failures surfaced through the JSON views
GATE_ERROR_CODES = {
    "G1_CouponActive": "COUPON_INACTIVE",
    "G2_UsageLimit": "COUPON_USAGE_LIMIT",
    "G3_CustomerLimit": "COUPON_CUSTOMER_LIMIT",
    "G4_Eligibility": "COUPON_NOT_ELIGIBLE",
    "G5_ReplayProtection": "QR_ALREADY_USED",
    "G6_QRFreshness": "QR_EXPIRED",
}


def gate_error_code(exc) -> str:
    """Error code for a GateError."""
    if exc.gate_name == "G1_CouponActive" and "ends_at" in exc.details:
        return "COUPON_EXPIRED"
    return GATE_ERROR_CODES.get(exc.gate_name, "GATE_FAILED")
