"""
Coupin Gates - Validation rules.

G1: CouponActive - Coupon is active and inside its start/end window
G2: UsageLimit - Coupon has redemptions left
G3: CustomerLimit - Customer has not used up their per-customer allowance
G4: Eligibility - first_time_only / birthday_only restrictions hold
G5: ReplayProtection - A QR nonce cannot be processed twice (persistent via DB)
G6: QRFreshness - A scanned QR payload is recent
"""

import time
from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.utils import timezone


class GateError(Exception):
    """Gate validation error."""

    def __init__(self, gate_name: str, message: str, details: dict | None = None):
        self.gate_name = gate_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Coupin validation gates."""

    # =========================================================================
    # G1: Coupon Active
    # =========================================================================

    @classmethod
    def coupon_active(cls, coupon, at=None) -> GateResult:
        """
        G1: Coupon is active and inside its validity window.

        Args:
            coupon: Coupon instance
            at: Moment to check (default: now)

        Raises:
            GateError: If inactive, not started, or expired
        """
        at = at or timezone.now()

        if not coupon.is_active:
            raise GateError("G1_CouponActive", "Coupon is not active.", {"code": coupon.code})

        if coupon.starts_at and at < coupon.starts_at:
            raise GateError(
                "G1_CouponActive",
                "Coupon is not valid yet.",
                {"code": coupon.code, "starts_at": coupon.starts_at.isoformat()},
            )

        if coupon.ends_at and at > coupon.ends_at:
            raise GateError(
                "G1_CouponActive",
                "Coupon has expired.",
                {"code": coupon.code, "ends_at": coupon.ends_at.isoformat()},
            )

        return GateResult(True, "G1_CouponActive")

    @classmethod
    def check_coupon_active(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.coupon_active(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G2: Usage Limit
    # =========================================================================

    @classmethod
    def usage_limit(cls, coupon) -> GateResult:
        """
        G2: Coupon has not reached its global usage limit.

        Raises:
            GateError: If usage_count >= usage_limit
        """
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            raise GateError(
                "G2_UsageLimit",
                "Coupon usage limit reached.",
                {"usage_limit": coupon.usage_limit, "usage_count": coupon.usage_count},
            )

        return GateResult(True, "G2_UsageLimit")

    @classmethod
    def check_usage_limit(cls, coupon) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.usage_limit(coupon)
            return True
        except GateError:
            return False

    # =========================================================================
    # G3: Customer Limit
    # =========================================================================

    @classmethod
    def customer_limit(cls, coupon, customer) -> GateResult:
        """
        G3: Customer has redemptions left for this coupon.

        Raises:
            GateError: If the customer reached customer_limit
        """
        if coupon.customer_limit is None:
            return GateResult(True, "G3_CustomerLimit", "No per-customer limit")

        from coupin.models import Redemption

        used = Redemption.objects.filter(coupon=coupon, customer=customer).count()
        if used >= coupon.customer_limit:
            raise GateError(
                "G3_CustomerLimit",
                "Customer already used this coupon.",
                {"customer_limit": coupon.customer_limit, "used": used},
            )

        return GateResult(True, "G3_CustomerLimit")

    @classmethod
    def check_customer_limit(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.customer_limit(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G4: Eligibility
    # =========================================================================

    @classmethod
    def eligibility(cls, coupon, customer, at=None) -> GateResult:
        """
        G4: first_time_only and birthday_only restrictions.

        first_time_only: the customer has never redeemed a coupon at this
        business. birthday_only: today is the customer's birthday.

        Raises:
            GateError: If the customer is not eligible
        """
        if coupon.first_time_only:
            from coupin.models import Redemption

            if Redemption.objects.filter(
                business_id=coupon.business_id,
                customer=customer,
            ).exists():
                raise GateError(
                    "G4_Eligibility",
                    "Coupon is for first-time customers only.",
                )

        if coupon.birthday_only:
            today = timezone.localdate(at) if at else timezone.localdate()
            if not customer.is_birthday(today):
                raise GateError(
                    "G4_Eligibility",
                    "Coupon is only valid on the customer's birthday.",
                )

        return GateResult(True, "G4_Eligibility")

    @classmethod
    def check_eligibility(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.eligibility(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G5: Replay Protection (persistent via DB)
    # =========================================================================

    @classmethod
    def replay_protection(
        cls,
        nonce: str,
        provider: str = "qr",
    ) -> GateResult:
        """
        G5: QR payload cannot be processed twice (persistent via DB).

        Uses ProcessedEvent model to store nonces persistently,
        safe for distributed/multi-server environments.

        Args:
            nonce: Unique payload identifier
            provider: Provider name for categorization

        Raises:
            GateError: If the payload was already processed
        """
        from coupin.models import ProcessedEvent

        if not nonce:
            raise GateError(
                "G5_ReplayProtection",
                "Nonce is required.",
            )

        # Unique constraint on nonce rejects duplicates
        try:
            with transaction.atomic():
                ProcessedEvent.objects.create(nonce=nonce, provider=provider)
        except IntegrityError:
            if ProcessedEvent.objects.filter(nonce=nonce).exists():
                raise GateError(
                    "G5_ReplayProtection",
                    "Replay detected: QR code already scanned.",
                    {"nonce": nonce, "provider": provider},
                )
            raise

        return GateResult(True, "G5_ReplayProtection")

    @classmethod
    def check_replay_protection(cls, nonce: str, provider: str = "qr") -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.replay_protection(nonce, provider)
            return True
        except GateError:
            return False

    @classmethod
    def is_replay(cls, nonce: str) -> bool:
        """Check if nonce was already processed (doesn't record)."""
        from coupin.models import ProcessedEvent
        return ProcessedEvent.objects.filter(nonce=nonce).exists()

    # =========================================================================
    # G6: QR Freshness
    # =========================================================================

    @classmethod
    def qr_freshness(
        cls,
        timestamp_ms: int | None,
        max_age_seconds: int | None = None,
        now: float | None = None,
    ) -> GateResult:
        """
        G6: Scanned payload was generated recently.

        Args:
            timestamp_ms: Payload timestamp (milliseconds since epoch)
            max_age_seconds: Allowed age (default: QR_MAX_AGE_SECONDS)
            now: Current time in seconds (for tests)

        Raises:
            GateError: If timestamp is missing, too old, or in the future
        """
        if max_age_seconds is None:
            from coupin.conf import coupin_settings

            max_age_seconds = coupin_settings.QR_MAX_AGE_SECONDS

        if not timestamp_ms:
            raise GateError("G6_QRFreshness", "Missing timestamp.")

        try:
            generated_at = int(timestamp_ms) / 1000
        except (TypeError, ValueError, OverflowError):
            raise GateError("G6_QRFreshness", "Invalid timestamp.")

        now = time.time() if now is None else now
        age = now - generated_at

        if age > max_age_seconds:
            raise GateError(
                "G6_QRFreshness",
                f"QR code expired ({int(age)}s > {max_age_seconds}s).",
                {"age_seconds": int(age)},
            )
        if age < -max_age_seconds:
            raise GateError(
                "G6_QRFreshness",
                "QR code timestamp is in the future.",
                {"age_seconds": int(age)},
            )

        return GateResult(True, "G6_QRFreshness")

    @classmethod
    def check_qr_freshness(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.qr_freshness(*args, **kwargs)
            return True
        except GateError:
            return False
