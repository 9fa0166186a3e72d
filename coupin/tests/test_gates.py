"""Tests for Coupin validation gates."""

from datetime import timedelta

import pytest
from django.utils import timezone

from coupin.exceptions import CoupinError, gate_error_code
from coupin.gates import GateError, Gates
from coupin.models import ProcessedEvent


class TestCouponActive:
    """G1."""

    def test_running(self, coupon):
        assert Gates.coupon_active(coupon).passed is True

    def test_inactive(self, coupon):
        coupon.is_active = False
        with pytest.raises(GateError) as exc:
            Gates.coupon_active(coupon)
        assert gate_error_code(exc.value) == "COUPON_INACTIVE"

    def test_not_started(self, coupon):
        coupon.starts_at = timezone.now() + timedelta(hours=1)
        assert Gates.check_coupon_active(coupon) is False

    def test_expired_maps_to_expired_code(self, coupon):
        coupon.ends_at = timezone.now() - timedelta(seconds=1)
        with pytest.raises(GateError) as exc:
            Gates.coupon_active(coupon)
        assert gate_error_code(exc.value) == "COUPON_EXPIRED"


class TestUsageLimit:
    """G2."""

    def test_unlimited(self, coupon):
        coupon.usage_count = 1000
        assert Gates.check_usage_limit(coupon) is True

    def test_reached(self, coupon):
        coupon.usage_limit = 5
        coupon.usage_count = 5
        with pytest.raises(GateError) as exc:
            Gates.usage_limit(coupon)
        assert exc.value.details == {"usage_limit": 5, "usage_count": 5}
        assert gate_error_code(exc.value) == "COUPON_USAGE_LIMIT"


class TestReplayProtection:
    """G5."""

    def test_first_use_recorded(self, db):
        assert Gates.replay_protection("nonce-1").passed is True
        assert ProcessedEvent.objects.filter(nonce="nonce-1", provider="qr").exists()
        assert Gates.is_replay("nonce-1") is True

    def test_second_use_rejected(self, db):
        Gates.replay_protection("nonce-1")
        with pytest.raises(GateError) as exc:
            Gates.replay_protection("nonce-1")
        assert gate_error_code(exc.value) == "QR_ALREADY_USED"

    def test_nonce_required(self, db):
        assert Gates.check_replay_protection("") is False

    def test_cleanup_old_events(self, db):
        Gates.replay_protection("old")
        Gates.replay_protection("new")
        ProcessedEvent.objects.filter(nonce="old").update(
            processed_at=timezone.now() - timedelta(days=100)
        )
        deleted, _ = ProcessedEvent.cleanup_old_events(days=90)
        assert deleted == 1
        assert list(ProcessedEvent.objects.values_list("nonce", flat=True)) == ["new"]


class TestQRFreshness:
    """G6."""

    NOW = 1_700_000_000.0

    def test_fresh(self):
        ts = int((self.NOW - 29) * 1000)
        assert Gates.qr_freshness(ts, now=self.NOW).passed is True

    def test_default_max_age(self):
        assert Gates.check_qr_freshness(int((self.NOW - 119) * 1000), now=self.NOW) is True
        assert Gates.check_qr_freshness(int((self.NOW - 121) * 1000), now=self.NOW) is False

    def test_expired(self):
        with pytest.raises(GateError) as exc:
            Gates.qr_freshness(int((self.NOW - 60) * 1000), max_age_seconds=30, now=self.NOW)
        assert exc.value.details == {"age_seconds": 60}
        assert gate_error_code(exc.value) == "QR_EXPIRED"

    def test_future(self):
        assert Gates.check_qr_freshness(int((self.NOW + 600) * 1000), now=self.NOW) is False

    def test_missing(self):
        assert Gates.check_qr_freshness(None) is False

    @pytest.mark.parametrize("timestamp", ["soon", [1], "1.5e12"])
    def test_invalid_timestamp(self, timestamp):
        with pytest.raises(GateError) as exc:
            Gates.qr_freshness(timestamp, now=self.NOW)
        assert exc.value.message == "Invalid timestamp."


class TestCoupinError:
    def test_default_message(self):
        err = CoupinError("COUPON_NOT_FOUND", code_value="X")
        assert err.message == "Coupon not found"
        assert err.as_dict() == {
            "code": "COUPON_NOT_FOUND",
            "message": "Coupon not found",
            "data": {"code_value": "X"},
        }

    def test_custom_message(self):
        err = CoupinError("CUSTOMER_NOT_FOUND", message="No customer with phone 083")
        assert str(err) == "[CUSTOMER_NOT_FOUND] No customer with phone 083"

    def test_unknown_gate(self):
        assert gate_error_code(GateError("G9_Other", "nope")) == "GATE_FAILED"
