"""Tests for the loyalty contrib app."""

from decimal import Decimal

import pytest

from coupin.contrib.loyalty import LoyaltyService
from coupin.contrib.loyalty.models import (
    LoyaltyMembership,
    LoyaltyReward,
    LoyaltyTransaction,
    ProgramType,
    TransactionType,
    VisitRecord,
)
from coupin.exceptions import CoupinError
from coupin.models import Customer
from coupin.signals import visit_recorded


pytestmark = pytest.mark.django_db


class TestPrograms:
    def test_save_program_creates_then_updates(self, business):
        program = LoyaltyService.save_program(
            "biz-001",
            "Stamp Card",
            program_type=ProgramType.VISITS,
            visits_required=10,
            tiers=[{"name": "Regular", "threshold": 5}],
        )
        again = LoyaltyService.save_program(
            "biz-001",
            "Stamp Card Plus",
            program_type=ProgramType.VISITS,
            tiers=[{"name": "Regular", "threshold": 5}, {"name": "VIP", "threshold": 20, "multiplier": "1.5"}],
        )

        assert again.pk == program.pk
        assert again.name == "Stamp Card Plus"
        assert again.visits_required == 10
        assert list(again.tiers.values_list("name", flat=True)) == ["Regular", "VIP"]
        assert LoyaltyService.get_program("biz-001") == again

    def test_save_program_unknown_business(self, db):
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.save_program("nope", "X")
        assert exc.value.code == "BUSINESS_NOT_FOUND"

    def test_enroll_is_idempotent(self, customer, program):
        first = LoyaltyService.enroll(customer, program)
        second = LoyaltyService.enroll(customer, program)
        assert first.pk == second.pk
        assert LoyaltyMembership.objects.count() == 1


class TestPoints:
    def test_points_program(self, membership):
        assert LoyaltyService.calculate_points(membership, Decimal("155")) == 15
        assert LoyaltyService.calculate_points(membership, Decimal("0")) == 0

    def test_visits_program_earns_no_points(self, membership, program):
        program.program_type = ProgramType.VISITS
        program.save()
        assert LoyaltyService.calculate_points(membership, Decimal("1000")) == 0

    def test_tier_multiplier(self, tiered_program, other_business):
        cust = Customer.objects.create(business=other_business, code="C-T", first_name="Lee")
        membership = LoyaltyService.enroll(cust, tiered_program)
        assert membership.tier.name == "Bronze"

        LoyaltyService.adjust_points(membership, 150, "Welcome bonus")
        membership.refresh_from_db()
        assert membership.tier.name == "Silver"
        assert LoyaltyService.calculate_points(membership, Decimal("10")) == 15

    def test_points_program_applies_tier_multiplier(self, membership, program):
        program.tiers.create(name="Gold", threshold=3, multiplier=Decimal("2.00"))
        assert LoyaltyService.calculate_points(membership, Decimal("100")) == 10

        for _ in range(3):
            LoyaltyService.add_visit(membership)
        membership = LoyaltyMembership.objects.select_related("tier").get(pk=membership.pk)

        assert membership.tier.name == "Gold"
        assert LoyaltyService.calculate_points(membership, Decimal("100")) == 20

    def test_points_program_tier_follows_visits(self, membership, program):
        program.tiers.create(name="Regular", threshold=2)
        LoyaltyService.adjust_points(membership, 500, "Import")
        membership.refresh_from_db()
        assert membership.tier is None

        LoyaltyService.add_visit(membership)
        LoyaltyService.add_visit(membership)
        membership.refresh_from_db()
        assert membership.tier.name == "Regular"


class TestVisits:
    def test_add_visit(self, membership):
        received = []

        def handler(sender, visit, membership, **kwargs):
            received.append(visit)

        visit_recorded.connect(handler)
        try:
            result = LoyaltyService.add_visit(membership, Decimal("250"), recorded_by="staff-1")
        finally:
            visit_recorded.disconnect(handler)

        assert result.points_earned == 25
        assert result.membership.visits == 1
        assert result.membership.points_balance == 25
        assert result.message == "Visit recorded for Thandi Nkosi"
        assert received == [result.visit]

        tx = LoyaltyTransaction.objects.get(membership=membership)
        assert tx.transaction_type == TransactionType.EARN
        assert tx.balance_after == 25

        customer = Customer.objects.get(pk=membership.customer_id)
        assert customer.total_visits == 1
        assert customer.total_spent == Decimal("250")
        assert customer.last_visit_at is not None

    def test_visit_without_amount(self, membership):
        result = LoyaltyService.add_visit(membership)
        assert result.points_earned == 0
        assert LoyaltyTransaction.objects.get().transaction_type == TransactionType.VISIT

    def test_inactive_membership(self, membership):
        membership.is_active = False
        membership.save()
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.add_visit(membership)
        assert exc.value.code == "LOYALTY_NOT_ENROLLED"

    def test_record_visit_from_payload(self, membership, program):
        payload = {"type": "loyalty_visit", "customerId": "CUST-001", "programId": program.pk, "businessId": "biz-001"}
        result = LoyaltyService.record_visit(payload, "biz-001", amount=Decimal("100"))
        assert result.visit.source == "qr"
        assert result.points_earned == 10

    def test_record_visit_wrong_business(self, membership, program):
        payload = {"customerId": "CUST-001", "programId": program.pk, "businessId": "biz-001"}
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.record_visit(payload, "biz-002")
        assert exc.value.code == "QR_WRONG_BUSINESS"

    def test_record_visit_not_enrolled(self, customer, program):
        payload = {"customerId": "CUST-001", "programId": program.pk, "businessId": "biz-001"}
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.record_visit(payload, "biz-001")
        assert exc.value.code == "LOYALTY_NOT_ENROLLED"

    def test_record_visit_by_phone_enrolls(self, customer, program):
        result = LoyaltyService.record_visit_by_phone("biz-001", "+27 83 209 1122", Decimal("50"))
        assert result.visit.source == "phone"
        assert result.membership.customer == customer
        assert VisitRecord.objects.filter(business__code="biz-001").count() == 1

    def test_record_visit_by_phone_unknown_customer(self, customer, program):
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.record_visit_by_phone("biz-001", "0820000000")
        assert exc.value.code == "CUSTOMER_NOT_FOUND"
        assert "0820000000" in exc.value.message

    def test_record_visit_by_phone_without_program(self, customer):
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.record_visit_by_phone("biz-001", "0832091122")
        assert exc.value.code == "LOYALTY_PROGRAM_NOT_FOUND"

    def test_visits_remaining(self, membership, program):
        program.visits_required = 5
        program.save()
        LoyaltyService.add_visit(membership)
        LoyaltyService.add_visit(membership)
        membership.refresh_from_db()
        assert membership.visits_remaining == 3


class TestRewards:
    def test_redeem_reward(self, membership, program):
        LoyaltyService.adjust_points(membership, 100, "Import")
        reward = LoyaltyReward.objects.create(program=program, name="Free coffee", points_cost=80)

        tx = LoyaltyService.redeem_reward(membership, reward)

        assert tx.points == -80
        assert tx.balance_after == 20
        assert LoyaltyService.get_balance("CUST-001", program.pk) == 20
        stats = LoyaltyService.program_stats(program)
        assert stats.members == 1
        assert stats.points_issued == 100
        assert stats.points_redeemed == 80

    def test_redeem_reward_insufficient_points(self, membership, program):
        reward = LoyaltyReward.objects.create(program=program, name="Meal", points_cost=500)
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.redeem_reward(membership, reward)
        assert exc.value.code == "LOYALTY_INSUFFICIENT_POINTS"

    def test_redeem_reward_insufficient_visits(self, membership, program):
        reward = LoyaltyReward.objects.create(program=program, name="Tenth visit", visits_cost=10)
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.redeem_reward(membership, reward)
        assert exc.value.code == "LOYALTY_INSUFFICIENT_VISITS"

    def test_redeem_reward_tier_required(self, tiered_program, other_business):
        cust = Customer.objects.create(business=other_business, code="C-T", first_name="Lee")
        membership = LoyaltyService.enroll(cust, tiered_program)
        gold = tiered_program.tiers.get(name="Gold")
        reward = LoyaltyReward.objects.create(program=tiered_program, name="Chef's table", tier_required=gold)

        with pytest.raises(CoupinError) as exc:
            LoyaltyService.redeem_reward(membership, reward)
        assert exc.value.code == "LOYALTY_TIER_REQUIRED"

    def test_redeem_reward_from_other_program(self, membership, tiered_program):
        LoyaltyService.adjust_points(membership, 100, "Import")
        reward = LoyaltyReward.objects.create(program=tiered_program, name="Free cake", points_cost=10)

        with pytest.raises(CoupinError) as exc:
            LoyaltyService.redeem_reward(membership, reward)

        assert exc.value.code == "LOYALTY_REWARD_UNAVAILABLE"
        assert LoyaltyService.get_balance("CUST-001", membership.program_id) == 100

    def test_redeem_inactive_reward(self, membership, program):
        LoyaltyService.adjust_points(membership, 100, "Import")
        reward = LoyaltyReward.objects.create(program=program, name="Old promo", points_cost=10, is_active=False)

        with pytest.raises(CoupinError) as exc:
            LoyaltyService.redeem_reward(membership, reward)
        assert exc.value.code == "LOYALTY_REWARD_UNAVAILABLE"

    def test_adjust_below_zero(self, membership):
        with pytest.raises(CoupinError) as exc:
            LoyaltyService.adjust_points(membership, -1, "Oops")
        assert exc.value.code == "LOYALTY_INSUFFICIENT_POINTS"

    def test_memberships_for_user(self, membership, customer):
        Customer.objects.filter(pk=customer.pk).update(user_uid="uid-1")
        assert LoyaltyService.memberships_for_user("uid-1") == [membership]
        assert LoyaltyService.get_transactions(membership) == []
