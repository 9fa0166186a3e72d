"""Pytest fixtures for Coupin tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone

from coupin.models import Business, Coupon, Customer
from coupin.contrib.loyalty.models import (
    LoyaltyMembership,
    LoyaltyProgram,
    LoyaltyTier,
    ProgramType,
)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def business(db):
    """Create a test business."""
    return Business.objects.create(
        code="biz-001",
        name="Mama's Kitchen",
        owner_uid="owner-uid-1",
        currency="ZAR",
    )


@pytest.fixture
def other_business(db):
    return Business.objects.create(code="biz-002", name="Corner Cafe", owner_uid="owner-uid-2")


@pytest.fixture
def customer(business):
    """Create a test customer (phone stored in E.164)."""
    return Customer.objects.create(
        business=business,
        code="CUST-001",
        first_name="Thandi",
        last_name="Nkosi",
        email="thandi@example.com",
        phone="083 209 1122",
    )


@pytest.fixture
def coupon(business):
    """10% off, running since yesterday."""
    return Coupon.objects.create(
        business=business,
        code="save10",
        title="10% off",
        value=Decimal("10"),
        starts_at=timezone.now() - timedelta(days=1),
        ends_at=timezone.now() + timedelta(days=30),
    )


@pytest.fixture
def program(business):
    """Points program: 1 point per R10 spent."""
    return LoyaltyProgram.objects.create(
        business=business,
        name="Kitchen Rewards",
        program_type=ProgramType.POINTS,
        points_per_amount=Decimal("0.1"),
    )


@pytest.fixture
def tiered_program(other_business):
    program = LoyaltyProgram.objects.create(
        business=other_business,
        name="Cafe Club",
        program_type=ProgramType.TIERED,
        points_per_amount=Decimal("1"),
    )
    LoyaltyTier.objects.create(program=program, name="Bronze", threshold=0, multiplier=Decimal("1.00"))
    LoyaltyTier.objects.create(program=program, name="Silver", threshold=100, multiplier=Decimal("1.50"))
    LoyaltyTier.objects.create(program=program, name="Gold", threshold=500, multiplier=Decimal("2.00"))
    return program


@pytest.fixture
def membership(customer, program):
    return LoyaltyMembership.objects.create(customer=customer, program=program)
