"""Loyalty service - programs, visits, points, and rewards."""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from coupin.contrib.loyalty.models import (
    LoyaltyMembership,
    LoyaltyProgram,
    LoyaltyReward,
    LoyaltyTier,
    LoyaltyTransaction,
    ProgramType,
    TransactionType,
    VisitRecord,
)
from coupin.exceptions import CoupinError
from coupin.models import Customer
from coupin.services.customer import get_business
from coupin.signals import visit_recorded

logger = logging.getLogger(__name__)

# Members with a visit in this window count as active in program stats
ACTIVE_MEMBER_DAYS = 30


@dataclass
class VisitResult:
    """Outcome of recording a visit."""

    visit: VisitRecord
    membership: LoyaltyMembership
    points_earned: int
    tier_changed: bool = False

    @property
    def message(self) -> str:
        return f"Visit recorded for {self.membership.customer.name}"


@dataclass
class ProgramStats:
    """Program numbers for the business dashboard."""

    members: int
    active_members: int
    total_visits: int
    points_issued: int
    points_redeemed: int


class LoyaltyService:
    """
    Service for loyalty program operations.

    Uses @classmethod for extensibility (consistent with other contrib services).
    All point mutations use transaction.atomic().
    """

    # ======================================================================
    # Programs
    # ======================================================================

    @classmethod
    def get_program(cls, business_code: str) -> LoyaltyProgram | None:
        """Active program of a business."""
        return (
            LoyaltyProgram.objects.select_related("business")
            .filter(business__code=business_code, is_active=True)
            .first()
        )

    @classmethod
    def save_program(
        cls,
        business_code: str,
        name: str,
        program_type: str = ProgramType.POINTS,
        tiers: list[dict] | None = None,
        **fields,
    ) -> LoyaltyProgram:
        """
        Create the business's program, or update the active one.

        Args:
            business_code: Business code
            name: Program name
            program_type: points, visits, or tiered
            tiers: Optional list of {name, threshold, multiplier, benefits};
                replaces existing tiers when given
            **fields: Other LoyaltyProgram fields

        Returns:
            Saved LoyaltyProgram

        Raises:
            CoupinError: BUSINESS_NOT_FOUND
        """
        business = get_business(business_code)

        with transaction.atomic():
            program = cls.get_program(business_code)
            if program is None:
                program = LoyaltyProgram(business=business)
            program.name = name
            program.program_type = program_type
            for key, value in fields.items():
                if hasattr(program, key):
                    setattr(program, key, value)
            program.save()

            if tiers is not None:
                program.tiers.all().delete()
                LoyaltyTier.objects.bulk_create(
                    [
                        LoyaltyTier(
                            program=program,
                            name=tier["name"],
                            threshold=tier["threshold"],
                            multiplier=Decimal(str(tier.get("multiplier", "1.00"))),
                            benefits=tier.get("benefits", []),
                        )
                        for tier in tiers
                    ]
                )

        logger.info("Loyalty program %s saved for %s", program.pk, business.code)
        return program

    # ======================================================================
    # Membership
    # ======================================================================

    @classmethod
    def enroll(cls, customer: Customer, program: LoyaltyProgram) -> LoyaltyMembership:
        """
        Enroll customer in a program.

        Idempotent - returns existing membership if already enrolled.
        """
        membership, created = LoyaltyMembership.objects.get_or_create(
            customer=customer,
            program=program,
        )
        if created:
            cls._update_tier(membership)
        return membership

    @classmethod
    def get_membership(cls, customer_code: str, program_id: int) -> LoyaltyMembership | None:
        """Membership of a customer in a program."""
        try:
            return LoyaltyMembership.objects.select_related(
                "customer", "program", "tier"
            ).get(
                customer__code=customer_code,
                customer__is_active=True,
                program_id=program_id,
            )
        except LoyaltyMembership.DoesNotExist:
            return None

    @classmethod
    def memberships_for_user(cls, user_uid: str) -> list[LoyaltyMembership]:
        """All programs a Coupin account takes part in."""
        return list(
            LoyaltyMembership.objects.select_related("customer", "program__business", "tier")
            .filter(customer__user_uid=user_uid, is_active=True, program__is_active=True)
        )

    @classmethod
    def get_balance(cls, customer_code: str, program_id: int) -> int:
        """Current points balance. Returns 0 if not enrolled."""
        membership = cls.get_membership(customer_code, program_id)
        return membership.points_balance if membership else 0

    # ======================================================================
    # Visits
    # ======================================================================

    @classmethod
    def calculate_points(cls, membership: LoyaltyMembership, amount: Decimal) -> int:
        """Points a purchase of ``amount`` earns for this member."""
        program = membership.program
        if program.program_type == ProgramType.VISITS or amount <= 0:
            return 0
        raw = Decimal(amount) * program.points_per_amount * membership.multiplier
        return math.floor(raw)

    @classmethod
    def add_visit(
        cls,
        membership: LoyaltyMembership,
        amount: Decimal = Decimal("0"),
        notes: str = "",
        recorded_by: str = "",
        source: str = "qr",
    ) -> VisitResult:
        """
        Add a visit to a membership and award points.

        Every visit counts towards visit-based rewards; points programs
        also earn points on the amount spent.

        Emits visit_recorded signal.
        """
        amount = Decimal(amount)

        with transaction.atomic():
            membership = (
                LoyaltyMembership.objects.select_for_update()
                .select_related("customer", "program", "tier")
                .get(pk=membership.pk)
            )
            if not membership.is_active:
                raise CoupinError(
                    "LOYALTY_NOT_ENROLLED", customer_code=membership.customer.code
                )

            now = timezone.now()
            points = cls.calculate_points(membership, amount)

            membership.visits += 1
            membership.total_spent += amount
            membership.last_visit_at = now
            membership.points_balance += points
            membership.lifetime_points += points
            membership.save(
                update_fields=[
                    "visits",
                    "total_spent",
                    "last_visit_at",
                    "points_balance",
                    "lifetime_points",
                    "updated_at",
                ]
            )

            visit = VisitRecord.objects.create(
                membership=membership,
                business_id=membership.program.business_id,
                amount_spent=amount,
                points_earned=points,
                notes=notes,
                recorded_by=recorded_by,
                source=source,
            )

            LoyaltyTransaction.objects.create(
                membership=membership,
                transaction_type=TransactionType.VISIT if not points else TransactionType.EARN,
                points=points,
                balance_after=membership.points_balance,
                description=f"Visit ({amount})" if amount else "Visit",
                reference=f"visit:{visit.pk}",
                created_by=recorded_by,
            )

            customer = membership.customer
            customer.total_visits += 1
            customer.total_spent += amount
            customer.last_visit_at = now
            customer.save(update_fields=["total_visits", "total_spent", "last_visit_at", "updated_at"])

            tier_changed = cls._update_tier(membership)

        logger.info(
            "Visit recorded for %s in program %s (+%d pts)",
            membership.customer.code,
            membership.program_id,
            points,
        )
        visit_recorded.send(sender=VisitRecord, visit=visit, membership=membership)
        return VisitResult(visit, membership, points, tier_changed)

    @classmethod
    def record_visit(
        cls,
        payload: dict,
        business_code: str,
        amount: Decimal = Decimal("0"),
        notes: str = "",
        recorded_by: str = "",
        source: str = "qr",
    ) -> VisitResult:
        """
        Record a visit from a ``loyalty_visit`` payload.

        Freshness and replay checks happen at the scan endpoint. This only
        verifies the payload belongs to the scanning business.

        Raises:
            CoupinError: QR_WRONG_BUSINESS, LOYALTY_NOT_ENROLLED
        """
        if payload.get("businessId") != business_code:
            raise CoupinError("QR_WRONG_BUSINESS", business_code=business_code)

        membership = cls.get_membership(payload.get("customerId", ""), payload.get("programId"))
        if membership is None or membership.program.business.code != business_code:
            raise CoupinError("LOYALTY_NOT_ENROLLED", customer_code=payload.get("customerId"))

        return cls.add_visit(membership, amount, notes, recorded_by, source=source)

    @classmethod
    def record_visit_by_phone(
        cls,
        business_code: str,
        phone: str,
        amount: Decimal = Decimal("0"),
        notes: str = "",
        recorded_by: str = "",
    ) -> VisitResult:
        """
        Record a visit for the customer with this phone number.

        Raises:
            CoupinError: LOYALTY_PROGRAM_NOT_FOUND, CUSTOMER_NOT_FOUND
        """
        from coupin.services import customer as customer_service

        program = cls.get_program(business_code)
        if program is None:
            raise CoupinError("LOYALTY_PROGRAM_NOT_FOUND", business_code=business_code)

        customer = customer_service.get_by_phone(business_code, phone)
        if customer is None:
            raise CoupinError(
                "CUSTOMER_NOT_FOUND",
                message=f"No customer found with phone {phone} in this program",
            )

        cls.enroll(customer, program)
        payload = {
            "type": "loyalty_visit",
            "customerId": customer.code,
            "programId": program.pk,
            "businessId": business_code,
            "customerPhone": customer.phone,
        }
        return cls.record_visit(payload, business_code, amount, notes, recorded_by, source="phone")

    # ======================================================================
    # Points & rewards
    # ======================================================================

    @classmethod
    def adjust_points(
        cls,
        membership: LoyaltyMembership,
        points: int,
        description: str,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Manual correction of the points balance (positive or negative).

        Raises:
            CoupinError: LOYALTY_INSUFFICIENT_POINTS if the balance would go negative
        """
        with transaction.atomic():
            membership = LoyaltyMembership.objects.select_for_update().get(pk=membership.pk)
            if membership.points_balance + points < 0:
                raise CoupinError(
                    "LOYALTY_INSUFFICIENT_POINTS",
                    available=membership.points_balance,
                    requested=-points,
                )
            membership.points_balance += points
            if points > 0:
                membership.lifetime_points += points
            membership.save(update_fields=["points_balance", "lifetime_points", "updated_at"])

            tx = LoyaltyTransaction.objects.create(
                membership=membership,
                transaction_type=TransactionType.ADJUST,
                points=points,
                balance_after=membership.points_balance,
                description=description,
                created_by=created_by,
            )
            cls._update_tier(membership)
        return tx

    @classmethod
    def redeem_reward(
        cls,
        membership: LoyaltyMembership,
        reward: LoyaltyReward,
        created_by: str = "",
    ) -> LoyaltyTransaction:
        """
        Claim a reward, paying its points or visits cost.

        Raises:
            CoupinError: LOYALTY_REWARD_UNAVAILABLE, LOYALTY_TIER_REQUIRED,
                LOYALTY_INSUFFICIENT_POINTS, LOYALTY_INSUFFICIENT_VISITS
        """
        if reward.program_id != membership.program_id or not reward.is_active:
            raise CoupinError("LOYALTY_REWARD_UNAVAILABLE", reward=reward.name)

        with transaction.atomic():
            membership = (
                LoyaltyMembership.objects.select_for_update()
                .select_related("tier")
                .get(pk=membership.pk)
            )

            if reward.tier_required_id:
                required = reward.tier_required
                current = membership.tier.threshold if membership.tier else -1
                if current < required.threshold:
                    raise CoupinError("LOYALTY_TIER_REQUIRED", tier_required=required.name)

            points = reward.points_cost or 0
            if points and membership.points_balance < points:
                raise CoupinError(
                    "LOYALTY_INSUFFICIENT_POINTS",
                    available=membership.points_balance,
                    requested=points,
                )

            if reward.visits_cost and membership.visits < reward.visits_cost:
                raise CoupinError(
                    "LOYALTY_INSUFFICIENT_VISITS",
                    available=membership.visits,
                    requested=reward.visits_cost,
                )

            membership.points_balance -= points
            membership.save(update_fields=["points_balance", "updated_at"])

            tx = LoyaltyTransaction.objects.create(
                membership=membership,
                transaction_type=TransactionType.REDEEM,
                points=-points,
                balance_after=membership.points_balance,
                description=f"Reward: {reward.name}",
                reference=f"reward:{reward.pk}",
                created_by=created_by,
            )

        logger.info("Reward %s redeemed by membership %s", reward.pk, membership.pk)
        return tx

    @classmethod
    def get_transactions(cls, membership: LoyaltyMembership, limit: int = 50) -> list[LoyaltyTransaction]:
        """Transaction history for a membership."""
        return list(membership.transactions.all()[:limit])

    # ======================================================================
    # Stats
    # ======================================================================

    @classmethod
    def program_stats(cls, program: LoyaltyProgram) -> ProgramStats:
        """Member, visit, and points totals for a program."""
        since = timezone.now() - timedelta(days=ACTIVE_MEMBER_DAYS)
        members = program.memberships.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(last_visit_at__gte=since)),
            visits=Sum("visits"),
            issued=Sum("lifetime_points"),
        )
        redeemed = LoyaltyTransaction.objects.filter(
            membership__program=program,
            transaction_type=TransactionType.REDEEM,
        ).aggregate(total=Sum("points"))["total"]

        return ProgramStats(
            members=members["total"] or 0,
            active_members=members["active"] or 0,
            total_visits=members["visits"] or 0,
            points_issued=members["issued"] or 0,
            points_redeemed=-(redeemed or 0),
        )

    # ======================================================================
    # Internal
    # ======================================================================

    @classmethod
    def _update_tier(cls, membership: LoyaltyMembership) -> bool:
        """Move the member to the highest tier they qualify for."""
        program = membership.program
        score = (
            membership.lifetime_points
            if program.program_type == ProgramType.TIERED
            else membership.visits
        )
        tier = program.tiers.filter(threshold__lte=score).order_by("-threshold").first()
        if tier is None or tier.pk == membership.tier_id:
            return False
        membership.tier = tier
        membership.save(update_fields=["tier", "updated_at"])
        return True
