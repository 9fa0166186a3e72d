"""Management command to import Firestore data into the Django database."""

from datetime import date, datetime
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from coupin import firebase

COUPON_TYPES = {
    "percentage": "percentage",
    "fixed": "fixed",
    "buyXgetY": "buy_x_get_y",
    "freeItem": "free_item",
}


def _decimal(value, default="0") -> Decimal:
    if value in (None, ""):
        return Decimal(default)
    return Decimal(str(value))


def _text(data: dict, key: str, default: str = "") -> str:
    """Optional string field; Firestore stores missing values as null."""
    value = data.get(key)
    return default if value is None else str(value)


def _datetime(value) -> datetime | None:
    """Firestore timestamps arrive as aware datetimes; ISO strings are parsed."""
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if timezone.is_aware(parsed) else timezone.make_aware(parsed)
    return None


def _date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = _datetime(value)
    return parsed.date() if parsed else None


def import_business(doc_id: str, data: dict) -> bool:
    from coupin.models import Business

    regional = data.get("regionalSettings") or {}
    _, created = Business.objects.update_or_create(
        code=doc_id,
        defaults={
            "name": data.get("businessName") or data.get("name") or doc_id,
            "owner_uid": data.get("ownerId") or data.get("userId") or doc_id,
            "industry": _text(data, "industry"),
            "description": _text(data, "description"),
            "email": _text(data, "email"),
            "phone": _text(data, "phone"),
            "website": _text(data, "website"),
            "address": _text(data, "address"),
            "currency": regional.get("currency") or data.get("currency") or "USD",
            "timezone": regional.get("timezone") or "UTC",
            "subscription_tier": data.get("subscriptionTier") or "free",
            "subscription_status": data.get("subscriptionStatus") or "active",
        },
    )
    return created


def import_customer(doc_id: str, data: dict) -> bool | None:
    from coupin.models import Business, Customer

    business = Business.objects.filter(code=data.get("businessId") or "").first()
    if business is None:
        return None

    _, created = Customer.objects.update_or_create(
        business=business,
        code=doc_id,
        defaults={
            "first_name": _text(data, "firstName"),
            "last_name": _text(data, "lastName"),
            "email": _text(data, "email"),
            "phone": _text(data, "phone"),
            "user_uid": _text(data, "userId"),
            "birthdate": _date(data.get("birthdate")),
            "last_visit_at": _datetime(data.get("lastVisit")),
            "total_spent": _decimal(data.get("totalSpent")),
            "total_visits": int(data.get("totalVisits") or 0),
            "tags": data.get("tags") or [],
            "notes": _text(data, "notes"),
        },
    )
    return created


def import_coupon(doc_id: str, data: dict) -> bool | None:
    from coupin.models import Business, Coupon

    business = Business.objects.filter(code=data.get("businessId") or "").first()
    if business is None or not data.get("code"):
        return None

    _, created = Coupon.objects.update_or_create(
        business=business,
        code=str(data["code"]).strip().upper(),
        defaults={
            "title": data.get("title") or data["code"],
            "description": _text(data, "description"),
            "coupon_type": COUPON_TYPES.get(data.get("type"), "percentage"),
            "value": _decimal(data.get("value")),
            "buy_quantity": data.get("buyQuantity"),
            "get_quantity": data.get("getQuantity"),
            "free_item": _text(data, "freeItem"),
            "min_purchase": _decimal(data["minPurchase"]) if data.get("minPurchase") else None,
            "max_discount": _decimal(data["maxDiscount"]) if data.get("maxDiscount") else None,
            "starts_at": _datetime(data.get("startDate")) or timezone.now(),
            "ends_at": _datetime(data.get("endDate")),
            "usage_limit": data.get("usageLimit"),
            "usage_count": int(data.get("usageCount") or 0),
            "distribution_count": int(data.get("distributionCount") or 0),
            "customer_limit": data.get("customerLimit"),
            "first_time_only": bool(data.get("firstTimeOnly")),
            "birthday_only": bool(data.get("birthdayOnly")),
            "is_active": data.get("active") is not False,
            "terms": _text(data, "termsAndConditions"),
        },
    )
    return created


def import_currency(doc_id: str, data: dict) -> bool | None:
    from coupin.contrib.regional.models import Currency

    code = data.get("code") or doc_id
    if len(code) != 3:
        return None
    _, created = Currency.objects.update_or_create(
        code=code.upper(),
        defaults={
            "name": _text(data, "name") or code,
            "symbol": _text(data, "symbol") or code,
            "region": _text(data, "region"),
            "is_active": data.get("isActive") is not False,
            "updated_by": _text(data, "updatedBy"),
        },
    )
    return created


def import_plan(doc_id: str, data: dict) -> bool | None:
    from coupin.contrib.pricing.models import PricingPlan

    if not data.get("name"):
        return None
    _, created = PricingPlan.objects.update_or_create(
        name=data["name"],
        defaults={
            "description": _text(data, "description"),
            "price": _decimal(data.get("price")),
            "currency": data.get("currency") or "USD",
            "billing_cycle": data.get("billingCycle") or "month",
            "currency_prices": data.get("currencyPrices") or [],
            "features": data.get("features") or [],
            "is_popular": bool(data.get("popularPlan")),
            "cta_text": _text(data, "ctaText"),
            "sort_order": int(data.get("order") or data.get("sortOrder") or 0),
            "is_active": data.get("active") is not False,
        },
    )
    return created


def import_timeline(doc_id: str, data: dict) -> bool | None:
    from coupin.contrib.timeline.models import TimelineEntry

    if not data.get("year") or not data.get("title"):
        return None
    _, created = TimelineEntry.objects.update_or_create(
        year=str(data["year"]),
        title=data["title"],
        defaults={
            "description": _text(data, "description"),
            "sort_order": int(data.get("order") or 0),
        },
    )
    return created


# Collection name -> importer, in dependency order
IMPORTERS = {
    "businesses": import_business,
    "customers": import_customer,
    "coupons": import_coupon,
    "currencies": import_currency,
    "pricing_plans": import_plan,
    "timeline": import_timeline,
}


class Command(BaseCommand):
    help = "Import Firestore collections into the Django database"

    def add_arguments(self, parser):
        parser.add_argument(
            "collections",
            nargs="*",
            help="Collections to import (default: all, businesses first)",
        )
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Commit the import (default: run it and roll back)",
        )

    def handle(self, *args, **options):
        db = firebase.firestore_client()
        requested = options["collections"] or list(IMPORTERS)
        unknown = set(requested) - set(IMPORTERS)
        if unknown:
            raise CommandError(f"Unknown collections: {', '.join(sorted(unknown))}")
        selected = [name for name in IMPORTERS if name in requested]

        with transaction.atomic():
            for name in selected:
                importer = IMPORTERS[name]
                created = updated = skipped = 0
                for doc in db.collection(name).stream():
                    result = importer(doc.id, doc.to_dict() or {})
                    if result is None:
                        skipped += 1
                    elif result:
                        created += 1
                    else:
                        updated += 1
                self.stdout.write(
                    f"[{name}] created={created} updated={updated} skipped={skipped}"
                )

            if not options["execute"]:
                transaction.set_rollback(True)

        if options["execute"]:
            self.stdout.write(self.style.SUCCESS("Import committed."))
        else:
            self.stdout.write("Dry run, nothing saved. Use --execute to commit.")
