"""Management command to recreate missing coupon documents in Firestore."""

import secrets
import string
from datetime import datetime, timedelta, timezone

from django.core.management.base import BaseCommand
from firebase_admin import firestore

from coupin import firebase

DEFAULT_EXPIRY_DAYS = 30
_CODE_ALPHABET = string.ascii_uppercase + string.digits

# (collection, fallback title, fallback description, date field, used flag)
SOURCES = [
    ("couponDistributions", "Distributed Coupon", "Coupon distributed to customers", "sentAt", "redeemedAt"),
    ("customerCoupons", "Customer Coupon", "Coupon allocated to customer", "allocatedDate", "used"),
]


def coupon_from_source(data: dict, business_id: str, title: str, description: str, date_field: str, used_field: str) -> dict:
    """Coupon document rebuilt from a distribution or allocation record."""
    now = datetime.now(timezone.utc)
    started = data.get(date_field) or now
    return {
        "businessId": business_id,
        "title": data.get("title") or title,
        "description": data.get("description") or description,
        "type": data.get("type") or "percentage",
        "value": data.get("value") or 10,
        "code": data.get("code") or "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8)),
        "startDate": started,
        "endDate": data.get("expiryDate") or now + timedelta(days=DEFAULT_EXPIRY_DAYS),
        "active": data.get("active", True),
        "usageLimit": data.get("usageLimit") or 1,
        "usageCount": 1 if data.get(used_field) else 0,
        "firstTimeOnly": False,
        "birthdayOnly": False,
        "createdAt": started,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }


class Command(BaseCommand):
    help = "Recreate coupons/* documents referenced by couponDistributions or customerCoupons"

    def add_arguments(self, parser):
        parser.add_argument("business_id", help="Firestore business document id")
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Write the documents (default: dry run)",
        )

    def handle(self, *args, **options):
        business_id = options["business_id"]
        db = firebase.firestore_client()
        by_business = firestore.FieldFilter("businessId", "==", business_id)

        existing = {
            doc.id for doc in db.collection("coupons").where(filter=by_business).stream()
        }
        self.stdout.write(f"Business {business_id}: {len(existing)} coupons in Firestore.")

        queued = set()
        with firebase.BatchWriter(db, dry_run=not options["execute"]) as writer:
            for collection, title, description, date_field, used_field in SOURCES:
                for doc in db.collection(collection).where(filter=by_business).stream():
                    data = doc.to_dict() or {}
                    coupon_id = data.get("couponId")
                    if not coupon_id or coupon_id in existing or coupon_id in queued:
                        continue
                    queued.add(coupon_id)
                    writer.set(
                        db.collection("coupons").document(coupon_id),
                        coupon_from_source(data, business_id, title, description, date_field, used_field),
                    )
                    self.stdout.write(f"  + {coupon_id} (from {collection})")

        if not queued:
            self.stdout.write("No missing coupons.")
        elif options["execute"]:
            self.stdout.write(self.style.SUCCESS(f"Created {len(queued)} coupons."))
        else:
            self.stdout.write(f"Dry run: {len(queued)} coupons would be created. Use --execute to apply.")
