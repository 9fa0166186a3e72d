"""Management command to write (and deploy) the Firestore composite indexes."""

import json
import subprocess
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

ASC = "ASCENDING"
DESC = "DESCENDING"

# (collection group, [(field, order), ...])
COMPOSITE_INDEXES = [
    ("customers", [("businessId", ASC), ("phone", ASC)]),
    ("customers", [("businessId", ASC), ("email", ASC)]),
    ("customers", [("businessId", ASC), ("lastName", ASC)]),
    ("customers", [("businessId", ASC), ("totalSpent", DESC)]),
    ("coupons", [("businessId", ASC), ("active", ASC), ("createdAt", DESC)]),
    ("coupons", [("businessId", ASC), ("endDate", ASC)]),
    ("customerCoupons", [("customerId", ASC), ("allocatedDate", DESC)]),
    ("customerCoupons", [("businessId", ASC), ("customerId", ASC), ("allocatedDate", DESC)]),
    ("couponDistributions", [("businessId", ASC), ("couponId", ASC), ("sentAt", DESC)]),
    ("couponRedemptions", [("businessId", ASC), ("customerId", ASC), ("redeemedAt", DESC)]),
    ("couponRedemptions", [("businessId", ASC), ("couponId", ASC), ("redeemedAt", DESC)]),
    ("loyaltyPrograms", [("businessId", ASC), ("active", ASC)]),
    ("loyaltyRewards", [("programId", ASC), ("pointsCost", ASC)]),
    ("customerPrograms", [("businessId", ASC), ("programId", ASC)]),
    ("programVisits", [("programId", ASC), ("visitDate", DESC)]),
    ("savingsEvents", [("userId", ASC), ("createdAt", DESC)]),
]


def indexes_document() -> dict:
    """Contents of firestore.indexes.json."""
    return {
        "indexes": [
            {
                "collectionGroup": group,
                "queryScope": "COLLECTION",
                "fields": [{"fieldPath": field, "order": order} for field, order in fields],
            }
            for group, fields in COMPOSITE_INDEXES
        ],
        "fieldOverrides": [],
    }


class Command(BaseCommand):
    help = "Write firestore.indexes.json and optionally deploy it with the Firebase CLI"

    def add_arguments(self, parser):
        parser.add_argument(
            "--output",
            default="firestore.indexes.json",
            help="File to write (default: firestore.indexes.json)",
        )
        parser.add_argument(
            "--deploy",
            action="store_true",
            help="Run `firebase deploy --only firestore:indexes` after writing",
        )
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Write (and deploy) the file (default: print it)",
        )

    def handle(self, *args, **options):
        content = json.dumps(indexes_document(), indent=2)

        if not options["execute"]:
            self.stdout.write(content)
            if options["deploy"]:
                self.stderr.write(self.style.WARNING("--deploy ignored without --execute."))
            self.stdout.write(f"Dry run: {len(COMPOSITE_INDEXES)} indexes. Use --execute to write.")
            return

        output = Path(options["output"])
        output.write_text(content + "\n", encoding="utf-8")
        self.stdout.write(self.style.SUCCESS(f"Wrote {len(COMPOSITE_INDEXES)} indexes to {output}."))

        if options["deploy"]:
            try:
                subprocess.run(
                    ["firebase", "deploy", "--only", "firestore:indexes"],
                    cwd=output.resolve().parent,
                    check=True,
                )
            except FileNotFoundError:
                raise CommandError("Firebase CLI not found. Install firebase-tools first.")
            except subprocess.CalledProcessError as exc:
                raise CommandError(f"firebase deploy failed with exit code {exc.returncode}.")
            self.stdout.write(self.style.SUCCESS("Indexes deployed."))
