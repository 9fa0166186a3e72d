"""Management command to rewrite Firestore phone fields in E.164."""

from collections import Counter

from django.core.management.base import BaseCommand

from coupin import firebase
from coupin.utils import normalize_phone


class Command(BaseCommand):
    help = "Normalize phone numbers stored in Firestore collections to E.164"

    def add_arguments(self, parser):
        parser.add_argument(
            "collections",
            nargs="*",
            default=["customers", "customerPrograms"],
            help="Collections to migrate (default: customers customerPrograms)",
        )
        parser.add_argument("--field", default="phone", help="Phone field name (default: phone)")
        parser.add_argument("--region", default=None, help="Region for national numbers (default: DEFAULT_REGION)")
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Write the changes (default: dry run)",
        )

    def handle(self, *args, **options):
        db = firebase.firestore_client()
        field = options["field"]

        for collection in options["collections"]:
            stats = Counter()
            with firebase.BatchWriter(db, dry_run=not options["execute"]) as writer:
                for doc in db.collection(collection).stream():
                    value = (doc.to_dict() or {}).get(field)
                    if not value:
                        stats["empty"] += 1
                        continue
                    normalized = normalize_phone(str(value), options["region"])
                    if normalized == value:
                        stats["ok"] += 1
                        continue
                    stats["update"] += 1
                    if options["verbosity"] > 1:
                        self.stdout.write(f"  {doc.id}: {value} -> {normalized}")
                    writer.update(doc.reference, {field: normalized})

            self.stdout.write(
                f"[{collection}] ok={stats['ok']} update={stats['update']} empty={stats['empty']}"
            )

        if not options["execute"]:
            self.stdout.write("Dry run. Use --execute to apply.")
        else:
            self.stdout.write(self.style.SUCCESS("Phone numbers normalized."))
