"""Management command to delete Firestore documents."""

from django.core.management.base import BaseCommand, CommandError
from firebase_admin import firestore

from coupin import firebase


class Command(BaseCommand):
    help = (
        "Delete documents of a collection matching --where FIELD=VALUE, "
        "or orphans whose businessId has no business document (--orphans)"
    )

    def add_arguments(self, parser):
        parser.add_argument("collection", help="Collection to clean up")
        parser.add_argument(
            "--where",
            metavar="FIELD=VALUE",
            help="Delete documents whose FIELD equals VALUE (string comparison)",
        )
        parser.add_argument(
            "--orphans",
            action="store_true",
            help="Delete documents whose businessId does not exist in businesses",
        )
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Delete the documents (default: dry run)",
        )

    def handle(self, *args, **options):
        if bool(options["where"]) == bool(options["orphans"]):
            raise CommandError("Pass exactly one of --where or --orphans.")

        db = firebase.firestore_client()
        collection = db.collection(options["collection"])

        if options["where"]:
            field, sep, value = options["where"].partition("=")
            if not sep or not field:
                raise CommandError("--where must look like FIELD=VALUE.")
            docs = collection.where(filter=firestore.FieldFilter(field, "==", value)).stream()
            matches = list(docs)
        else:
            businesses = {doc.id for doc in db.collection("businesses").stream()}
            matches = [
                doc
                for doc in collection.stream()
                if (doc.to_dict() or {}).get("businessId") not in businesses
            ]

        with firebase.BatchWriter(db, dry_run=not options["execute"]) as writer:
            for doc in matches:
                if options["verbosity"] > 1:
                    self.stdout.write(f"  - {doc.id}")
                writer.delete(doc.reference)

        if options["execute"]:
            self.stdout.write(
                self.style.SUCCESS(f"Deleted {writer.operations} documents from {options['collection']}.")
            )
        else:
            self.stdout.write(
                f"Dry run: {writer.operations} documents in {options['collection']} would be deleted."
            )
