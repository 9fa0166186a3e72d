"""Management command to configure CORS on the Firebase Storage bucket."""

import json

from django.core.management.base import BaseCommand

from coupin import firebase
from coupin.conf import coupin_settings

CORS_METHODS = ["GET", "HEAD", "PUT", "POST", "DELETE"]
CORS_RESPONSE_HEADERS = ["Content-Type", "Authorization", "Content-Length", "User-Agent", "x-goog-resumable"]
CORS_MAX_AGE_SECONDS = 3600


def cors_rules(origins: list[str]) -> list[dict]:
    return [
        {
            "origin": origins,
            "method": CORS_METHODS,
            "responseHeader": CORS_RESPONSE_HEADERS,
            "maxAgeSeconds": CORS_MAX_AGE_SECONDS,
        }
    ]


class Command(BaseCommand):
    help = "Show or apply the CORS configuration of the storage bucket"

    def add_arguments(self, parser):
        parser.add_argument("--bucket", default=None, help="Bucket name (default: FIREBASE_STORAGE_BUCKET)")
        parser.add_argument(
            "--origin",
            action="append",
            dest="origins",
            help="Allowed origin, repeatable (default: STORAGE_CORS_ORIGINS)",
        )
        parser.add_argument("--show", action="store_true", help="Print the current rules and exit")
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Apply the rules (default: print them)",
        )

    def handle(self, *args, **options):
        bucket = firebase.storage_bucket(options["bucket"])

        if options["show"]:
            self.stdout.write(json.dumps(bucket.cors, indent=2))
            return

        rules = cors_rules(options["origins"] or list(coupin_settings.STORAGE_CORS_ORIGINS))
        self.stdout.write(json.dumps(rules, indent=2))

        if not options["execute"]:
            self.stdout.write(f"Dry run: rules not applied to {bucket.name}. Use --execute to apply.")
            return

        bucket.cors = rules
        bucket.patch()
        self.stdout.write(self.style.SUCCESS(f"CORS rules applied to {bucket.name}."))
