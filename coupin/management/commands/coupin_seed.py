"""Management command to seed reference data."""

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Create the default currencies, regions, and pricing plans where missing"

    def add_arguments(self, parser):
        parser.add_argument(
            "--force-pricing",
            action="store_true",
            help="Delete existing pricing plans and recreate the defaults",
        )
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Write the data (default: report what would be created)",
        )

    def handle(self, *args, **options):
        from coupin.contrib.pricing.models import PricingPlan
        from coupin.contrib.pricing.service import DEFAULT_PLANS, PricingService
        from coupin.contrib.regional.models import Currency, Region
        from coupin.contrib.regional.service import (
            DEFAULT_CURRENCIES,
            DEFAULT_REGIONS,
            RegionalService,
        )

        if not options["execute"]:
            currencies = 0 if Currency.objects.exists() else len(DEFAULT_CURRENCIES)
            regions = 0 if Region.objects.exists() else len(DEFAULT_REGIONS)
            plans = len(DEFAULT_PLANS)
            if not options["force_pricing"] and PricingPlan.objects.exists():
                plans = 0
            self.stdout.write(
                f"Dry run: would create {currencies} currencies, {regions} regions, "
                f"{plans} pricing plans."
            )
            return

        currencies = RegionalService.seed_currencies()
        regions = RegionalService.seed_regions()
        if options["force_pricing"]:
            plans = PricingService.force_refresh()
        else:
            plans = PricingService.initialize_defaults()

        self.stdout.write(
            self.style.SUCCESS(
                f"Created {currencies} currencies, {regions} regions, {plans} pricing plans."
            )
        )
