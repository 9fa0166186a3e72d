"""Regional service - currency lookup and preference reconciliation."""

import logging

from django.db import transaction

from coupin.contrib.regional.models import Currency, Region, RegionalPreference
from coupin.exceptions import CoupinError
from coupin.signals import currency_changed, region_changed

logger = logging.getLogger(__name__)


# Default currency of each selectable region
REGION_CURRENCY = {
    "US": "USD",
    "GB": "GBP",
    "EU": "EUR",
    "DE": "EUR",
    "FR": "EUR",
    "ZA": "ZAR",
    "JP": "JPY",
    "CA": "CAD",
    "AU": "AUD",
    "CH": "CHF",
    "CN": "CNY",
    "IN": "INR",
    "BR": "BRL",
}

# (code, name, symbol, region)
DEFAULT_CURRENCIES = [
    ("USD", "US Dollar", "$", "North America"),
    ("CAD", "Canadian Dollar", "C$", "North America"),
    ("MXN", "Mexican Peso", "$", "North America"),
    ("EUR", "Euro", "€", "Europe"),
    ("GBP", "British Pound", "£", "Europe"),
    ("CHF", "Swiss Franc", "CHF", "Europe"),
    ("NOK", "Norwegian Krone", "kr", "Europe"),
    ("SEK", "Swedish Krona", "kr", "Europe"),
    ("JPY", "Japanese Yen", "¥", "Asia-Pacific"),
    ("CNY", "Chinese Yuan", "¥", "Asia-Pacific"),
    ("AUD", "Australian Dollar", "A$", "Asia-Pacific"),
    ("SGD", "Singapore Dollar", "S$", "Asia-Pacific"),
    ("HKD", "Hong Kong Dollar", "HK$", "Asia-Pacific"),
    ("INR", "Indian Rupee", "₹", "Asia-Pacific"),
    ("AED", "UAE Dirham", "د.إ", "Middle East & Africa"),
    ("SAR", "Saudi Riyal", "﷼", "Middle East & Africa"),
    ("ZAR", "South African Rand", "R", "Middle East & Africa"),
    ("BRL", "Brazilian Real", "R$", "Latin America"),
    ("ARS", "Argentine Peso", "$", "Latin America"),
    ("CLP", "Chilean Peso", "$", "Latin America"),
]

# (code, name, flag)
DEFAULT_REGIONS = [
    ("US", "United States", "🇺🇸"),
    ("GB", "United Kingdom", "🇬🇧"),
    ("EU", "European Union", "🇪🇺"),
    ("DE", "Germany", "🇩🇪"),
    ("FR", "France", "🇫🇷"),
    ("ZA", "South Africa", "🇿🇦"),
    ("JP", "Japan", "🇯🇵"),
    ("CA", "Canada", "🇨🇦"),
    ("AU", "Australia", "🇦🇺"),
    ("CH", "Switzerland", "🇨🇭"),
    ("CN", "China", "🇨🇳"),
    ("IN", "India", "🇮🇳"),
    ("BR", "Brazil", "🇧🇷"),
]

CURRENCY_SYMBOLS = {code: symbol for code, _name, symbol, _region in DEFAULT_CURRENCIES}


class RegionalService:
    """
    Service for currencies, regions, and regional preferences.

    Uses @classmethod for extensibility (consistent with other contrib services).
    """

    # ======================================================================
    # Seeding
    # ======================================================================

    @classmethod
    def seed_currencies(cls) -> int:
        """Create the default currencies when the table is empty. Returns count created."""
        if Currency.objects.exists():
            return 0
        created = Currency.objects.bulk_create(
            [
                Currency(code=code, name=name, symbol=symbol, region=region, updated_by="system")
                for code, name, symbol, region in DEFAULT_CURRENCIES
            ]
        )
        logger.info("Seeded %d default currencies", len(created))
        return len(created)

    @classmethod
    def seed_regions(cls) -> int:
        """Create the default regions when the table is empty. Returns count created."""
        if Region.objects.exists():
            return 0
        created = Region.objects.bulk_create(
            [
                Region(code=code, name=name, flag=flag, currencies=[REGION_CURRENCY[code]])
                for code, name, flag in DEFAULT_REGIONS
            ]
        )
        logger.info("Seeded %d default regions", len(created))
        return len(created)

    # ======================================================================
    # Currencies
    # ======================================================================

    @classmethod
    def active_currencies(cls, limit: int | None = 10) -> list[Currency]:
        """Active currencies ordered by code. Seeds defaults on first use."""
        cls.seed_currencies()
        qs = Currency.objects.filter(is_active=True).order_by("code")
        if limit:
            qs = qs[:limit]
        return list(qs)

    @classmethod
    def get_currency(cls, code: str) -> Currency | None:
        try:
            return Currency.objects.get(code=(code or "").strip().upper())
        except Currency.DoesNotExist:
            return None

    @classmethod
    def currency_symbol(cls, code: str) -> str:
        """Symbol for a currency code, or the code itself if unknown."""
        code = (code or "").strip().upper()
        currency = Currency.objects.filter(code=code).only("symbol").first()
        if currency and currency.symbol:
            return currency.symbol
        return CURRENCY_SYMBOLS.get(code, code)

    @classmethod
    def update_currency(
        cls,
        code: str,
        name: str,
        symbol: str,
        region: str = "",
        is_active: bool = True,
        admin: str = "",
    ) -> Currency:
        """Create or update a currency."""
        currency, created = Currency.objects.update_or_create(
            code=code.strip().upper(),
            defaults={
                "name": name,
                "symbol": symbol,
                "region": region,
                "is_active": is_active,
                "updated_by": admin,
            },
        )
        logger.info("Currency %s %s by %s", currency.code, "created" if created else "updated", admin or "-")
        return currency

    @classmethod
    def deactivate_currency(cls, code: str, admin: str = "") -> Currency:
        """
        Soft delete a currency.

        Raises:
            CoupinError: CURRENCY_NOT_FOUND
        """
        currency = cls.get_currency(code)
        if currency is None:
            raise CoupinError("CURRENCY_NOT_FOUND", currency=code)
        currency.is_active = False
        currency.updated_by = admin
        currency.save(update_fields=["is_active", "updated_by", "updated_at"])
        return currency

    # ======================================================================
    # Regions
    # ======================================================================

    @classmethod
    def regions(cls) -> list[Region]:
        """Active regions. Seeds defaults on first use."""
        cls.seed_regions()
        return list(Region.objects.filter(is_active=True))

    @classmethod
    def currency_for_region(cls, region_code: str) -> str:
        """Default currency of a region, or DEFAULT_CURRENCY when unmapped."""
        from coupin.conf import coupin_settings

        region_code = (region_code or "").strip().upper()
        if region_code in REGION_CURRENCY:
            return REGION_CURRENCY[region_code]
        region = Region.objects.filter(code=region_code).first()
        if region and region.currencies:
            return region.currencies[0]
        return coupin_settings.DEFAULT_CURRENCY

    # ======================================================================
    # Preferences
    # ======================================================================

    @classmethod
    def get_preference(cls, user_key: str) -> RegionalPreference:
        """The user's preference, created with defaults on first access."""
        from coupin.conf import coupin_settings

        pref, _ = RegionalPreference.objects.get_or_create(
            user_key=user_key,
            defaults={"currency": coupin_settings.DEFAULT_CURRENCY},
        )
        return pref

    @classmethod
    def set_currency(cls, user_key: str, code: str) -> RegionalPreference:
        """
        Explicitly choose a currency.

        Later region changes keep this currency until the choice is reset.
        Emits currency_changed(is_explicit=True).

        Raises:
            CoupinError: CURRENCY_NOT_FOUND
        """
        code = (code or "").strip().upper()
        row = Currency.objects.filter(code=code).only("is_active").first()
        if not (row.is_active if row else code in CURRENCY_SYMBOLS):
            raise CoupinError("CURRENCY_NOT_FOUND", currency=code)

        with transaction.atomic():
            pref = cls.get_preference(user_key)
            pref.currency = code
            pref.explicit_currency_choice = True
            pref.save(update_fields=["currency", "explicit_currency_choice", "updated_at"])

        currency_changed.send(
            sender=RegionalPreference, preference=pref, currency=code, is_explicit=True
        )
        return pref

    @classmethod
    def set_region(cls, user_key: str, code: str) -> RegionalPreference:
        """
        Choose a region.

        Emits region_changed. Unless the user chose a currency explicitly,
        the currency follows the region (emitting currency_changed with
        is_explicit=False when it actually changes).

        Raises:
            CoupinError: REGION_NOT_FOUND
        """
        code = (code or "").strip().upper()
        if code not in REGION_CURRENCY and not Region.objects.filter(code=code, is_active=True).exists():
            raise CoupinError("REGION_NOT_FOUND", region=code)

        with transaction.atomic():
            pref = cls.get_preference(user_key)
            pref.region = code
            currency_switched = False
            if not pref.explicit_currency_choice:
                currency = cls.currency_for_region(code)
                currency_switched = currency != pref.currency
                pref.currency = currency
            pref.save(update_fields=["region", "currency", "updated_at"])

        region_changed.send(sender=RegionalPreference, preference=pref, region=code)
        if currency_switched:
            currency_changed.send(
                sender=RegionalPreference,
                preference=pref,
                currency=pref.currency,
                is_explicit=False,
            )
        return pref

    @classmethod
    def reset_currency_choice(cls, user_key: str) -> RegionalPreference:
        """
        Forget the explicit currency choice.

        The currency goes back to the region's default.
        """
        with transaction.atomic():
            pref = cls.get_preference(user_key)
            pref.explicit_currency_choice = False
            previous = pref.currency
            if pref.region:
                pref.currency = cls.currency_for_region(pref.region)
            pref.save(update_fields=["currency", "explicit_currency_choice", "updated_at"])

        if pref.currency != previous:
            currency_changed.send(
                sender=RegionalPreference,
                preference=pref,
                currency=pref.currency,
                is_explicit=False,
            )
        return pref

    @classmethod
    def update_formats(
        cls,
        user_key: str,
        date_format: str | None = None,
        time_format: str | None = None,
    ) -> RegionalPreference:
        """Change date and time display formats."""
        pref = cls.get_preference(user_key)
        if date_format:
            pref.date_format = date_format
        if time_format:
            pref.time_format = time_format
        pref.save(update_fields=["date_format", "time_format", "updated_at"])
        return pref
