"""
Coupin Regional - Currencies, regions, and per-user display preferences.

The last explicit choice wins: once a user picks a currency, changing the
region no longer switches it. Changes are broadcast through the
currency_changed and region_changed signals.

Usage:
    INSTALLED_APPS = [
        ...
        "coupin",
        "coupin.contrib.regional",
    ]

    from coupin.contrib.regional import RegionalService

    RegionalService.set_region("user-uid", "GB")   # currency follows: GBP
    RegionalService.set_currency("user-uid", "EUR")
    RegionalService.set_region("user-uid", "US")   # currency stays EUR
"""


def __getattr__(name):
    if name == "RegionalService":
        from coupin.contrib.regional.service import RegionalService

        return RegionalService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["RegionalService"]
