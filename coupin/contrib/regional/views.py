"""Regional settings endpoints."""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from coupin.exceptions import CoupinError

from .service import RegionalService

logger = logging.getLogger("coupin.regional")


def _preference_dict(pref) -> dict:
    return {
        "region": pref.region,
        "currency": pref.currency,
        "currency_symbol": RegionalService.currency_symbol(pref.currency),
        "explicit_currency_choice": pref.explicit_currency_choice,
        "date_format": pref.date_format,
        "time_format": pref.time_format,
    }


class CurrencyListView(View):
    """GET active currencies (?limit=N, 0 for all)."""

    def get(self, request):
        try:
            limit = int(request.GET.get("limit", 10))
        except ValueError:
            limit = 10
        currencies = RegionalService.active_currencies(limit=limit or None)
        return JsonResponse(
            {
                "currencies": [
                    {"code": c.code, "name": c.name, "symbol": c.symbol, "region": c.region}
                    for c in currencies
                ]
            }
        )


class RegionListView(View):
    """GET active regions."""

    def get(self, request):
        return JsonResponse(
            {
                "regions": [
                    {
                        "code": r.code,
                        "name": r.name,
                        "flag": r.flag,
                        "currency": RegionalService.currency_for_region(r.code),
                    }
                    for r in RegionalService.regions()
                ]
            }
        )


@method_decorator(csrf_exempt, name="dispatch")
class PreferenceView(View):
    """
    GET or POST a user's regional preferences.

    POST body (all optional):
        region: Region code
        currency: Currency code (explicit choice)
        reset_currency: true to follow the region again
        date_format, time_format
    """

    def get(self, request, user_key):
        return JsonResponse(_preference_dict(RegionalService.get_preference(user_key)))

    def post(self, request, user_key):
        try:
            data = json.loads(request.body or b"{}")
            if not isinstance(data, dict):
                raise ValueError("body must be an object")
        except (json.JSONDecodeError, ValueError):
            return JsonResponse({"error": "BAD_REQUEST", "message": "Invalid JSON"}, status=400)

        try:
            if data.get("reset_currency"):
                RegionalService.reset_currency_choice(user_key)
            # Region first so a currency sent alongside it wins
            if data.get("region"):
                RegionalService.set_region(user_key, data["region"])
            if data.get("currency"):
                RegionalService.set_currency(user_key, data["currency"])
        except CoupinError as exc:
            logger.info("Preference update rejected for %s: %s", user_key, exc.code)
            return JsonResponse({"error": exc.code, "message": exc.message}, status=400)

        pref = RegionalService.update_formats(
            user_key,
            date_format=data.get("date_format"),
            time_format=data.get("time_format"),
        )
        return JsonResponse(_preference_dict(pref))
