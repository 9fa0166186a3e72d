"""Tests for currency lookup and regional preference reconciliation."""

import json

import pytest
from django.test import override_settings
from django.urls import reverse

from coupin.contrib.regional import RegionalService
from coupin.contrib.regional.models import Currency, Region, RegionalPreference
from coupin.exceptions import CoupinError
from coupin.signals import currency_changed, region_changed


pytestmark = pytest.mark.django_db


@pytest.fixture
def signals():
    """Collect currency_changed / region_changed emissions."""
    received = []

    def on_currency(sender, currency, is_explicit, **kwargs):
        received.append(("currency", currency, is_explicit))

    def on_region(sender, region, **kwargs):
        received.append(("region", region))

    currency_changed.connect(on_currency)
    region_changed.connect(on_region)
    yield received
    currency_changed.disconnect(on_currency)
    region_changed.disconnect(on_region)


class TestCurrencies:
    def test_seeded_on_first_use(self):
        currencies = RegionalService.active_currencies(limit=None)
        assert len(currencies) == 20
        assert [c.code for c in currencies] == sorted(c.code for c in currencies)
        assert RegionalService.seed_currencies() == 0

    def test_limit(self):
        assert len(RegionalService.active_currencies()) == 10

    def test_code_uppercased(self):
        currency = Currency.objects.create(code="kes", name="Kenyan Shilling", symbol="KSh")
        assert currency.code == "KES"

    def test_update_and_deactivate(self):
        RegionalService.update_currency("ngn", "Naira", "₦", region="Africa", admin="admin@coupin.app")
        assert RegionalService.get_currency("NGN").updated_by == "admin@coupin.app"

        RegionalService.deactivate_currency("NGN", admin="admin@coupin.app")
        assert RegionalService.get_currency("NGN").is_active is False

    def test_deactivate_unknown(self):
        with pytest.raises(CoupinError) as exc:
            RegionalService.deactivate_currency("XXX")
        assert exc.value.code == "CURRENCY_NOT_FOUND"

    def test_symbol(self):
        assert RegionalService.currency_symbol("zar") == "R"
        assert RegionalService.currency_symbol("XYZ") == "XYZ"
        Currency.objects.create(code="ZAR", name="Rand", symbol="ZAR R")
        assert RegionalService.currency_symbol("ZAR") == "ZAR R"


class TestRegions:
    def test_seeded_on_first_use(self):
        regions = RegionalService.regions()
        assert len(regions) == 13
        assert Region.objects.get(code="ZA").currencies == ["ZAR"]

    @pytest.mark.parametrize(
        "region,currency",
        [("US", "USD"), ("GB", "GBP"), ("DE", "EUR"), ("ZA", "ZAR"), ("IN", "INR")],
    )
    def test_currency_for_region(self, region, currency):
        assert RegionalService.currency_for_region(region) == currency

    def test_unmapped_region_uses_region_row_then_default(self):
        Region.objects.create(code="KE", name="Kenya", currencies=["KES"])
        assert RegionalService.currency_for_region("KE") == "KES"
        assert RegionalService.currency_for_region("XX") == "USD"

    @override_settings(COUPIN={"DEFAULT_CURRENCY": "EUR"})
    def test_default_currency_setting(self):
        assert RegionalService.currency_for_region("XX") == "EUR"


class TestPreferences:
    def test_default_preference(self):
        pref = RegionalService.get_preference("uid-1")
        assert pref.currency == "USD"
        assert pref.explicit_currency_choice is False
        assert pref.date_format == "DD/MM/YYYY"
        assert pref.time_format == "24h"

    def test_region_sets_currency(self, signals):
        pref = RegionalService.set_region("uid-1", "za")

        assert pref.region == "ZA"
        assert pref.currency == "ZAR"
        assert signals == [("region", "ZA"), ("currency", "ZAR", False)]

    def test_explicit_currency_survives_region_change(self, signals):
        RegionalService.set_currency("uid-1", "GBP")
        pref = RegionalService.set_region("uid-1", "ZA")

        assert pref.currency == "GBP"
        assert pref.explicit_currency_choice is True
        assert signals == [("currency", "GBP", True), ("region", "ZA")]

    def test_no_currency_signal_when_unchanged(self, signals):
        RegionalService.set_region("uid-1", "DE")
        signals.clear()
        RegionalService.set_region("uid-1", "FR")
        assert signals == [("region", "FR")]

    def test_reset_currency_choice(self, signals):
        RegionalService.set_region("uid-1", "ZA")
        RegionalService.set_currency("uid-1", "EUR")
        signals.clear()

        pref = RegionalService.reset_currency_choice("uid-1")

        assert pref.currency == "ZAR"
        assert pref.explicit_currency_choice is False
        assert signals == [("currency", "ZAR", False)]

    def test_unknown_currency(self):
        with pytest.raises(CoupinError) as exc:
            RegionalService.set_currency("uid-1", "XYZ")
        assert exc.value.code == "CURRENCY_NOT_FOUND"
        assert not RegionalPreference.objects.exists()

    def test_deactivated_currency_rejected(self):
        RegionalService.update_currency("USD", "US Dollar", "$", admin="admin@coupin.app")
        RegionalService.deactivate_currency("USD", admin="admin@coupin.app")

        with pytest.raises(CoupinError) as exc:
            RegionalService.set_currency("uid-1", "USD")
        assert exc.value.code == "CURRENCY_NOT_FOUND"

    def test_unknown_region(self):
        with pytest.raises(CoupinError) as exc:
            RegionalService.set_region("uid-1", "XX")
        assert exc.value.code == "REGION_NOT_FOUND"

    def test_update_formats(self):
        pref = RegionalService.update_formats("uid-1", date_format="MM/DD/YYYY", time_format="12h")
        assert (pref.date_format, pref.time_format) == ("MM/DD/YYYY", "12h")


class TestRegionalViews:
    def test_currency_list(self, client):
        data = client.get(reverse("coupin_regional:currencies"), {"limit": 0}).json()
        assert len(data["currencies"]) == 20

    def test_region_list(self, client):
        data = client.get(reverse("coupin_regional:regions")).json()
        za = next(r for r in data["regions"] if r["code"] == "ZA")
        assert za["currency"] == "ZAR"

    def test_preference_post(self, client):
        url = reverse("coupin_regional:preferences", args=["uid-1"])
        response = client.post(
            url,
            data=json.dumps({"region": "GB", "time_format": "12h"}),
            content_type="application/json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["currency"] == "GBP"
        assert data["currency_symbol"] == "£"
        assert data["time_format"] == "12h"
        assert client.get(url).json()["region"] == "GB"

    def test_preference_post_region_and_currency(self, client):
        url = reverse("coupin_regional:preferences", args=["uid-1"])
        data = client.post(
            url,
            data=json.dumps({"region": "ZA", "currency": "USD"}),
            content_type="application/json",
        ).json()
        assert data["region"] == "ZA"
        assert data["currency"] == "USD"
        assert data["explicit_currency_choice"] is True

    def test_preference_post_invalid(self, client):
        url = reverse("coupin_regional:preferences", args=["uid-1"])
        response = client.post(url, data=json.dumps({"region": "XX"}), content_type="application/json")
        assert response.status_code == 400
        assert response.json()["error"] == "REGION_NOT_FOUND"

    def test_preference_post_non_object(self, client):
        url = reverse("coupin_regional:preferences", args=["uid-1"])
        response = client.post(url, data=json.dumps(["GB"]), content_type="application/json")
        assert response.status_code == 400
        assert response.json()["error"] == "BAD_REQUEST"
