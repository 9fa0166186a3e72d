"""
Tests for Firebase access and the maintenance commands.

Firestore is replaced by an in-memory fake; nothing talks to Google.
"""

import json
from io import StringIO
from unittest import mock

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings

from coupin import firebase
from coupin.contrib.pricing.models import PricingPlan
from coupin.contrib.regional.models import Currency, Region
from coupin.contrib.timeline.models import TimelineEntry
from coupin.models import Business, Coupon, Customer, ProcessedEvent


# ═══════════════════════════════════════════════════════════════════
# In-memory Firestore
# ═══════════════════════════════════════════════════════════════════


class FakeDoc:
    def __init__(self, collection, doc_id, data):
        self.id = doc_id
        self.reference = (collection, doc_id)
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeQuery:
    def __init__(self, docs):
        self._docs = docs

    def stream(self):
        return iter(self._docs)


class FakeCollection(FakeQuery):
    def __init__(self, name, docs):
        super().__init__(docs)
        self.name = name

    def where(self, filter):
        return FakeQuery(
            [doc for doc in self._docs if doc.to_dict().get(filter.field_path) == filter.value]
        )

    def document(self, doc_id):
        return (self.name, doc_id)


class FakeBatch:
    def __init__(self, db):
        self.db = db
        self.ops = []

    def set(self, ref, data, merge=False):
        self.ops.append(("set", ref, data))

    def update(self, ref, data):
        self.ops.append(("update", ref, data))

    def delete(self, ref):
        self.ops.append(("delete", ref, None))

    def commit(self):
        self.db.committed.extend(self.ops)


class FakeFirestore:
    def __init__(self, data):
        self.data = data
        self.committed = []

    def collection(self, name):
        docs = [FakeDoc(name, doc_id, doc) for doc_id, doc in self.data.get(name, {}).items()]
        return FakeCollection(name, docs)

    def batch(self):
        return FakeBatch(self)


def run(command, *args, **options):
    out = StringIO()
    call_command(command, *args, stdout=out, **options)
    return out.getvalue()


@pytest.fixture
def firestore_data():
    return {}


@pytest.fixture
def fake_db(firestore_data):
    db = FakeFirestore(firestore_data)
    with mock.patch("coupin.firebase.firestore_client", return_value=db):
        yield db


# ═══════════════════════════════════════════════════════════════════
# App initialization
# ═══════════════════════════════════════════════════════════════════


class TestGetApp:
    def test_reuses_initialized_app(self):
        app = object()
        with mock.patch("coupin.firebase.firebase_admin.get_app", return_value=app), mock.patch(
            "coupin.firebase.firebase_admin.initialize_app"
        ) as initialize:
            assert firebase.get_app() is app
        initialize.assert_not_called()

    @override_settings(
        COUPIN={"FIREBASE_PROJECT_ID": "coupin-test", "FIREBASE_STORAGE_BUCKET": "coupin-test.appspot.com"}
    )
    def test_initializes_with_application_default_credentials(self):
        with mock.patch(
            "coupin.firebase.firebase_admin.get_app", side_effect=ValueError
        ), mock.patch("coupin.firebase.firebase_admin.initialize_app") as initialize, mock.patch(
            "coupin.firebase.credentials.ApplicationDefault"
        ) as adc:
            firebase.get_app()

        initialize.assert_called_once_with(
            adc.return_value,
            {"projectId": "coupin-test", "storageBucket": "coupin-test.appspot.com"},
        )

    @override_settings(COUPIN={"FIREBASE_CREDENTIALS": "/secrets/sa.json"})
    def test_initializes_with_service_account(self):
        with mock.patch(
            "coupin.firebase.firebase_admin.get_app", side_effect=ValueError
        ), mock.patch("coupin.firebase.firebase_admin.initialize_app") as initialize, mock.patch(
            "coupin.firebase.credentials.Certificate"
        ) as certificate:
            firebase.get_app()

        certificate.assert_called_once_with("/secrets/sa.json")
        initialize.assert_called_once_with(certificate.return_value, None)


# ═══════════════════════════════════════════════════════════════════
# BatchWriter
# ═══════════════════════════════════════════════════════════════════


class TestBatchWriter:
    def test_commits_every_batch_size(self):
        db = mock.MagicMock()
        with firebase.BatchWriter(db, batch_size=2) as writer:
            for i in range(5):
                writer.set(("docs", str(i)), {"n": i})

        assert writer.operations == 5
        assert writer.commits == 3
        assert db.batch.return_value.set.call_count == 5
        assert db.batch.return_value.commit.call_count == 3

    def test_default_batch_size(self):
        writer = firebase.BatchWriter(mock.MagicMock())
        assert writer.batch_size == 400

    def test_dry_run_writes_nothing(self):
        db = mock.MagicMock()
        with firebase.BatchWriter(db, batch_size=2, dry_run=True) as writer:
            writer.update(("docs", "a"), {"x": 1})
            writer.delete(("docs", "b"))
            writer.delete(("docs", "c"))

        assert writer.operations == 3
        assert writer.commits == 0
        db.batch.assert_not_called()

    def test_nothing_committed_on_error(self):
        db = mock.MagicMock()
        with pytest.raises(RuntimeError):
            with firebase.BatchWriter(db) as writer:
                writer.set(("docs", "a"), {})
                raise RuntimeError("boom")
        db.batch.return_value.commit.assert_not_called()


# ═══════════════════════════════════════════════════════════════════
# Firestore maintenance commands
# ═══════════════════════════════════════════════════════════════════


class TestNormalizePhones:
    @pytest.fixture
    def firestore_data(self):
        return {
            "customers": {
                "a": {"phone": "083 209 1122"},
                "b": {"phone": "+27832091122"},
                "c": {"name": "No phone"},
            }
        }

    def test_dry_run(self, fake_db):
        out = run("firestore_normalize_phones", "customers")
        assert "[customers] ok=1 update=1 empty=1" in out
        assert fake_db.committed == []

    def test_execute(self, fake_db):
        run("firestore_normalize_phones", "customers", execute=True)
        assert fake_db.committed == [("update", ("customers", "a"), {"phone": "+27832091122"})]


class TestFirestoreCleanup:
    @pytest.fixture
    def firestore_data(self):
        return {
            "businesses": {"biz-1": {"name": "Kitchen"}},
            "coupons": {
                "c1": {"businessId": "biz-1", "status": "deleted"},
                "c2": {"businessId": "gone", "status": "active"},
                "c3": {"businessId": "biz-1", "status": "active"},
            },
        }

    def test_where(self, fake_db):
        out = run("firestore_cleanup", "coupons", where="status=deleted", execute=True)
        assert fake_db.committed == [("delete", ("coupons", "c1"), None)]
        assert "Deleted 1 documents" in out

    def test_orphans_dry_run(self, fake_db):
        out = run("firestore_cleanup", "coupons", orphans=True)
        assert "1 documents in coupons would be deleted" in out
        assert fake_db.committed == []

    def test_requires_one_mode(self, fake_db):
        with pytest.raises(CommandError):
            run("firestore_cleanup", "coupons")
        with pytest.raises(CommandError):
            run("firestore_cleanup", "coupons", where="status=deleted", orphans=True)

    def test_where_syntax(self, fake_db):
        with pytest.raises(CommandError):
            run("firestore_cleanup", "coupons", where="status")


class TestRebuildCoupons:
    @pytest.fixture
    def firestore_data(self):
        return {
            "coupons": {"c1": {"businessId": "biz-1", "code": "HAVE"}},
            "couponDistributions": {
                "d1": {"businessId": "biz-1", "couponId": "c1"},
                "d2": {"businessId": "biz-1", "couponId": "c2", "title": "Winter special", "value": 15},
                "d3": {"businessId": "biz-1", "couponId": "c2"},
                "d4": {"businessId": "biz-2", "couponId": "c9"},
            },
            "customerCoupons": {
                "a1": {"businessId": "biz-1", "couponId": "c3", "used": True, "code": "USED1"},
            },
        }

    def test_execute(self, fake_db):
        out = run("firestore_rebuild_coupons", "biz-1", execute=True)

        written = {ref[1]: data for _op, ref, data in fake_db.committed}
        assert set(written) == {"c2", "c3"}
        assert written["c2"]["title"] == "Winter special"
        assert written["c2"]["value"] == 15
        assert written["c2"]["usageCount"] == 0
        assert written["c3"]["title"] == "Customer Coupon"
        assert written["c3"]["code"] == "USED1"
        assert written["c3"]["usageCount"] == 1
        assert written["c3"]["usageLimit"] == 1
        assert "Created 2 coupons" in out

    def test_dry_run(self, fake_db):
        out = run("firestore_rebuild_coupons", "biz-1")
        assert fake_db.committed == []
        assert "2 coupons would be created" in out


@pytest.mark.django_db
class TestFirestoreImport:
    @pytest.fixture
    def firestore_data(self):
        return {
            "businesses": {
                "biz-1": {
                    "businessName": "Mama's Kitchen",
                    "ownerId": "uid-owner",
                    "regionalSettings": {"currency": "zar"},
                }
            },
            "customers": {
                "cust-1": {"businessId": "biz-1", "firstName": "Thandi", "phone": "083 209 1122", "totalVisits": 3},
                "cust-x": {"businessId": "missing", "firstName": "Orphan"},
            },
            "coupons": {
                "cp-1": {"businessId": "biz-1", "code": "bogo", "title": "Buy one", "type": "buyXgetY"},
            },
            "currencies": {"ZAR": {"code": "ZAR", "name": "South African Rand", "symbol": "R"}},
            "pricing_plans": {"p1": {"name": "Growth", "price": 29, "popularPlan": True}},
            "timeline": {"t1": {"year": 2022, "title": "Founded"}},
        }

    def test_execute(self, fake_db):
        out = run("firestore_import", execute=True)

        business = Business.objects.get(code="biz-1")
        assert business.currency == "ZAR"
        customer = Customer.objects.get(code="cust-1")
        assert customer.phone == "+27832091122"
        assert customer.total_visits == 3
        assert Coupon.objects.get(code="BOGO").coupon_type == "buy_x_get_y"
        assert Currency.objects.get(code="ZAR").symbol == "R"
        assert PricingPlan.objects.get(name="Growth").is_popular is True
        assert TimelineEntry.objects.get(year="2022").title == "Founded"
        assert "[customers] created=1 updated=0 skipped=1" in out

    def test_null_fields(self, fake_db):
        fake_db.data["businesses"]["biz-1"].update({"email": None, "website": None, "description": None})
        fake_db.data["customers"]["cust-1"].update({"lastName": None, "email": None, "notes": None, "userId": None})
        fake_db.data["currencies"]["ZAR"].update({"name": None, "isActive": None})
        fake_db.data["pricing_plans"]["p1"]["ctaText"] = None

        run("firestore_import", execute=True)

        assert Business.objects.get(code="biz-1").email == ""
        customer = Customer.objects.get(code="cust-1")
        assert (customer.last_name, customer.email, customer.notes, customer.user_uid) == ("", "", "", "")
        currency = Currency.objects.get(code="ZAR")
        assert currency.name == "ZAR"
        assert currency.is_active is True
        assert PricingPlan.objects.get(name="Growth").cta_text == ""

    def test_dry_run_rolls_back(self, fake_db):
        out = run("firestore_import", "businesses")
        assert "[businesses] created=1" in out
        assert not Business.objects.exists()

    def test_unknown_collection(self, fake_db):
        with pytest.raises(CommandError):
            run("firestore_import", "nope")


class TestStorageCors:
    @pytest.fixture
    def bucket(self):
        bucket = mock.MagicMock()
        bucket.name = "coupin-test.appspot.com"
        bucket.cors = []
        with mock.patch("coupin.firebase.storage_bucket", return_value=bucket):
            yield bucket

    def test_dry_run(self, bucket):
        out = run("storage_cors")
        assert '"maxAgeSeconds": 3600' in out
        bucket.patch.assert_not_called()

    def test_execute(self, bucket):
        run("storage_cors", origins=["https://coupin.app"], execute=True)
        assert bucket.cors[0]["origin"] == ["https://coupin.app"]
        assert "DELETE" in bucket.cors[0]["method"]
        bucket.patch.assert_called_once()

    def test_show(self, bucket):
        bucket.cors = [{"origin": ["*"]}]
        assert json.loads(run("storage_cors", show=True)) == [{"origin": ["*"]}]


class TestFirestoreIndexes:
    def test_dry_run_prints(self):
        out = run("firestore_indexes")
        assert '"collectionGroup": "customers"' in out
        assert "Dry run: 16 indexes" in out

    def test_execute_writes_file(self, tmp_path):
        output = tmp_path / "firestore.indexes.json"
        run("firestore_indexes", output=str(output), execute=True)

        document = json.loads(output.read_text())
        assert len(document["indexes"]) == 16
        assert document["indexes"][0]["fields"] == [
            {"fieldPath": "businessId", "order": "ASCENDING"},
            {"fieldPath": "phone", "order": "ASCENDING"},
        ]

    def test_deploy_requires_execute(self, tmp_path):
        err = StringIO()
        with mock.patch("coupin.management.commands.firestore_indexes.subprocess.run") as deploy:
            call_command("firestore_indexes", output=str(tmp_path / "out.json"), deploy=True, stdout=StringIO(), stderr=err)

        assert "--deploy ignored without --execute." in err.getvalue()
        deploy.assert_not_called()
        assert not (tmp_path / "out.json").exists()

    def test_deploy_without_cli(self, tmp_path):
        output = tmp_path / "firestore.indexes.json"
        with mock.patch(
            "coupin.management.commands.firestore_indexes.subprocess.run",
            side_effect=FileNotFoundError,
        ):
            with pytest.raises(CommandError):
                run("firestore_indexes", output=str(output), deploy=True, execute=True)


# ═══════════════════════════════════════════════════════════════════
# Database commands
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestDatabaseCommands:
    def test_coupin_cleanup(self):
        from datetime import timedelta

        from django.utils import timezone

        ProcessedEvent.objects.create(nonce="old", provider="qr")
        ProcessedEvent.objects.update(processed_at=timezone.now() - timedelta(days=100))
        ProcessedEvent.objects.create(nonce="new", provider="qr")

        assert "Dry run: 1 processed events" in run("coupin_cleanup")
        assert ProcessedEvent.objects.count() == 2

        run("coupin_cleanup", execute=True)
        assert list(ProcessedEvent.objects.values_list("nonce", flat=True)) == ["new"]

    def test_coupin_seed(self):
        assert "would create 20 currencies, 13 regions, 3 pricing plans" in run("coupin_seed")
        assert not Currency.objects.exists()

        run("coupin_seed", execute=True)
        assert Currency.objects.count() == 20
        assert Region.objects.count() == 13
        assert PricingPlan.objects.count() == 3

        assert "Created 0 currencies, 0 regions, 0 pricing plans" in run("coupin_seed", execute=True)
        assert "3 pricing plans" in run("coupin_seed", force_pricing=True, execute=True)
