"""Tests for the company timeline."""

import pytest
from django.urls import reverse

from coupin.contrib.timeline import TimelineService
from coupin.exceptions import CoupinError


pytestmark = pytest.mark.django_db


class TestTimelineService:
    def test_entries_newest_year_first(self):
        TimelineService.add_entry("2022", "Founded", "Started in Cape Town")
        TimelineService.add_entry("2024", "Loyalty programs", sort_order=1)
        TimelineService.add_entry("2024", "QR visits", sort_order=0)
        TimelineService.add_entry("2023", "Draft", is_published=False)

        assert [e.title for e in TimelineService.entries()] == [
            "QR visits",
            "Loyalty programs",
            "Founded",
        ]
        assert len(TimelineService.entries(published_only=False)) == 4

    @pytest.mark.parametrize("year,title", [("", "Founded"), ("2022", "  "), (None, None)])
    def test_add_entry_requires_year_and_title(self, year, title):
        with pytest.raises(CoupinError) as exc:
            TimelineService.add_entry(year, title)
        assert exc.value.code == "TIMELINE_INVALID"

    def test_year_stored_as_text(self):
        entry = TimelineService.add_entry(2021, " Beta ")
        assert entry.year == "2021"
        assert entry.title == "Beta"

    def test_update_entry(self):
        entry = TimelineService.add_entry("2022", "Founded")
        updated = TimelineService.update_entry(entry.pk, description="Two founders, one laptop")
        assert updated.description == "Two founders, one laptop"

        with pytest.raises(CoupinError) as exc:
            TimelineService.update_entry(entry.pk, title="")
        assert exc.value.code == "TIMELINE_INVALID"

    def test_update_missing(self):
        with pytest.raises(CoupinError) as exc:
            TimelineService.update_entry(999, title="X")
        assert exc.value.code == "TIMELINE_NOT_FOUND"

    def test_delete_entry(self):
        entry = TimelineService.add_entry("2022", "Founded")
        assert TimelineService.delete_entry(entry.pk) is True
        assert TimelineService.delete_entry(entry.pk) is False


class TestTimelineView:
    def test_lists_published(self, client):
        TimelineService.add_entry("2022", "Founded")
        TimelineService.add_entry("2023", "Hidden", is_published=False)

        data = client.get(reverse("coupin_timeline:timeline")).json()

        assert [e["title"] for e in data["entries"]] == ["Founded"]
        assert data["entries"][0]["year"] == "2022"
