"""Timeline service - company history entries."""

import logging

from coupin.contrib.timeline.models import TimelineEntry
from coupin.exceptions import CoupinError

logger = logging.getLogger(__name__)


class TimelineService:
    """
    Service for the About page timeline.

    Uses @classmethod for extensibility (consistent with other contrib services).
    """

    @classmethod
    def entries(cls, published_only: bool = True) -> list[TimelineEntry]:
        """Entries, newest year first."""
        qs = TimelineEntry.objects.all()
        if published_only:
            qs = qs.filter(is_published=True)
        return list(qs.order_by("-year", "sort_order", "pk"))

    @classmethod
    def add_entry(
        cls,
        year: str,
        title: str,
        description: str = "",
        sort_order: int = 0,
        is_published: bool = True,
    ) -> TimelineEntry:
        """
        Add a timeline entry.

        Raises:
            CoupinError: TIMELINE_INVALID if year or title is blank
        """
        year = str(year or "").strip()
        title = (title or "").strip()
        if not year or not title:
            raise CoupinError("TIMELINE_INVALID")

        entry = TimelineEntry.objects.create(
            year=year,
            title=title,
            description=description.strip(),
            sort_order=sort_order,
            is_published=is_published,
        )
        logger.info("Timeline entry %s added (%s)", entry.pk, year)
        return entry

    @classmethod
    def update_entry(cls, entry_id: int, **fields) -> TimelineEntry:
        """
        Update an entry.

        Raises:
            CoupinError: TIMELINE_NOT_FOUND, TIMELINE_INVALID
        """
        try:
            entry = TimelineEntry.objects.get(pk=entry_id)
        except TimelineEntry.DoesNotExist:
            raise CoupinError("TIMELINE_NOT_FOUND", entry_id=entry_id)

        for key, value in fields.items():
            if hasattr(entry, key):
                setattr(entry, key, value)

        entry.year = str(entry.year or "").strip()
        entry.title = (entry.title or "").strip()
        if not entry.year or not entry.title:
            raise CoupinError("TIMELINE_INVALID")

        entry.save()
        return entry

    @classmethod
    def delete_entry(cls, entry_id: int) -> bool:
        """Delete an entry. Returns False if not found."""
        deleted, _ = TimelineEntry.objects.filter(pk=entry_id).delete()
        return deleted > 0
