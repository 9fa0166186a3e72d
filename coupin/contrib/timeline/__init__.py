"""
Coupin Timeline - Company history shown on the About page.

Usage:
    from coupin.contrib.timeline import TimelineService

    TimelineService.add_entry(year="2024", title="Launched loyalty programs")
    entries = TimelineService.entries()
"""


def __getattr__(name):
    if name == "TimelineService":
        from coupin.contrib.timeline.service import TimelineService

        return TimelineService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["TimelineService"]
