"""About page timeline endpoint."""

from django.http import JsonResponse
from django.views import View

from .service import TimelineService


class TimelineView(View):
    """GET published timeline entries, newest year first."""

    def get(self, request):
        return JsonResponse(
            {
                "entries": [
                    {
                        "id": entry.pk,
                        "year": entry.year,
                        "title": entry.title,
                        "description": entry.description,
                    }
                    for entry in TimelineService.entries()
                ]
            }
        )
