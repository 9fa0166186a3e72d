from django.urls import path

from .views import TimelineView

app_name = "coupin_timeline"

urlpatterns = [
    path("", TimelineView.as_view(), name="timeline"),
]
