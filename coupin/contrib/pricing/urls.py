from django.urls import path

from .views import PlanListView

app_name = "coupin_pricing"

urlpatterns = [
    path("plans/", PlanListView.as_view(), name="plans"),
]
