from django.urls import path

from .views import CurrencyListView, PreferenceView, RegionListView

app_name = "coupin_regional"

urlpatterns = [
    path("currencies/", CurrencyListView.as_view(), name="currencies"),
    path("regions/", RegionListView.as_view(), name="regions"),
    path("preferences/<str:user_key>/", PreferenceView.as_view(), name="preferences"),
]
