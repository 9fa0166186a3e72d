from django.urls import include, path

urlpatterns = [
    path("api/", include("coupin.urls")),
    path("api/qr/", include("coupin.contrib.qrcodes.urls")),
    path("api/regional/", include("coupin.contrib.regional.urls")),
    path("api/pricing/", include("coupin.contrib.pricing.urls")),
    path("api/timeline/", include("coupin.contrib.timeline.urls")),
]
