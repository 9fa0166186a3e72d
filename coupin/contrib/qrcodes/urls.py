from django.urls import path

from .views import CouponQRView, LoyaltyQRView, ScanView

app_name = "coupin_qrcodes"

urlpatterns = [
    path("loyalty/<int:membership_id>/", LoyaltyQRView.as_view(), name="loyalty-qr"),
    path("coupon/<str:business_code>/<str:code>/", CouponQRView.as_view(), name="coupon-qr"),
    path("scan/", ScanView.as_view(), name="scan"),
]
