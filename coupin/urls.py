from django.urls import path

from .views import (
    CouponStatsView,
    CustomerLookupView,
    LinkAccountView,
    RedeemCouponView,
    SavingsView,
)

app_name = "coupin"

urlpatterns = [
    path("businesses/<str:business_code>/redeem/", RedeemCouponView.as_view(), name="redeem"),
    path("businesses/<str:business_code>/customers/lookup/", CustomerLookupView.as_view(), name="customer-lookup"),
    path("businesses/<str:business_code>/coupons/stats/", CouponStatsView.as_view(), name="coupon-stats"),
    path("accounts/<str:user_uid>/savings/", SavingsView.as_view(), name="savings"),
    path("accounts/<str:user_uid>/link/", LinkAccountView.as_view(), name="link-account"),
]
