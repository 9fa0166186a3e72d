from django.apps import AppConfig


class CoupinConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "coupin"
    verbose_name = "Coupin - Coupons & Loyalty"
