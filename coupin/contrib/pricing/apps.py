"""Pricing app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class PricingConfig(AppConfig):
    name = "coupin.contrib.pricing"
    label = "coupin_pricing"
    verbose_name = _("Pricing Plans")
