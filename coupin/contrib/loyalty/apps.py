"""Loyalty app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class LoyaltyConfig(AppConfig):
    name = "coupin.contrib.loyalty"
    label = "coupin_loyalty"
    verbose_name = _("Loyalty Programs")
