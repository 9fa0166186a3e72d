"""Regional settings app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class RegionalConfig(AppConfig):
    name = "coupin.contrib.regional"
    label = "coupin_regional"
    verbose_name = _("Regional Settings")
