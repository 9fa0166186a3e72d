"""Timeline app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TimelineConfig(AppConfig):
    name = "coupin.contrib.timeline"
    label = "coupin_timeline"
    verbose_name = _("Company Timeline")
