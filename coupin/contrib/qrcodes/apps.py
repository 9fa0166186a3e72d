"""QR codes app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class QRCodesConfig(AppConfig):
    name = "coupin.contrib.qrcodes"
    label = "coupin_qrcodes"
    verbose_name = _("QR Codes")
