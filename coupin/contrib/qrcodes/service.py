"""QR code service - payload building, parsing, and rendering."""

import base64
import json
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO

import qrcode
import qrcode.image.svg
from django.core.cache import cache
from django.utils import timezone
from qrcode.constants import ERROR_CORRECT_H

logger = logging.getLogger(__name__)

# Payload types
COUPON = "coupon"
BUSINESS = "business"
LOYALTY_VISIT = "loyalty_visit"

QR_SIZE_PX = 300
QR_BORDER = 4


class QRCodeService:
    """
    Service for QR payloads.

    Payload keys are camelCase, matching the JSON the scanner reads.
    """

    # ======================================================================
    # Payloads
    # ======================================================================

    @classmethod
    def build_coupon_payload(cls, code: str) -> dict:
        return {"type": COUPON, "code": code}

    @classmethod
    def build_business_payload(cls, business_code: str) -> dict:
        return {"type": BUSINESS, "id": business_code}

    @classmethod
    def build_loyalty_visit_payload(cls, membership, at: datetime | None = None) -> dict:
        """
        Payload a customer shows to record a visit.

        Carries a timestamp (milliseconds) for the freshness check and a
        nonce so each code can be scanned only once.
        """
        at = at or timezone.now()
        customer = membership.customer
        return {
            "type": LOYALTY_VISIT,
            "customerId": customer.code,
            "programId": membership.program_id,
            "businessId": membership.program.business.code,
            "customerPhone": customer.phone,
            "timestamp": int(at.timestamp() * 1000),
            "nonce": uuid.uuid4().hex,
        }

    @classmethod
    def parse_payload(cls, raw: str) -> dict | None:
        """
        Parse scanned QR text.

        Returns:
            Payload dict, or None if the text is empty or malformed.
            Plain text, including bare JSON strings and numbers, is read
            as a coupon code.
        """
        if not isinstance(raw, str):
            return None
        raw = raw.strip()
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            return cls.build_coupon_payload(raw.upper())

        if isinstance(data, str):
            return cls.build_coupon_payload(data.strip().upper()) if data.strip() else None
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return cls.build_coupon_payload(raw.upper())
        if not isinstance(data, dict):
            return None

        kind = data.get("type")
        if kind == COUPON and data.get("code"):
            return cls.build_coupon_payload(str(data["code"]).upper())
        if kind == BUSINESS and data.get("id"):
            return cls.build_business_payload(str(data["id"]))
        if kind == LOYALTY_VISIT and data.get("customerId") and data.get("businessId"):
            try:
                program_id = int(data.get("programId"))
            except (TypeError, ValueError):
                logger.debug("QR payload with invalid programId: %s", raw[:100])
                return None
            return {
                "type": LOYALTY_VISIT,
                "customerId": str(data["customerId"]),
                "programId": program_id,
                "businessId": str(data["businessId"]),
                "customerPhone": data.get("customerPhone", ""),
                "timestamp": data.get("timestamp"),
                "nonce": data.get("nonce", ""),
            }

        logger.debug("Unrecognized QR payload: %s", raw[:100])
        return None

    # ======================================================================
    # Rendering
    # ======================================================================

    @classmethod
    def _make(cls, payload: dict | str) -> qrcode.QRCode:
        data = payload if isinstance(payload, str) else json.dumps(payload, separators=(",", ":"))
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=QR_BORDER)
        qr.add_data(data)
        qr.make(fit=True)
        qr.box_size = max(1, QR_SIZE_PX // (qr.modules_count + 2 * QR_BORDER))
        return qr

    @classmethod
    def render_png_data_url(cls, payload: dict | str) -> str:
        """Render payload as a ``data:image/png;base64,...`` URL."""
        img = cls._make(payload).make_image(fill_color="black", back_color="white")
        buffer = BytesIO()
        img.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    @classmethod
    def render_svg(cls, payload: dict | str) -> str:
        """Render payload as an SVG document."""
        img = cls._make(payload).make_image(image_factory=qrcode.image.svg.SvgPathImage)
        return img.to_string(encoding="unicode")


@dataclass
class LoyaltyQRCode:
    """
    The loyalty QR code a member currently shows.

    The payload is cached per membership and regenerated once it is
    QR_REFRESH_SECONDS old, or after it has been scanned.
    """

    payload: dict
    image: str
    generated_at: datetime
    refresh_in: int

    @staticmethod
    def cache_key(membership_id: int) -> str:
        return f"coupin:qr:loyalty:{membership_id}"

    @classmethod
    def current(cls, membership, now: datetime | None = None) -> "LoyaltyQRCode":
        from coupin.conf import coupin_settings

        now = now or timezone.now()
        refresh = coupin_settings.QR_REFRESH_SECONDS
        key = cls.cache_key(membership.pk)

        payload = cache.get(key)
        age = None
        if payload:
            age = now.timestamp() - payload["timestamp"] / 1000
        if payload is None or age < 0 or age >= refresh:
            payload = QRCodeService.build_loyalty_visit_payload(membership, at=now)
            cache.set(key, payload, timeout=refresh)
            age = 0

        return cls(
            payload=payload,
            image=QRCodeService.render_png_data_url(payload),
            generated_at=datetime.fromtimestamp(payload["timestamp"] / 1000, tz=now.tzinfo),
            refresh_in=max(1, math.ceil(refresh - age)),
        )

    @classmethod
    def invalidate(cls, membership_id: int) -> None:
        cache.delete(cls.cache_key(membership_id))

    def as_dict(self) -> dict:
        return {
            "payload": self.payload,
            "image": self.image,
            "generated_at": self.generated_at.isoformat(),
            "refresh_in": self.refresh_in,
        }
