"""
QR code endpoints.

Scan flow:
    1. Parses the scanned text
    2. Checks the payload is recent (G6)
    3. Records the nonce (G5) and the visit in one transaction
    4. Returns the member's new totals
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from coupin.exceptions import CoupinError, gate_error_code
from coupin.gates import GateError, Gates

from .service import BUSINESS, COUPON, LOYALTY_VISIT, LoyaltyQRCode, QRCodeService

logger = logging.getLogger("coupin.qrcodes")


def _error(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": code, "message": message}, status=status)


class LoyaltyQRView(View):
    """GET the member's current loyalty QR code."""

    def get(self, request, membership_id):
        from coupin.contrib.loyalty.models import LoyaltyMembership

        try:
            membership = LoyaltyMembership.objects.select_related(
                "customer", "program__business"
            ).get(pk=membership_id, is_active=True)
        except LoyaltyMembership.DoesNotExist:
            return _error("LOYALTY_NOT_ENROLLED", "Membership not found", 404)

        return JsonResponse(LoyaltyQRCode.current(membership).as_dict())


class CouponQRView(View):
    """GET a coupon's QR code (PNG data URL, or SVG with ?format=svg)."""

    def get(self, request, business_code, code):
        from coupin.services import coupon as coupon_service

        coupon = coupon_service.get(business_code, code)
        if coupon is None:
            return _error("COUPON_NOT_FOUND", "Coupon not found", 404)

        payload = QRCodeService.build_coupon_payload(coupon.code)
        if request.GET.get("format") == "svg":
            return HttpResponse(QRCodeService.render_svg(payload), content_type="image/svg+xml")
        return JsonResponse(
            {"payload": payload, "image": QRCodeService.render_png_data_url(payload)}
        )


@method_decorator(csrf_exempt, name="dispatch")
class ScanView(View):
    """
    POST endpoint for the business scanner.

    Expects JSON body:
        business_code: Scanning business
        data: Raw scanned text
        amount: Purchase amount (optional)
        notes: Free text (optional)
        recorded_by: Staff identifier (optional)
    """

    def post(self, request):
        try:
            body = json.loads(request.body)
            if not isinstance(body, dict):
                raise ValueError("body must be an object")
            amount = Decimal(str(body.get("amount") or "0"))
        except (json.JSONDecodeError, ValueError, InvalidOperation):
            return _error("BAD_REQUEST", "Invalid JSON", 400)

        business_code = body.get("business_code", "")
        payload = QRCodeService.parse_payload(body.get("data", ""))
        if payload is None:
            return _error("QR_INVALID", "Invalid QR code", 400)

        if payload["type"] == COUPON:
            return self._coupon(business_code, payload)
        if payload["type"] == BUSINESS:
            return JsonResponse({"type": BUSINESS, "business_code": payload["id"]})

        # LOYALTY_VISIT
        try:
            Gates.qr_freshness(payload.get("timestamp"))
        except GateError as exc:
            logger.warning("QR scan rejected: %s", exc.message)
            return _error(gate_error_code(exc), exc.message, 400)

        from coupin.contrib.loyalty.service import LoyaltyService

        try:
            with transaction.atomic():
                Gates.replay_protection(payload.get("nonce", ""), provider="qr")
                result = LoyaltyService.record_visit(
                    payload,
                    business_code,
                    amount=amount,
                    notes=body.get("notes", ""),
                    recorded_by=body.get("recorded_by", ""),
                )
        except GateError as exc:
            logger.warning("QR scan rejected: %s", exc.message)
            return _error(gate_error_code(exc), exc.message, 409)
        except CoupinError as exc:
            logger.warning("QR scan rejected: %s", exc.message)
            status = 403 if exc.code == "QR_WRONG_BUSINESS" else 404
            return _error(exc.code, exc.message, status)

        LoyaltyQRCode.invalidate(result.membership.pk)
        membership = result.membership
        return JsonResponse(
            {
                "type": LOYALTY_VISIT,
                "status": "recorded",
                "message": result.message,
                "points_earned": result.points_earned,
                "points_balance": membership.points_balance,
                "visits": membership.visits,
                "tier": membership.tier.name if membership.tier else None,
                "tier_changed": result.tier_changed,
            }
        )

    def _coupon(self, business_code, payload):
        from coupin.services import coupon as coupon_service

        coupon = coupon_service.get(business_code, payload["code"])
        if coupon is None:
            return _error("COUPON_NOT_FOUND", "Coupon not found", 404)
        return JsonResponse(
            {
                "type": COUPON,
                "code": coupon.code,
                "title": coupon.title,
                "coupon_type": coupon.coupon_type,
                "value": str(coupon.value),
                "valid": Gates.check_coupon_active(coupon) and Gates.check_usage_limit(coupon),
            }
        )
