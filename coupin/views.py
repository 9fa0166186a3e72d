"""
Coupin core endpoints.

JSON views backing the business dashboard (coupon redemption, customer
phone lookup) and the customer's savings page.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation

from django.http import JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from coupin.exceptions import CoupinError, gate_error_code
from coupin.gates import GateError
from coupin.services import coupon as coupon_service
from coupin.services import customer as customer_service
from coupin.services import savings as savings_service
from coupin.utils import format_phone_for_display

logger = logging.getLogger("coupin.views")

ERROR_STATUS = {
    "BUSINESS_NOT_FOUND": 404,
    "CUSTOMER_NOT_FOUND": 404,
    "COUPON_NOT_FOUND": 404,
}


def _error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"error": code, "message": message}, status=status)


def _json_body(request) -> dict | None:
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


@method_decorator(csrf_exempt, name="dispatch")
class RedeemCouponView(View):
    """
    POST a coupon redemption.

    Expects JSON body:
        code: Coupon code
        customer_code or phone: Customer
        amount: Purchase amount
        reference: Receipt/order reference (optional)
    """

    def post(self, request, business_code):
        data = _json_body(request)
        if data is None:
            return _error("BAD_REQUEST", "Invalid JSON")
        try:
            amount = Decimal(str(data.get("amount") or "0"))
        except InvalidOperation:
            return _error("BAD_REQUEST", "Invalid amount")

        if data.get("customer_code"):
            customer = customer_service.get(business_code, data["customer_code"])
        else:
            customer = customer_service.get_by_phone(business_code, data.get("phone", ""))
        if customer is None:
            return _error("CUSTOMER_NOT_FOUND", "Customer not found", 404)

        try:
            redemption = coupon_service.redeem(
                business_code,
                data.get("code", ""),
                customer,
                amount,
                reference=data.get("reference", ""),
            )
        except GateError as exc:
            logger.info("Redemption rejected: %s", exc)
            return _error(gate_error_code(exc), exc.message, 409)
        except CoupinError as exc:
            return _error(exc.code, exc.message, ERROR_STATUS.get(exc.code, 400))

        return JsonResponse(
            {
                "status": "redeemed",
                "code": redemption.coupon.code,
                "customer_code": customer.code,
                "amount": str(redemption.amount),
                "discount": str(redemption.discount),
                "total": str(redemption.amount - redemption.discount),
            }
        )


class CustomerLookupView(View):
    """GET a business's customer by phone (?phone=083 209 1122)."""

    def get(self, request, business_code):
        phone = request.GET.get("phone", "")
        if not phone:
            return _error("INVALID_PHONE", "Phone is required")

        customer = customer_service.get_by_phone(business_code, phone)
        if customer is None:
            return _error("CUSTOMER_NOT_FOUND", "Customer not found", 404)

        stats = coupon_service.customer_coupon_stats(customer)
        return JsonResponse(
            {
                "code": customer.code,
                "name": customer.name,
                "phone": customer.phone,
                "phone_display": format_phone_for_display(customer.phone),
                "total_visits": customer.total_visits,
                "total_spent": str(customer.total_spent),
                "last_visit_at": customer.last_visit_at.isoformat() if customer.last_visit_at else None,
                "coupons": stats,
            }
        )


class SavingsView(View):
    """GET the savings summary of a Coupin account."""

    def get(self, request, user_uid):
        today = timezone.localdate()
        current, longest = savings_service.savings_streak(user_uid=user_uid, today=today)
        return JsonResponse(
            {
                "total_saved": str(savings_service.total_saved(user_uid=user_uid)),
                "this_month": str(
                    savings_service.monthly_savings(today.year, today.month, user_uid=user_uid)
                ),
                "current_streak": current,
                "longest_streak": longest,
            }
        )


@method_decorator(csrf_exempt, name="dispatch")
class LinkAccountView(View):
    """POST {phone} to link the account to matching customer records."""

    def post(self, request, user_uid):
        data = _json_body(request)
        if data is None:
            return _error("BAD_REQUEST", "Invalid JSON")
        try:
            linked = customer_service.link_user(user_uid, data.get("phone", ""))
        except CoupinError as exc:
            return _error(exc.code, exc.message)
        return JsonResponse(
            {
                "linked": [
                    {"business_code": c.business.code, "customer_code": c.code} for c in linked
                ]
            }
        )


class CouponStatsView(View):
    """GET coupon totals for a business dashboard."""

    def get(self, request, business_code):
        stats = coupon_service.business_coupon_stats(business_code)
        recent = coupon_service.recent_coupons(business_code)
        return JsonResponse(
            {
                "total": stats.total,
                "active": stats.active,
                "distributed": stats.distributed,
                "redeemed": stats.redeemed,
                "redemption_rate": stats.redemption_rate,
                "total_discount": str(stats.total_discount),
                "recent": [
                    {"code": c.code, "title": c.title, "is_running": c.is_running()} for c in recent
                ],
            }
        )
