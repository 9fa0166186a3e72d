"""Pricing page endpoint."""

from django.http import JsonResponse
from django.views import View

from .service import PricingService


class PlanListView(View):
    """GET active plans priced in ?currency= (default: each plan's base currency)."""

    def get(self, request):
        currency = request.GET.get("currency", "")
        plans = PricingService.active_plans()
        return JsonResponse(
            {"plans": [PricingService.plan_dict(plan, currency) for plan in plans]}
        )
