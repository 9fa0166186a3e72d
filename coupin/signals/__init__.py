"""
Coupin signals - public event API.

Emitted signals:
- customer_created: Emitted by services.customer.create()
- coupon_redeemed: Emitted by services.coupon.redeem()
- visit_recorded: Emitted by contrib.loyalty LoyaltyService.add_visit()
- currency_changed: Emitted by contrib.regional when the active currency changes
- region_changed: Emitted by contrib.regional when the region changes
"""

from django.dispatch import Signal

# Customer / coupon signals (emitted by services)
customer_created = Signal()  # sender=Customer
coupon_redeemed = Signal()  # sender=Redemption, coupon=Coupon, customer=Customer

# Loyalty
visit_recorded = Signal()  # sender=VisitRecord, membership=LoyaltyMembership

# Regional preferences
currency_changed = Signal()  # sender=RegionalPreference, currency=str, is_explicit=bool
region_changed = Signal()  # sender=RegionalPreference, region=str
