"""Customer service - lookup, creation and account linking.

All write operations that touch >1 record use transaction.atomic().
"""

import logging

from django.db import transaction
from django.db.models import Q

from coupin.exceptions import CoupinError
from coupin.models import Business, Customer
from coupin.signals import customer_created
from coupin.utils import normalize_phone, phone_alternatives

logger = logging.getLogger(__name__)


def get_business(code: str) -> Business:
    """Get active business by code or raise BUSINESS_NOT_FOUND."""
    try:
        return Business.objects.get(code=code, is_active=True)
    except Business.DoesNotExist:
        raise CoupinError("BUSINESS_NOT_FOUND", business_code=code)


def get(business_code: str, code: str) -> Customer | None:
    """Get customer by code within a business."""
    try:
        return Customer.objects.select_related("business").get(
            business__code=business_code, code=code, is_active=True
        )
    except Customer.DoesNotExist:
        return None


def get_by_phone(business_code: str, phone: str) -> Customer | None:
    """
    Get customer by phone within a business.

    Matches any stored spelling of the number (E.164, without "+",
    national with or without the trunk 0), so rows imported before
    normalization are still found.
    """
    alternatives = phone_alternatives(phone)
    if not alternatives:
        return None
    return (
        Customer.objects.select_related("business")
        .filter(business__code=business_code, phone__in=alternatives, is_active=True)
        .order_by("joined_at")
        .first()
    )


def get_by_email(business_code: str, email: str) -> Customer | None:
    """Get customer by email within a business."""
    return Customer.objects.filter(
        business__code=business_code, email__iexact=email.strip(), is_active=True
    ).first()


def get_by_user(user_uid: str) -> list[Customer]:
    """All customer records linked to a Coupin account."""
    if not user_uid:
        return []
    return list(
        Customer.objects.select_related("business").filter(
            user_uid=user_uid, is_active=True
        )
    )


def search(
    business_code: str,
    query: str | None = None,
    only_active: bool = True,
    limit: int = 20,
) -> list[Customer]:
    """
    Search a business's customers.

    Args:
        business_code: Business code
        query: Search term (name, code, phone, or email)
        only_active: Only active customers
        limit: Maximum results

    Returns:
        List of Customer
    """
    qs = Customer.objects.filter(business__code=business_code)

    if only_active:
        qs = qs.filter(is_active=True)

    if query:
        cond = (
            Q(code__icontains=query)
            | Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(email__icontains=query)
        )
        digits = "".join(filter(str.isdigit, query))
        if len(digits) >= 6:
            cond |= Q(phone__in=phone_alternatives(query))
        elif digits:
            cond |= Q(phone__contains=digits)
        qs = qs.filter(cond)

    return list(qs[:limit])


def create(
    business_code: str,
    code: str,
    first_name: str,
    last_name: str = "",
    email: str = "",
    phone: str = "",
    **kwargs,
) -> Customer:
    """
    Create a customer for a business.

    Emits customer_created signal.

    Raises:
        CoupinError: BUSINESS_NOT_FOUND
    """
    business = get_business(business_code)
    cust = Customer.objects.create(
        business=business,
        code=code,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        **kwargs,
    )
    logger.info("Customer %s created for business %s", cust.code, business.code)
    customer_created.send(sender=Customer, customer=cust)
    return cust


def update(business_code: str, code: str, **fields) -> Customer | None:
    """
    Update customer fields.

    Returns:
        Updated Customer or None if not found
    """
    cust = get(business_code, code)
    if not cust:
        return None

    for key, value in fields.items():
        if hasattr(cust, key):
            setattr(cust, key, value)

    cust.save()
    return cust


def link_user(user_uid: str, phone: str) -> list[Customer]:
    """
    Link a Coupin account to every customer record with the same phone.

    Called after a customer signs up or confirms their phone number, so
    coupons and loyalty progress recorded before sign-up show up in their
    account. Records already linked to another account are left alone.

    Returns:
        Customers now linked to user_uid

    Raises:
        CoupinError: INVALID_PHONE
    """
    alternatives = phone_alternatives(phone)
    if not alternatives:
        raise CoupinError("INVALID_PHONE", phone=phone)

    normalized = normalize_phone(phone)
    with transaction.atomic():
        candidates = list(
            Customer.objects.select_for_update()
            .filter(phone__in=alternatives, is_active=True)
            .filter(Q(user_uid="") | Q(user_uid=user_uid))
        )
        for cust in candidates:
            cust.user_uid = user_uid
            cust.phone = normalized
            cust.save(update_fields=["user_uid", "phone", "updated_at"])

    logger.info("Linked %d customer record(s) to user %s", len(candidates), user_uid)
    return candidates
