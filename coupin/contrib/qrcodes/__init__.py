"""
Coupin QR Codes - Payloads and images for coupons, businesses, and loyalty visits.

Customers show a loyalty QR code that refreshes every QR_REFRESH_SECONDS;
the business scans it to record a visit. Scans are checked for freshness
(G6) and single use (G5).

Usage:
    INSTALLED_APPS = [
        ...
        "coupin",
        "coupin.contrib.loyalty",
        "coupin.contrib.qrcodes",
    ]

    from coupin.contrib.qrcodes import QRCodeService, LoyaltyQRCode

    code = LoyaltyQRCode.current(membership)
    code.image       # "data:image/png;base64,..."
    code.refresh_in  # seconds until a new code is due

    payload = QRCodeService.parse_payload(scanned_text)
"""


def __getattr__(name):
    if name in ("QRCodeService", "LoyaltyQRCode"):
        from coupin.contrib.qrcodes import service

        return getattr(service, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["QRCodeService", "LoyaltyQRCode"]
