"""
Lead pricing.

Base price by lead type, raised for urgent requests and rounded to whole
dollars (halves round up).
"""

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings


def calculate_lead_price(lead_type: str, urgency: str) -> int:
    """
    Price of a lead in whole dollars.

    Unknown lead types are priced as basic leads.
    """
    prices = settings.LEAD_PRICES
    base = Decimal(str(prices.get(lead_type, prices['basic'])))
    multiplier = Decimal(str(settings.LEAD_URGENCY_MULTIPLIERS.get(urgency, 1)))
    return int((base * multiplier).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
