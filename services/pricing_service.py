"""
Derived price tiers.

Owners publish a single monthly rate; every other tier is computed from it
so tiers can never drift apart. Static billboards sell monthly, fourteen-day
(catorcenal) and weekly periods; digital screens sell weekly, daily and
per-spot.
"""

from decimal import Decimal
from typing import Optional, Union
import structlog

from config import settings
from exceptions import PricingError
from models.billboard import DigitalPriceTiers, FrameCategory, StaticPriceTiers

logger = structlog.get_logger(__name__)

DAYS_PER_WEEK = Decimal("7")

STATIC_CONTRACTING_MODES = {"mensual": True, "catorcenal": True, "semanal": True}
DIGITAL_CONTRACTING_MODES = {"mensual": True, "semanal": True, "dia": True, "spot": True}


# ===================
# CONVERSION FUNCTIONS
# ===================

def fourteen_day_price(monthly: Decimal) -> Decimal:
    """Catorcenal rate: half the monthly rate."""
    return monthly / 2


def weekly_price(monthly: Decimal) -> Decimal:
    """Weekly rate: a quarter of the monthly rate."""
    return monthly / 4


# ===================
# TIER DERIVATION
# ===================

def derive_price_tiers(
    category: Union[FrameCategory, str],
    monthly_rate: Decimal,
    spots_per_day: Optional[int] = None,
) -> Union[StaticPriceTiers, DigitalPriceTiers]:
    """
    Compute every tier for a category from the published monthly rate.

    Args:
        category: static or digital
        monthly_rate: Published monthly rate (must be > 0)
        spots_per_day: Sellable spots per day for digital screens
                       (defaults to settings.digital_spots_per_day)

    Returns:
        StaticPriceTiers(monthly, fourteen_day, weekly) or
        DigitalPriceTiers(monthly, weekly, daily, spot)

    Raises:
        PricingError: If the rate is not positive
    """
    category = FrameCategory(category)
    monthly = Decimal(str(monthly_rate))

    if not monthly.is_finite() or monthly <= 0:
        raise PricingError(category.value, monthly_rate)

    if category == FrameCategory.STATIC:
        return StaticPriceTiers(
            monthly=monthly,
            fourteen_day=fourteen_day_price(monthly),
            weekly=weekly_price(monthly),
        )

    spots_per_day = spots_per_day or settings.digital_spots_per_day
    weekly = weekly_price(monthly)
    daily = weekly / DAYS_PER_WEEK
    spot = daily / Decimal(spots_per_day)

    return DigitalPriceTiers(
        monthly=monthly,
        weekly=weekly,
        daily=daily,
        spot=spot,
        spots_per_day=spots_per_day,
    )


def contracting_modes(category: Union[FrameCategory, str]) -> dict[str, bool]:
    """Booking modes offered for a category."""
    if FrameCategory(category) == FrameCategory.DIGITAL:
        return dict(DIGITAL_CONTRACTING_MODES)
    return dict(STATIC_CONTRACTING_MODES)
