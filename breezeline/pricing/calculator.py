"""Estimate calculator.

Pure functions: no I/O, no state. The same inputs always give the same quote.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from breezeline.errors import ValidationError
from breezeline.models import Quote
from breezeline.pricing.rates import lookup_rate, parse_project_type, parse_service_class

DEFAULT_MIN_AREA = Decimal("10")
DEFAULT_MAX_AREA = Decimal("10000")

# Finest area the lead store keeps exactly (Numeric scale of leads.area)
AREA_PLACES = 4

# Fils: AED minor unit
MINOR_UNIT = Decimal("0.01")


def parse_area(value: object) -> Decimal:
    """Parse a client-supplied area into a positive finite Decimal.

    Raises:
        ValidationError: If the value is missing, non-numeric, non-finite, <= 0
            or finer than AREA_PLACES decimal places
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Area is required", field="area")
    if isinstance(value, bool):
        raise ValidationError("Please enter a valid positive number", field="area")

    try:
        # str() first so floats keep their shortest repr instead of binary noise
        area = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Please enter a valid positive number", field="area") from None

    if not area.is_finite() or area <= 0:
        raise ValidationError("Please enter a valid positive number", field="area")
    if area.normalize().as_tuple().exponent < -AREA_PLACES:
        raise ValidationError(
            f"Area can have at most {AREA_PLACES} decimal places", field="area"
        )
    return area


def check_area_bounds(
    area: Decimal,
    min_area: Decimal = DEFAULT_MIN_AREA,
    max_area: Decimal = DEFAULT_MAX_AREA,
) -> None:
    """Apply the business bounds (inclusive) to an already parsed area."""
    if area > max_area:
        raise ValidationError("Area seems too large. Please contact us directly.", field="area")
    if area < min_area:
        raise ValidationError(f"Minimum area should be {min_area.normalize():f} sqm", field="area")


def quote(
    project_type: object,
    service_class: object,
    area: object,
    *,
    min_area: Decimal = DEFAULT_MIN_AREA,
    max_area: Decimal = DEFAULT_MAX_AREA,
    currency: str = "AED",
) -> Quote:
    """Price a project: unit rate from the table times the area.

    Args:
        project_type: One of the ProjectType values
        service_class: "Standard" or "Premium"
        area: Area in square metres (number or numeric string)
        min_area: Smallest accepted area (inclusive)
        max_area: Largest accepted area (inclusive)

    Returns:
        Quote with the unrounded total

    Raises:
        ValidationError: On any missing or out-of-policy input
    """
    ptype = parse_project_type(project_type)
    sclass = parse_service_class(service_class)
    parsed_area = parse_area(area)
    check_area_bounds(parsed_area, min_area, max_area)

    unit_price = lookup_rate(ptype, sclass)
    return Quote(
        project_type=ptype,
        service_class=sclass,
        area=parsed_area,
        unit_price=unit_price,
        total_price=unit_price * parsed_area,
        currency=currency,
    )


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal | int | float | None, currency: str = "AED") -> str:
    """Format a monetary value for display, e.g. ``AED 110,000.00``."""
    if value is None:
        return "N/A"
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return f"{currency} {round_money(amount):,.2f}"
