"""Static rate table in AED per square metre."""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from breezeline.errors import ValidationError
from breezeline.models import ProjectType, ServiceClass

RATE_TABLE: Mapping[ProjectType, Mapping[ServiceClass, Decimal]] = MappingProxyType(
    {
        ProjectType.ONE_BHK: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("2000"), ServiceClass.PREMIUM: Decimal("2300")}
        ),
        ProjectType.TWO_BHK: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("2200"), ServiceClass.PREMIUM: Decimal("2500")}
        ),
        ProjectType.THREE_BHK: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("2300"), ServiceClass.PREMIUM: Decimal("2600")}
        ),
        ProjectType.STUDIO: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("1600"), ServiceClass.PREMIUM: Decimal("2000")}
        ),
        ProjectType.OFFICE: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("2600"), ServiceClass.PREMIUM: Decimal("3000")}
        ),
        ProjectType.RETAIL: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("5500"), ServiceClass.PREMIUM: Decimal("6500")}
        ),
        ProjectType.FOOD_AND_BEVERAGE: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("5800"), ServiceClass.PREMIUM: Decimal("6500")}
        ),
        ProjectType.VILLA_RENOVATION: MappingProxyType(
            {ServiceClass.STANDARD: Decimal("5000"), ServiceClass.PREMIUM: Decimal("7000")}
        ),
    }
)


def parse_project_type(value: object) -> ProjectType:
    if value is None or value == "":
        raise ValidationError("Project type is required", field="projectType")
    try:
        return ProjectType(value)
    except ValueError:
        raise ValidationError("Invalid project type or class", field="projectType") from None


def parse_service_class(value: object) -> ServiceClass:
    if value is None or value == "":
        raise ValidationError("Service class is required", field="serviceClass")
    try:
        return ServiceClass(value)
    except ValueError:
        raise ValidationError("Invalid project type or class", field="serviceClass") from None


def lookup_rate(project_type: object, service_class: object) -> Decimal:
    """Return the unit price for a (project type, service class) pair.

    Raises:
        ValidationError: If either key is missing or not in the table
    """
    ptype = parse_project_type(project_type)
    sclass = parse_service_class(service_class)
    try:
        return RATE_TABLE[ptype][sclass]
    except KeyError:
        raise ValidationError("Invalid project type or class") from None


def price_list() -> dict[str, dict[str, Decimal]]:
    """Plain-dict copy of the rate table keyed by display values."""
    return {
        ptype.value: {sclass.value: price for sclass, price in classes.items()}
        for ptype, classes in RATE_TABLE.items()
    }


def missing_rates() -> list[tuple[ProjectType, ServiceClass]]:
    """Pairs of the enum cross-product without a positive rate."""
    missing = []
    for ptype in ProjectType:
        for sclass in ServiceClass:
            rate = RATE_TABLE.get(ptype, {}).get(sclass)
            if rate is None or rate <= 0:
                missing.append((ptype, sclass))
    return missing
