"""
Quantity parsing and unit conversion.

Stock is always stored in a product's base unit. Operators may enter a
quantity in a secondary unit of the same dimension (grams against a
kilogram product, millilitres against a litre product, dozens against
pieces); the caller converts it here before calling the mutation engine and
keeps the entered value as original_quantity / original_unit.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Tuple
from stockroom.core.exceptions import ValidationError
from stockroom.models.shared.enums import UnitType

QUANTITY_STEP = Decimal("0.001")

UNIT_ALIASES = {
    UnitType.KG: ("kg", "kgs", "kilogram", "kilograms", "kilo"),
    UnitType.G: ("g", "gm", "gms", "gram", "grams"),
    UnitType.MG: ("mg", "milligram", "milligrams"),
    UnitType.L: ("l", "ltr", "litre", "litres", "liter", "liters"),
    UnitType.ML: ("ml", "millilitre", "millilitres", "milliliter", "milliliters"),
    UnitType.PCS: ("pcs", "pc", "piece", "pieces", "nos", "units"),
    UnitType.DOZEN: ("dozen", "dz", "doz"),
}

# (dimension, factor to the dimension's reference unit)
UNIT_FACTORS = {
    UnitType.KG: ("mass", Decimal("1")),
    UnitType.G: ("mass", Decimal("0.001")),
    UnitType.MG: ("mass", Decimal("0.000001")),
    UnitType.L: ("volume", Decimal("1")),
    UnitType.ML: ("volume", Decimal("0.001")),
    UnitType.PCS: ("count", Decimal("1")),
    UnitType.DOZEN: ("count", Decimal("12")),
}

_ALIAS_LOOKUP = {alias: unit for unit, aliases in UNIT_ALIASES.items() for alias in aliases}


def parse_quantity(value: Any, field: str = "Quantity") -> Decimal:
    """Parse a user supplied quantity into a fixed-point Decimal"""
    if value is None:
        raise ValidationError(f"{field} is required")
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not quantity.is_finite():
        raise ValidationError(f"{field} must be a number")
    return quantity.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def normalize_unit(unit: Optional[str]) -> Optional[UnitType]:
    """Map a free-text unit label to a known unit, or None when unknown"""
    if not unit:
        return None
    return _ALIAS_LOOKUP.get(unit.strip().lower())


def convert_to_base_unit(quantity: Any, from_unit: str, base_unit: str) -> Decimal:
    """Convert a quantity entered in from_unit into the product's base unit"""
    amount = parse_quantity(quantity, field="Original quantity")
    if from_unit.strip().lower() == base_unit.strip().lower():
        return amount

    source = normalize_unit(from_unit)
    target = normalize_unit(base_unit)
    if source is None or target is None:
        raise ValidationError(f"Cannot convert from '{from_unit}' to '{base_unit}'")
    if source == target:
        return amount

    source_dimension, source_factor = UNIT_FACTORS[source]
    target_dimension, target_factor = UNIT_FACTORS[target]
    if source_dimension != target_dimension:
        raise ValidationError(f"Cannot convert from '{from_unit}' to '{base_unit}'")

    converted = amount * source_factor / target_factor
    return converted.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def resolve_entered_quantity(
    quantity: Any,
    base_unit: str,
    original_quantity: Any = None,
    original_unit: Optional[str] = None,
) -> Tuple[Decimal, Optional[Decimal], Optional[str]]:
    """
    Work out the base-unit quantity for a request.

    When an original quantity/unit pair is supplied the base quantity is
    derived from it; otherwise the plain quantity is used as is.
    """
    if original_quantity is not None and original_unit:
        converted = convert_to_base_unit(original_quantity, original_unit, base_unit)
        return converted, parse_quantity(original_quantity, field="Original quantity"), original_unit
    return parse_quantity(quantity), None, None
