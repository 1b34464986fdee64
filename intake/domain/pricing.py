"""Costing completion rule.

Pure functions: parse and check the selling price and margin a costing user
entered, and format the summary recorded on the costing_complete transition.
"""

import math
from dataclasses import dataclass

from intake.core.exceptions import ValidationError


@dataclass(frozen=True)
class CostingFigures:
    selling_price: float
    calculated_margin: float


def _parse_number(value: object, field: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} is required", field=field)
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field) from exc
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number", field=field)
    return number


def validate_costing(selling_price: object, calculated_margin: object) -> CostingFigures:
    """Check the figures required before a request can reach costing_complete.

    The selling price must be a positive finite number. The margin must be a
    finite number and may be negative (a loss).

    Raises:
        ValidationError: naming the offending field
    """
    price = _parse_number(selling_price, "sellingPrice")
    if price <= 0:
        raise ValidationError("sellingPrice must be greater than zero", field="sellingPrice")
    margin = _parse_number(calculated_margin, "calculatedMargin")
    return CostingFigures(selling_price=price, calculated_margin=margin)


def format_costing_summary(figures: CostingFigures) -> str:
    """Summary recorded as the costing_complete history comment."""
    return f"Selling Price: €{figures.selling_price:.2f}, Margin: {figures.calculated_margin:.1f}%"
