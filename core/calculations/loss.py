"""
Downtime Loss Estimation

Estimated revenue foregone while an asset sits in the workshop:

    loss = (days / 30) × MONTHLY_LOSS_RATE × depreciation × UTILIZATION_FACTOR × replacement_value

This is a business heuristic in USD, not an accounting figure.
"""

from typing import Optional

from core.workshop.models import Equipment

MONTHLY_LOSS_RATE = 0.0325
UTILIZATION_FACTOR = 0.5
DEFAULT_DEPRECIATION_FACTOR = 0.8
DAYS_PER_MONTH = 30


def estimate_loss(days: int, equipment: Optional[Equipment]) -> float:
    """
    Estimate revenue loss for ``days`` of downtime.

    Args:
        days: Stay duration in whole days
        equipment: Catalog record, or None if the equipment is unknown

    Returns:
        Estimated loss in USD (0.0 for unknown equipment)

    Example:
        >>> eq = Equipment('E1402', replacement_value=320000, depreciation_factor=0.75)
        >>> round(estimate_loss(34, eq), 2)
        4420.0
    """
    if equipment is None:
        return 0.0

    # A missing or zero factor falls back to the default
    depreciation = equipment.depreciation_factor or DEFAULT_DEPRECIATION_FACTOR
    replacement_value = equipment.replacement_value or 0

    return (
        (days / DAYS_PER_MONTH)
        * MONTHLY_LOSS_RATE
        * depreciation
        * UTILIZATION_FACTOR
        * replacement_value
    )

