"""Cost accounting for image service calls."""

from dataclasses import dataclass

COST_PER_OPERATION = 0.0387
DEMO_GENERATION_COST = 0.039
CURRENCY = "USD"


@dataclass(frozen=True)
class CostEstimate:
    """Estimated spend for a number of service calls."""

    count: int
    per_operation: float
    total: float
    currency: str = CURRENCY


def calculate_cost(
    operations: int, per_operation: float = COST_PER_OPERATION
) -> CostEstimate:
    """Return the cost of ``operations`` calls at a fixed price."""
    return CostEstimate(
        count=operations,
        per_operation=per_operation,
        total=round(operations * per_operation, 6),
    )
