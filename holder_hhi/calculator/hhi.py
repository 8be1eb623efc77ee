"""HHI engine for computing holder concentration.

All calculations use integer arithmetic until the final display value:
- share (ppm)     = amount × 1,000,000 // total_supply
- percentage      = share / 10,000, rounded to 4 decimals
- squared term    = amount² × 10,000 // total_supply²
- HHI             = Σ squared term over every holder (0 - 10,000)
"""

import logging

from ..core.exceptions import ComputationError
from ..core.models import AggregatedHolders, HHIResult, TopHolder
from ..core.types import ConcentrationLevel

logger = logging.getLogger(__name__)

HHI_SCALE = 10_000
SHARE_SCALE = 1_000_000

# Lower bounds on the 0 - 10,000 scale, checked from the top
CONCENTRATION_THRESHOLDS: list[tuple[int, ConcentrationLevel]] = [
    (5000, ConcentrationLevel.EXTREME),
    (2500, ConcentrationLevel.HIGH),
    (1500, ConcentrationLevel.MODERATE),
]


def share_percentage(amount: int, total_supply: int) -> float:
    """
    Calculate a holder's share of supply as a percentage.

    Formula: round((amount × 1,000,000 // total_supply) / 10,000, 4)

    Multiplying before dividing keeps small shares from truncating to zero.

    Args:
        amount: Holder amount in smallest units
        total_supply: Total supply in smallest units (> 0)

    Returns:
        Percentage on a 0-100 scale
    """
    if total_supply <= 0:
        raise ValueError("total_supply must be positive")
    return round((amount * SHARE_SCALE // total_supply) / 10_000, 4)


def squared_share_term(amount: int, total_supply: int) -> int:
    """
    Calculate a holder's contribution to the HHI.

    Formula: amount² × 10,000 // total_supply²

    Args:
        amount: Holder amount in smallest units
        total_supply: Total supply in smallest units (> 0)

    Returns:
        Contribution on the 0 - 10,000 scale
    """
    if total_supply <= 0:
        raise ValueError("total_supply must be positive")
    return (amount * amount * HHI_SCALE) // (total_supply * total_supply)


def classify_concentration(hhi: int) -> ConcentrationLevel:
    """Map an HHI value to its qualitative label."""
    for threshold, level in CONCENTRATION_THRESHOLDS:
        if hhi >= threshold:
            return level
    return ConcentrationLevel.DECENTRALIZED


class HHIEngine:
    """Computes the HHI and holder ranking from aggregated holders."""

    TOP_HOLDER_COUNT = 10

    def compute(
        self,
        aggregated: AggregatedHolders,
        is_complete: bool = True,
    ) -> HHIResult:
        """
        Compute concentration statistics.

        Ranking is a stable sort on percentage, so holders with equal
        percentages stay in fetch order.

        Args:
            aggregated: Filtered holders and their total supply
            is_complete: Whether the underlying snapshot is complete

        Returns:
            HHIResult; the "No active holders" sentinel for an empty aggregate

        Raises:
            ComputationError: On any arithmetic or decoding failure
        """
        if aggregated.is_empty:
            return HHIResult.empty(is_complete=is_complete)

        total_supply = aggregated.total_supply

        try:
            hhi_sum = 0
            ranked: list[TopHolder] = []
            for holder in aggregated.holders:
                amount = int(holder.amount)
                hhi_sum += squared_share_term(amount, total_supply)
                ranked.append(
                    TopHolder(
                        account=holder.owner,
                        amount=holder.amount,
                        percentage=share_percentage(amount, total_supply),
                    )
                )
        except (ArithmeticError, ValueError, TypeError) as e:
            logger.error(f"HHI calculation error: {e}")
            raise ComputationError("calculate", str(e))

        hhi = int(hhi_sum)
        ranked = sorted(ranked, key=lambda h: h.percentage, reverse=True)
        level = classify_concentration(hhi)

        logger.debug(
            f"HHI = {hhi} over {len(ranked)} holders, total supply {total_supply} "
            f"({level.value})"
        )

        return HHIResult(
            hhi=hhi,
            total_supply=str(total_supply),
            holder_count=len(aggregated.holders),
            top_holders=ranked[: self.TOP_HOLDER_COUNT],
            concentration_level=level.value,
            is_complete=is_complete,
        )
