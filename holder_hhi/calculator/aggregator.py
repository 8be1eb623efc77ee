"""Holder aggregation: filtering and exact total supply.

Amounts are decimal strings in the token's smallest unit and routinely exceed
64-bit range, so they are summed as Python ints.
"""

import logging
from typing import Iterable

from ..core.exceptions import ComputationError
from ..core.exclusions import DEFAULT_EXCLUDED_ADDRESSES
from ..core.models import AggregatedHolders, HolderRecord
from ..core.types import AMOUNT_PATTERN

logger = logging.getLogger(__name__)


def parse_amount(amount: str) -> int:
    """
    Parse a raw token amount.

    Args:
        amount: Unsigned decimal integer string

    Returns:
        The amount as an int

    Raises:
        ComputationError: If the string is not an unsigned decimal integer
    """
    if not isinstance(amount, str) or not AMOUNT_PATTERN.fullmatch(amount):
        raise ComputationError("aggregate", f"invalid token amount {amount!r}", value=str(amount))
    return int(amount)


class HolderAggregator:
    """Builds an AggregatedHolders value from raw holder records."""

    def __init__(
        self,
        excluded_addresses: frozenset[str] | None = None,
        merge_by_owner: bool = False,
    ):
        """
        Initialize the aggregator.

        Args:
            excluded_addresses: Owners outside circulating supply
            merge_by_owner: Combine token accounts that share an owner
        """
        if excluded_addresses is None:
            excluded_addresses = DEFAULT_EXCLUDED_ADDRESSES
        self.excluded_addresses = frozenset(excluded_addresses)
        self.merge_by_owner = merge_by_owner

    def aggregate(self, records: Iterable[HolderRecord]) -> AggregatedHolders:
        """
        Filter records and compute the exact total supply.

        Records owned by an excluded address or holding zero are dropped.
        Order is preserved; with ``merge_by_owner`` a holder keeps the
        position of its first token account.

        Args:
            records: Holder records in fetch order

        Returns:
            AggregatedHolders, or ``AggregatedHolders.empty()`` when nothing
            is left or the total is zero

        Raises:
            ComputationError: If an amount cannot be parsed
        """
        kept: list[tuple[str, int]] = []
        positions: dict[str, int] = {}
        total_supply = 0
        dropped = 0

        for record in records:
            amount = parse_amount(record.amount)
            if record.owner in self.excluded_addresses or amount == 0:
                dropped += 1
                continue

            total_supply += amount
            if self.merge_by_owner and record.owner in positions:
                index = positions[record.owner]
                owner, previous = kept[index]
                kept[index] = (owner, previous + amount)
            else:
                positions[record.owner] = len(kept)
                kept.append((record.owner, amount))

        if not kept or total_supply == 0:
            logger.info(f"No active holders after filtering ({dropped} records dropped)")
            return AggregatedHolders.empty()

        logger.debug(
            f"Aggregated {len(kept)} holders, total supply {total_supply} "
            f"({dropped} records dropped)"
        )

        return AggregatedHolders(
            holders=[HolderRecord(owner=owner, amount=str(amount)) for owner, amount in kept],
            total_supply=total_supply,
        )
