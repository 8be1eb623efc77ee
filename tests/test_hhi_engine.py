"""Tests for the HHI engine."""

import pytest

from holder_hhi.calculator.hhi import (
    HHIEngine,
    classify_concentration,
    share_percentage,
    squared_share_term,
)
from holder_hhi.core.exceptions import ComputationError
from holder_hhi.core.models import AggregatedHolders, HHIResult, HolderRecord, TopHolder
from holder_hhi.core.types import ConcentrationLevel


def aggregate_of(*pairs: tuple[str, int]) -> AggregatedHolders:
    return AggregatedHolders(
        holders=[HolderRecord(owner=owner, amount=str(amount)) for owner, amount in pairs],
        total_supply=sum(amount for _, amount in pairs),
    )


class TestHHIFormulas:
    """Tests for the standalone HHI formulas."""

    def test_share_percentage(self):
        """Percentages carry four decimals."""
        assert share_percentage(25, 100) == 25.0
        assert share_percentage(1, 3) == 33.3333
        assert share_percentage(100, 100) == 100.0

    def test_share_percentage_small_share(self):
        """Multiplying before dividing keeps tiny shares visible."""
        assert share_percentage(1, 1_000_000) == 0.0001
        assert share_percentage(1, 10_000_000) == 0.0

    def test_squared_share_term(self):
        """Squared term is already on the 0-10,000 scale."""
        assert squared_share_term(25, 100) == 625
        assert squared_share_term(100, 100) == 10_000
        assert squared_share_term(1, 3) == 1111

    def test_formulas_reject_zero_supply(self):
        with pytest.raises(ValueError):
            share_percentage(1, 0)
        with pytest.raises(ValueError):
            squared_share_term(1, 0)

    def test_classify_concentration_thresholds(self):
        """Labels switch exactly at 1500, 2500 and 5000."""
        assert classify_concentration(0) == ConcentrationLevel.DECENTRALIZED
        assert classify_concentration(1499) == ConcentrationLevel.DECENTRALIZED
        assert classify_concentration(1500) == ConcentrationLevel.MODERATE
        assert classify_concentration(2499) == ConcentrationLevel.MODERATE
        assert classify_concentration(2500) == ConcentrationLevel.HIGH
        assert classify_concentration(4999) == ConcentrationLevel.HIGH
        assert classify_concentration(5000) == ConcentrationLevel.EXTREME
        assert classify_concentration(10_000) == ConcentrationLevel.EXTREME


class TestHHIEngine:
    """Tests for HHIEngine.compute."""

    def test_single_holder_owns_everything(self):
        """One holder with the whole supply gives the maximum index."""
        result = HHIEngine().compute(aggregate_of(("X", 100)))

        assert result.hhi == 10_000
        assert result.concentration_level == "Extreme concentration (risk of manipulation)"
        assert result.total_supply == "100"
        assert result.holder_count == 1
        assert result.top_holders == [TopHolder(account="X", amount="100", percentage=100.0)]

    def test_four_equal_holders(self, four_equal_holders):
        """Four quarter shares contribute 625 each."""
        result = HHIEngine().compute(four_equal_holders)

        assert result.hhi == 2500
        assert result.concentration_level == "High concentration"
        assert [h.percentage for h in result.top_holders] == [25.0, 25.0, 25.0, 25.0]

    def test_near_monopoly_is_below_maximum(self):
        """10,000 is reached only when a single holder owns everything."""
        result = HHIEngine().compute(aggregate_of(("A", 999_999), ("B", 1)))

        assert result.hhi == 9999
        assert result.hhi < 10_000

    def test_amounts_beyond_64_bits(self):
        """Amounts above 2**64 are handled exactly."""
        big = 10**30
        result = HHIEngine().compute(aggregate_of(("A", big), ("B", big)))

        assert result.hhi == 5000
        assert result.total_supply == str(2 * big)
        assert result.top_holders[0].amount == str(big)
        assert result.top_holders[0].percentage == 50.0

    def test_hhi_covers_all_holders_not_just_top_ten(self):
        """Holders outside the top 10 still count towards the index."""
        result = HHIEngine().compute(aggregate_of(*[(f"H{i}", 1) for i in range(15)]))

        assert result.holder_count == 15
        assert len(result.top_holders) == 10
        # 1 * 1 * 10000 // 225 = 44 per holder
        assert result.hhi == 15 * 44
        assert result.concentration_level == "Decentralized"

    def test_top_holders_length(self):
        """Top holders list has min(10, holder_count) entries."""
        engine = HHIEngine()
        for count in (1, 5, 10, 11, 40):
            result = engine.compute(aggregate_of(*[(f"H{i}", i + 1) for i in range(count)]))
            assert len(result.top_holders) == min(10, count)

    def test_top_holders_sorted_descending(self):
        result = HHIEngine().compute(
            aggregate_of(("A", 5), ("B", 50), ("C", 20), ("D", 25))
        )

        percentages = [h.percentage for h in result.top_holders]
        assert percentages == sorted(percentages, reverse=True)
        assert [h.account for h in result.top_holders] == ["B", "D", "C", "A"]

    def test_ties_keep_fetch_order(self):
        """Equal percentages stay in their original relative order."""
        engine = HHIEngine()
        first = engine.compute(aggregate_of(("A", 10), ("B", 30), ("C", 30), ("D", 30)))
        assert [h.account for h in first.top_holders] == ["B", "C", "D", "A"]

        reordered = engine.compute(aggregate_of(("D", 30), ("A", 10), ("C", 30), ("B", 30)))
        assert [h.account for h in reordered.top_holders] == ["D", "C", "B", "A"]

    def test_top_percentages_sum_to_at_most_100(self):
        result = HHIEngine().compute(
            aggregate_of(("A", 1), ("B", 1), ("C", 1), ("D", 7), ("E", 13))
        )

        assert sum(h.percentage for h in result.top_holders) <= 100.0 + 1e-9

    def test_hhi_within_bounds(self):
        engine = HHIEngine()
        cases = [
            [("A", 1)],
            [("A", 3), ("B", 7)],
            [(f"H{i}", 10**18 + i) for i in range(25)],
            [("A", 123456789), ("B", 1), ("C", 987654321987654321)],
        ]
        for pairs in cases:
            result = engine.compute(aggregate_of(*pairs))
            assert 0 <= result.hhi <= 10_000
            assert isinstance(result.hhi, int)

    def test_compute_is_idempotent(self, four_equal_holders):
        """Running the engine twice gives identical results."""
        engine = HHIEngine()
        first = engine.compute(four_equal_holders)
        second = engine.compute(four_equal_holders)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_empty_aggregate_gives_sentinel(self):
        result = HHIEngine().compute(AggregatedHolders.empty())

        assert result == HHIResult.empty()
        assert result.concentration_level == "No active holders"
        assert result.total_supply == "0"
        assert result.top_holders == []

    def test_partial_flag_is_carried(self, four_equal_holders):
        result = HHIEngine().compute(four_equal_holders, is_complete=False)
        assert result.is_complete is False

    def test_malformed_amount_raises_computation_error(self):
        """Bad data that bypassed validation is reported, not absorbed."""
        broken = AggregatedHolders.model_construct(
            holders=[HolderRecord(owner="X", amount="not-a-number")],
            total_supply=10,
        )

        with pytest.raises(ComputationError) as exc_info:
            HHIEngine().compute(broken)

        assert exc_info.value.stage == "calculate"
        assert "HHI calculation failed" in exc_info.value.message


class TestHHIResult:
    """Tests for the HHIResult model."""

    def test_payload_uses_camel_case(self, four_equal_holders):
        payload = HHIEngine().compute(four_equal_holders).to_payload()

        assert set(payload) == {
            "hhi",
            "totalSupply",
            "holderCount",
            "topHolders",
            "concentrationLevel",
            "isComplete",
        }
        assert payload["topHolders"][0] == {"account": "X", "amount": "25", "percentage": 25.0}

    def test_empty_sentinel_payload(self):
        assert HHIResult.empty().to_payload() == {
            "hhi": 0,
            "totalSupply": "0",
            "holderCount": 0,
            "topHolders": [],
            "concentrationLevel": "No active holders",
            "isComplete": True,
        }

    def test_hhi_range_is_validated(self):
        with pytest.raises(ValueError):
            HHIResult(
                hhi=10_001,
                total_supply="1",
                holder_count=1,
                concentration_level="Decentralized",
            )
