"""Tests for the holder concentration analyzer."""

import json

import httpx
import pytest

from holder_hhi import __version__
from holder_hhi.analyzer import HolderConcentrationAnalyzer
from holder_hhi.core.exceptions import ComputationError
from holder_hhi.core.exclusions import BURN_ADDRESS
from holder_hhi.core.models import HHIResult
from holder_hhi.core.types import PaginationMode, StopReason

from conftest import TEST_MINT, make_account


def build_analyzer(api_config, rpc, **kwargs) -> HolderConcentrationAnalyzer:
    return HolderConcentrationAnalyzer(config=api_config, transport=rpc.transport, **kwargs)


class TestAnalyze:
    """End-to-end tests against a fake RPC."""

    def test_single_holder(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [make_account("X", "100")]})

        analysis = build_analyzer(api_config, rpc).analyze(TEST_MINT)

        assert analysis.token_id == TEST_MINT
        assert analysis.result.hhi == 10_000
        assert analysis.result.concentration_level == "Extreme concentration (risk of manipulation)"
        assert analysis.is_complete
        assert analysis.quality_flags == []
        assert analysis.tool_version == __version__

    def test_four_equal_holders(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory(
            {0: [make_account(owner, "25") for owner in ("X", "Y", "Z", "W")]}
        )

        result = build_analyzer(api_config, rpc).calculate_hhi(TEST_MINT)

        assert result.hhi == 2500
        assert result.concentration_level == "High concentration"
        assert result.holder_count == 4
        assert result.total_supply == "100"

    def test_no_active_holders(self, api_config, fake_rpc_factory):
        """Burned and zero balances only: the empty sentinel, not an error."""
        rpc = fake_rpc_factory(
            {0: [make_account(BURN_ADDRESS, "1000"), make_account("A", "0")]}
        )

        analysis = build_analyzer(api_config, rpc).analyze(TEST_MINT)

        assert analysis.result == HHIResult.empty()
        assert [flag.severity for flag in analysis.quality_flags] == ["info"]

    def test_excluded_balance_does_not_change_hhi(self, api_config, fake_rpc_factory):
        holders = [make_account("A", "60"), make_account("B", "40")]
        with_burn = holders + [make_account(BURN_ADDRESS, "10000")]

        plain = build_analyzer(api_config, fake_rpc_factory({0: holders})).calculate_hhi(TEST_MINT)
        burned = build_analyzer(api_config, fake_rpc_factory({0: with_burn})).calculate_hhi(
            TEST_MINT
        )

        assert plain == burned

    def test_custom_exclusions_reach_provider_and_aggregator(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [make_account("TREASURY", "900"), make_account("A", "100")]})

        result = build_analyzer(
            api_config, rpc, excluded_addresses=frozenset({"TREASURY"})
        ).calculate_hhi(TEST_MINT)

        assert result.hhi == 10_000
        assert result.total_supply == "100"

    def test_partial_fetch_is_flagged(self, api_config, fake_rpc_factory):
        """A failure after page 0 gives a partial result with an error flag."""
        page_zero = [make_account("A", "30"), make_account("B", "10")]
        rpc = fake_rpc_factory({0: page_zero, 1: httpx.Response(502)})

        analysis = build_analyzer(api_config, rpc, page_size=2).analyze(TEST_MINT)

        assert analysis.result.holder_count == 2
        assert analysis.result.is_complete is False
        assert not analysis.is_complete
        assert analysis.stop_reason == StopReason.ERROR
        assert analysis.pages_fetched == 1
        assert [flag.severity for flag in analysis.quality_flags] == ["error"]

    def test_underfetch_warning_in_filtered_mode(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [make_account("A", "5"), make_account(BURN_ADDRESS, "5")]})

        analysis = build_analyzer(api_config, rpc, page_size=2).analyze(TEST_MINT)

        assert analysis.is_complete
        assert [flag.severity for flag in analysis.quality_flags] == ["warning"]

    def test_raw_mode_has_no_underfetch_warning(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory(
            {0: [make_account("A", "5"), make_account(BURN_ADDRESS, "5")], 1: []}
        )

        analysis = build_analyzer(
            api_config, rpc, page_size=2, pagination_mode=PaginationMode.RAW
        ).analyze(TEST_MINT)

        assert rpc.call_count == 2
        assert analysis.quality_flags == []

    def test_merge_by_owner(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory(
            {0: [make_account("A", "50", pubkey="a1"), make_account("A", "50", pubkey="a2")]}
        )

        split = build_analyzer(api_config, rpc).calculate_hhi(TEST_MINT)
        merged = build_analyzer(api_config, rpc, merge_by_owner=True).calculate_hhi(TEST_MINT)

        assert split.hhi == 5000
        assert merged.hhi == 10_000

    def test_decode_failure_gives_partial_result(self, api_config, fake_rpc_factory):
        """A malformed later page keeps the holders fetched before it."""
        rpc = fake_rpc_factory(
            {
                0: [make_account("A", "30"), make_account("B", "10")],
                1: [{"pubkey": "bad", "account": {"data": "base64-blob"}}],
            }
        )

        analysis = build_analyzer(api_config, rpc, page_size=2).analyze(TEST_MINT)

        assert analysis.result.holder_count == 2
        assert analysis.result.total_supply == "40"
        assert not analysis.is_complete
        assert analysis.stop_reason == StopReason.ERROR
        assert [flag.severity for flag in analysis.quality_flags] == ["error"]

    def test_decode_failure_propagates_when_strict(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [{"pubkey": "bad", "account": {}}]})

        with pytest.raises(ComputationError):
            build_analyzer(api_config, rpc, strict_decoding=True).analyze(TEST_MINT)

    def test_audit_trail_collected(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [make_account("A", "1"), make_account("B", "1")], 1: []})
        analyzer = build_analyzer(api_config, rpc, page_size=2)

        analysis = analyzer.analyze(TEST_MINT)

        assert len(analysis.audit_trail) == 2
        assert analyzer.provider.get_audit_trail() == []

    def test_repeated_runs_are_identical(self, api_config, fake_rpc_factory):
        rpc = fake_rpc_factory({0: [make_account("A", "7"), make_account("B", "3")]})
        analyzer = build_analyzer(api_config, rpc)

        assert analyzer.calculate_hhi(TEST_MINT) == analyzer.calculate_hhi(TEST_MINT)


class TestAnalyzeBatch:
    """Tests for batch analysis."""

    @staticmethod
    def _batch_analyzer(api_config, **kwargs) -> HolderConcentrationAnalyzer:
        def handler(request: httpx.Request) -> httpx.Response:
            mint = json.loads(request.content)["params"][1]["filters"][1]["memcmp"]["bytes"]
            if mint == "BROKEN":
                accounts = [{"pubkey": "bad", "account": {}}]
            else:
                accounts = [make_account("A", "1")]
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": "x", "result": {"value": accounts}}
            )

        return HolderConcentrationAnalyzer(
            config=api_config, transport=httpx.MockTransport(handler), **kwargs
        )

    def test_malformed_mint_is_kept_as_partial(self, api_config):
        results = self._batch_analyzer(api_config).analyze_batch(["GOOD1", "BROKEN", "GOOD2"])

        assert [r.token_id for r in results] == ["GOOD1", "BROKEN", "GOOD2"]
        assert [r.is_complete for r in results] == [True, False, True]
        assert results[1].result == HHIResult.empty(is_complete=False)

    def test_skips_failing_tokens_when_strict(self, api_config):
        analyzer = self._batch_analyzer(api_config, strict_decoding=True)

        results = analyzer.analyze_batch(["GOOD1", "BROKEN", "GOOD2"])

        assert [r.token_id for r in results] == ["GOOD1", "GOOD2"]
